"""Pytest configuration and fixtures for seekql tests."""

from typing import Any, List, Optional, Sequence, Tuple

import pytest
from dotenv import load_dotenv

from seekql.abc import EmbeddingAdapter, HybridSearchTransport, SQLExecutor
from seekql.types import Row

# Load environment variables
load_dotenv()


class FakeExecutor(SQLExecutor):
    """Records every statement and replays queued result rows."""

    def __init__(self, results: Optional[List[List[Row]]] = None, affected: int = 0) -> None:
        self.results: List[List[Row]] = list(results or [])
        self.affected = affected
        self.calls: List[Tuple[str, List[Any]]] = []

    def query(self, sql: str, args: Sequence[Any] = ()) -> List[Row]:
        self.calls.append((sql, list(args)))
        return self.results.pop(0) if self.results else []

    def execute(self, sql: str, args: Sequence[Any] = ()) -> int:
        self.calls.append((sql, list(args)))
        return self.affected


class FakeTransport(HybridSearchTransport):
    def __init__(self, rows: Optional[List[Row]] = None) -> None:
        self.rows = rows or []
        self.requests: List[Tuple[str, str]] = []

    def search(self, table_name: str, search_parm: str) -> List[Row]:
        self.requests.append((table_name, search_parm))
        return self.rows


class FixedEmbedding(EmbeddingAdapter):
    """Returns ``[i, i, i]`` for the i-th text (1-based) and counts calls."""

    def __init__(self, dim: int = 3) -> None:
        super().__init__(model_name="fixed", dim=dim)
        self.calls: List[List[str]] = []

    def get_embeddings(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [[float(i + 1)] * self.dim for i in range(len(texts))]


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def embedding():
    return FixedEmbedding()


@pytest.fixture
def sample_rows():
    """Rows as a driver returns them, with JSON-encoded columns."""
    return [
        {
            "_id": b"doc_1",
            "document": "Vector databases enable semantic search.",
            "metadata": '{"category": "AI", "score": 95}',
            "embedding": "[0.1,0.2,0.3]",
            "distance": 0.12,
        },
        {
            "_id": "doc_2",
            "document": "Python is a great programming language.",
            "metadata": '{"category": "dev", "score": 80}',
            "embedding": "[0.4,0.5,0.6]",
            "distance": "0.5",
        },
    ]
