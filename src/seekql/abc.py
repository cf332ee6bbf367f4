"""Abstract collaborator interfaces.

SeekQL never talks to a database or a model runtime itself. It builds
statements and request descriptors and hands them to these collaborators.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional, Sequence

from .exceptions import SearchError
from .logger import Logger
from .types import Row


class EmbeddingAdapter(ABC):
    """Text-to-vector capability.

    Implementations must return vectors of the same dimension on every call.
    Providers that cap the number of inputs per request set
    ``max_batch_size``; 0 means no cap.
    """

    max_batch_size: int = 0

    def __init__(self, model_name: str, dim: Optional[int] = None, **kwargs: Any) -> None:
        self.model_name = model_name
        self._dim = dim
        self.logger = Logger(self.__class__.__name__)

    @property
    def dim(self) -> int:
        """Dimension of the vectors produced by this adapter."""
        if self._dim is None:
            raise NotImplementedError(f"{self.__class__.__name__} does not declare a dimension")
        return self._dim

    def batches(self, texts: Sequence[str]) -> Iterator[List[str]]:
        """Split ``texts`` into request-sized chunks, preserving order."""
        size = self.max_batch_size or max(len(texts), 1)
        for start in range(0, len(texts), size):
            yield list(texts[start : start + size])

    def check_vectors(self, texts: Sequence[str], vectors: List[List[float]]) -> List[List[float]]:
        """Ensure one vector per text, all of the declared dimension.

        Raises:
            SearchError: On a count or dimension mismatch
        """
        if len(vectors) != len(texts):
            raise SearchError(
                "Embedding provider returned a different number of vectors",
                model=self.model_name,
                expected=len(texts),
                got=len(vectors),
            )
        if self._dim is not None:
            for i, vector in enumerate(vectors):
                if len(vector) != self._dim:
                    raise SearchError(
                        "Embedding provider returned a vector of unexpected dimension",
                        model=self.model_name,
                        index=i,
                        expected=self._dim,
                        got=len(vector),
                    )
        return vectors

    @abstractmethod
    def get_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch of texts, one vector per input text, in order."""
        raise NotImplementedError


class SQLExecutor(ABC):
    """Executes SQL text with ordered ``?``/``%s`` bound arguments.

    Errors raised by the driver must propagate unmodified.
    """

    @abstractmethod
    def query(self, sql: str, args: Sequence[Any] = ()) -> List[Row]:
        """Run a statement that returns rows, as column-name keyed dicts."""
        raise NotImplementedError

    @abstractmethod
    def execute(self, sql: str, args: Sequence[Any] = ()) -> int:
        """Run a statement that modifies data and return the affected row count."""
        raise NotImplementedError


class HybridSearchTransport(ABC):
    """Sends a serialized hybrid search request to the server-side procedure."""

    @abstractmethod
    def search(self, table_name: str, search_parm: str) -> List[Row]:
        """Run the hybrid search for ``table_name`` and return raw result rows.

        Args:
            table_name: Physical collection table name
            search_parm: JSON-serialized search descriptor
        """
        raise NotImplementedError
