"""Pydantic schemas for search requests and results."""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .settings import settings
from .types import Row
from .utils import lookup_column, parse_embedding, parse_metadata, to_float, to_str

_ID_ALIASES = ("id", "_id")
_DISTANCE_ALIASES = ("_distance", "distance", "_score", "score")


# ===========================================================================
# Requests
# ===========================================================================


class RRFConfig(BaseModel):
    """Reciprocal Rank Fusion settings; score is ``1 / (k + rank)``."""

    k: int = Field(0, description="Rank constant. k <= 0 keeps the engine default.")


class HybridSearchRank(BaseModel):
    rrf: Optional[RRFConfig] = None


class HybridSearchQuery(BaseModel):
    """Full-text and/or scalar part of a hybrid search."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    where_document: Optional[Any] = Field(None, description="Document filter mapping.")
    where: Optional[Any] = Field(None, description="Metadata filter mapping or Q object.")
    size: int = Field(0, description="Result count for this sub-search.")


class HybridSearchKNN(BaseModel):
    """Vector part of a hybrid search.

    Either a precomputed vector (``query_vector`` or the first of
    ``query_embeddings``) or ``query_texts`` to embed must be given.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    query_vector: Optional[List[float]] = None
    query_embeddings: Optional[List[List[float]]] = None
    query_texts: Optional[List[str]] = None
    where: Optional[Any] = Field(None, description="Metadata filter mapping or Q object.")
    size: int = Field(0, description="Number of neighbours (k). Defaults to 10 when <= 0.")

    @field_validator("query_texts", mode="before")
    @classmethod
    def _wrap_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("query_embeddings", mode="before")
    @classmethod
    def _wrap_vector(cls, value: Any) -> Any:
        # A single flat vector is accepted as a batch of one
        if isinstance(value, (list, tuple)) and value and not isinstance(value[0], (list, tuple)):
            return [value]
        return value

    def precomputed_vector(self) -> Optional[List[float]]:
        """Return the caller-supplied vector, if any."""
        if self.query_vector:
            return list(self.query_vector)
        if self.query_embeddings and self.query_embeddings[0]:
            return list(self.query_embeddings[0])
        return None


class VectorQuerySpec(BaseModel):
    """Inputs of a single SQL vector similarity query."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    query_vector: List[float]
    distance: str = Field(default_factory=lambda: settings.VECTOR_METRIC)
    where: Optional[Any] = None
    where_document: Optional[Any] = None
    limit: int = Field(default_factory=lambda: settings.VECTOR_SEARCH_LIMIT)


# ===========================================================================
# Results
# ===========================================================================


def _row_fields(row: Row) -> Dict[str, Any]:
    return {
        "id": to_str(lookup_column(row, *_ID_ALIASES)),
        "distance": to_float(lookup_column(row, *_DISTANCE_ALIASES)),
        "document": to_str(lookup_column(row, settings.DOCUMENT_COLUMN)),
        "metadata": parse_metadata(lookup_column(row, settings.METADATA_COLUMN)),
        "embedding": parse_embedding(lookup_column(row, settings.EMBEDDING_COLUMN)),
    }


class GetResult(BaseModel):
    """Records fetched by id and/or filter, in storage order."""

    ids: List[str] = Field(default_factory=list)
    documents: List[str] = Field(default_factory=list)
    metadatas: List[Dict[str, Any]] = Field(default_factory=list)
    embeddings: List[Optional[List[float]]] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ids)

    @classmethod
    def from_rows(cls, rows: Sequence[Row]) -> "GetResult":
        result = cls()
        for row in rows:
            fields = _row_fields(row)
            result.ids.append(fields["id"])
            result.documents.append(fields["document"])
            result.metadatas.append(fields["metadata"])
            result.embeddings.append(fields["embedding"])
        return result


class HybridSearchResult(GetResult):
    """Fused hybrid search hits, best first.

    Rows are mapped by case-insensitive column name; ids come from ``id`` or
    ``_id`` and scores from ``_distance``, ``distance``, ``_score`` or ``score``.
    """

    distances: List[float] = Field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: Sequence[Row]) -> "HybridSearchResult":
        result = cls()
        for row in rows:
            fields = _row_fields(row)
            result.ids.append(fields["id"])
            result.distances.append(fields["distance"])
            result.documents.append(fields["document"])
            result.metadatas.append(fields["metadata"])
            result.embeddings.append(fields["embedding"])
        return result


class QueryResult(BaseModel):
    """Vector query results, one inner list per query vector."""

    ids: List[List[str]] = Field(default_factory=list)
    distances: List[List[float]] = Field(default_factory=list)
    documents: List[List[str]] = Field(default_factory=list)
    metadatas: List[List[Dict[str, Any]]] = Field(default_factory=list)
    embeddings: List[List[Optional[List[float]]]] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ids)

    def append_rows(self, rows: Sequence[Row]) -> None:
        """Append the hits of one more query vector."""
        hits = HybridSearchResult.from_rows(rows)
        self.ids.append(hits.ids)
        self.distances.append(hits.distances)
        self.documents.append(hits.documents)
        self.metadatas.append(hits.metadatas)
        self.embeddings.append(hits.embeddings)
