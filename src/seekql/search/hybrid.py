"""Hybrid search request builder.

Assembles the ``search_parm`` descriptor consumed by the server-side hybrid
search procedure from three optional parts:

- ``query``: full-text and/or scalar filtering
- ``knn``: approximate nearest-neighbour search on the embedding column
- ``rank``: reciprocal rank fusion of both result lists

Metadata filters of ``query`` and ``knn`` are compiled independently.
"""

import json
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from seekql.abc import EmbeddingAdapter
from seekql.exceptions import EmbeddingFunctionRequired, InvalidParameter, SearchError
from seekql.logger import Logger
from seekql.querydsl.compilers.search import SearchWhereCompiler, metadata_field
from seekql.schema import HybridSearchKNN, HybridSearchQuery, HybridSearchRank
from seekql.settings import settings as api_settings
from seekql.types import SearchClause

__all__ = ("HybridSearchRequest", "HybridSearchRequestBuilder")

_M = TypeVar("_M", bound=BaseModel)


class HybridSearchRequest(BaseModel):
    """Complete hybrid search descriptor."""

    query: Optional[SearchClause] = None
    knn: Optional[Dict[str, Any]] = None
    rank: Optional[Dict[str, Any]] = None
    size: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_json(self) -> str:
        """Serialize as compact JSON, keeping non-ASCII text as is."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


def _coerce(model: Type[_M], value: Union[_M, Dict[str, Any], None], section: str) -> Optional[_M]:
    if value is None or isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as e:
        raise InvalidParameter(f"Invalid {section} parameters", section=section, errors=e.errors()) from e


class HybridSearchRequestBuilder:
    """Build ``HybridSearchRequest`` objects.

    Args:
        embedding: Adapter used to embed ``knn.query_texts``; optional when
            callers always pass precomputed vectors
        where_compiler: Descriptor compiler; defaults to one addressing the
            JSON metadata column
    """

    def __init__(
        self,
        embedding: Optional[EmbeddingAdapter] = None,
        where_compiler: Optional[SearchWhereCompiler] = None,
    ) -> None:
        self.embedding = embedding
        self.where_compiler = where_compiler or SearchWhereCompiler(field_formatter=metadata_field)
        self.logger = Logger(self.__class__.__name__)

    def build(
        self,
        query: Union[HybridSearchQuery, Dict[str, Any], None] = None,
        knn: Union[HybridSearchKNN, Dict[str, Any], None] = None,
        rank: Union[HybridSearchRank, Dict[str, Any], None] = None,
        size: int = 0,
    ) -> HybridSearchRequest:
        """Compose the request.

        Raises:
            InvalidParameter: If neither a query nor a knn section survives
            EmbeddingFunctionRequired: If texts must be embedded without an adapter
            UnsupportedInTarget: If the document filter uses ``$regex``
        """
        query_model = _coerce(HybridSearchQuery, query, "query")
        knn_model = _coerce(HybridSearchKNN, knn, "knn")
        rank_model = _coerce(HybridSearchRank, rank, "rank")

        query_expr = self.build_query(query_model) if query_model is not None else None
        knn_expr = self.build_knn(knn_model) if knn_model is not None else None
        if query_expr is None and knn_expr is None:
            raise InvalidParameter("Hybrid search requires a query or knn section")

        rank_expr = self.build_rank(rank_model)
        if rank_expr is not None and (query_expr is None or knn_expr is None):
            self.logger.warning("Rank fusion has no effect unless both query and knn are present")

        request = HybridSearchRequest(
            query=query_expr,
            knn=knn_expr,
            rank=rank_expr,
            size=size if size > 0 else None,
        )
        self.logger.statement("search_parm", request.to_json())
        return request

    def build_query(self, query: HybridSearchQuery) -> Optional[SearchClause]:
        """Build the ``query`` section, or None when it filters nothing."""
        filters = self.where_compiler.to_where(query.where)
        document = self.where_compiler.to_where_document(query.where_document)
        if document is None:
            if not filters:
                return None
            if len(filters) == 1 and ("term" in filters[0] or "range" in filters[0]):
                return filters[0]
            return {"bool": {"filter": filters}}
        if filters:
            return {"bool": {"must": [document], "filter": filters}}
        return document

    def build_knn(self, knn: HybridSearchKNN) -> Dict[str, Any]:
        """Build the ``knn`` section, embedding texts when no vector was given."""
        vector = knn.precomputed_vector()
        if vector is None:
            vector = self._embed_first(knn.query_texts or [])
        expr: Dict[str, Any] = {
            "field": api_settings.EMBEDDING_COLUMN,
            "k": knn.size if knn.size > 0 else api_settings.DEFAULT_KNN_K,
            "query_vector": vector,
        }
        filters = self.where_compiler.to_where(knn.where)
        if filters:
            expr["filter"] = filters
        return expr

    @staticmethod
    def build_rank(rank: Optional[HybridSearchRank]) -> Optional[Dict[str, Any]]:
        if rank is None or rank.rrf is None:
            return None
        rrf: Dict[str, Any] = {}
        if rank.rrf.k > 0:
            rrf["rank_constant"] = rank.rrf.k
        return {"rrf": rrf}

    def _embed_first(self, texts: List[str]) -> List[float]:
        if not texts:
            raise InvalidParameter("knn requires query_vector, query_embeddings or query_texts", section="knn")
        if self.embedding is None:
            raise EmbeddingFunctionRequired(
                "knn.query_texts provided but no embedding adapter is configured",
                section="knn",
            )
        vectors = self.embedding.get_embeddings(texts)
        if not vectors or not vectors[0]:
            raise SearchError("Embedding adapter returned no vector", model=self.embedding.model_name)
        return list(vectors[0])
