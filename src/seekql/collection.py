"""
Collection facade for query, get, delete and hybrid search operations.

This module provides `Collection`, a high-level class that compiles filters
and search requests and hands the resulting statements to pluggable SQL
execution, hybrid search transport and embedding collaborators.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

if TYPE_CHECKING:
    from seekql.querydsl.q import Q

from seekql.settings import settings

from .abc import EmbeddingAdapter, HybridSearchTransport, SQLExecutor
from .exceptions import EmbeddingFunctionRequired, InvalidParameter, SearchError
from .logger import Logger
from .schema import GetResult, HybridSearchKNN, HybridSearchQuery, HybridSearchRank, HybridSearchResult, QueryResult
from .search.hybrid import HybridSearchRequestBuilder
from .search.statements import build_count, build_delete, build_get, build_where
from .search.transport import DbmsHybridSearchTransport
from .search.vector import VectorQueryBuilder
from .types import Filter, Vector, Vectors
from .utils import get_table_name, lookup_column, normalize_texts, normalize_vectors, to_float

Where = Union[Filter, "Q", None]


class Collection:
    """High-level handle on one collection table.

    Attributes:
        name: Collection name
        table_name: Physical table name (``c$v1$<name>``)
        distance: Distance metric used for vector queries
        dimension: Expected embedding dimension, or None to skip the check
        executor: SQL execution collaborator
        transport: Hybrid search collaborator
        embedding: Embedding adapter, or None when callers pass vectors
    """

    def __init__(
        self,
        name: str,
        executor: SQLExecutor,
        transport: Optional[HybridSearchTransport] = None,
        embedding: Optional[EmbeddingAdapter] = None,
        distance: Optional[str] = None,
        dimension: Optional[int] = None,
    ) -> None:
        """Initialize a collection handle.

        Args:
            name: Collection name (letters, digits and underscores)
            executor: SQL executor used by query/get/delete/count
            transport: Hybrid search transport; defaults to running
                ``DBMS_HYBRID_SEARCH`` through ``executor``
            embedding: Adapter used to embed query texts
            distance: Metric name (default from settings)
            dimension: Expected vector dimension
        """
        self.name = name
        self.table_name = get_table_name(name)
        self.executor = executor
        self.transport = transport or DbmsHybridSearchTransport(executor)
        self.embedding = embedding
        self.distance = distance or settings.VECTOR_METRIC
        self.dimension = dimension
        self.logger = Logger(self.__class__.__name__)
        self._vector_builder = VectorQueryBuilder(self.table_name)
        self._hybrid_builder = HybridSearchRequestBuilder(embedding=embedding)
        self.logger.message(
            "Collection initialized: name=%s distance=%s embedding=%s",
            name,
            self.distance,
            embedding.__class__.__name__ if embedding else None,
        )

    def __repr__(self) -> str:
        return f"<Collection: {self.name}>"

    # ------------------------------------------------------------------
    # Vector query
    # ------------------------------------------------------------------
    def query(
        self,
        query_texts: Union[str, List[str], None] = None,
        query_embeddings: Union[Vector, Vectors, None] = None,
        n_results: Optional[int] = None,
        where: Where = None,
        where_document: Optional[Filter] = None,
    ) -> QueryResult:
        """Run one similarity query per query vector.

        Precomputed embeddings win over texts. Texts are embedded in a single
        batched call.

        Args:
            query_texts: Text or texts to embed
            query_embeddings: One vector or a batch of vectors
            n_results: Neighbours per query (default from settings)
            where: Metadata filter (dict or Q object)
            where_document: Document filter

        Returns:
            QueryResult with one inner list per query vector

        Raises:
            InvalidParameter: If neither texts nor embeddings are given
            EmbeddingFunctionRequired: If texts are given without an adapter
        """
        vectors = normalize_vectors(query_embeddings)
        if not vectors:
            texts = normalize_texts(query_texts)
            if not texts:
                raise InvalidParameter("query requires query_texts or query_embeddings")
            vectors = self._embed(texts)
        for vector in vectors:
            self._check_dimension(vector)

        limit = n_results if n_results is not None else settings.VECTOR_SEARCH_LIMIT
        predicate = build_where(None, where, where_document)
        result = QueryResult()
        for vector in vectors:
            sql, args = self._vector_builder.build(self.distance, vector, predicate, limit)
            self.logger.statement("query", sql, args)
            result.append_rows(self.executor.query(sql, args))
        self.logger.message("Query on %s: %d vector(s), n_results=%d", self.name, len(vectors), limit)
        return result

    # ------------------------------------------------------------------
    # Direct record access
    # ------------------------------------------------------------------
    def get(
        self,
        ids: Union[str, List[str], None] = None,
        where: Where = None,
        where_document: Optional[Filter] = None,
        limit: int = 0,
        offset: int = 0,
    ) -> GetResult:
        """Fetch records by ids and/or filters."""
        sql, args = build_get(self.table_name, normalize_texts(ids), where, where_document, limit, offset)
        self.logger.statement("get", sql, args)
        return GetResult.from_rows(self.executor.query(sql, args))

    def peek(self, limit: int = 0) -> GetResult:
        """Return the first few records without filtering.

        ``limit <= 0`` uses ``DEFAULT_PEEK_LIMIT``.
        """
        return self.get(limit=limit if limit > 0 else settings.DEFAULT_PEEK_LIMIT)

    def delete(
        self,
        ids: Union[str, List[str], None] = None,
        where: Where = None,
        where_document: Optional[Filter] = None,
    ) -> int:
        """Delete records by ids and/or filters.

        Returns:
            Number of deleted records as reported by the executor; 0 when
            nothing was selected
        """
        id_list = normalize_texts(ids)
        if build_where(id_list, where, where_document).is_empty:
            return 0
        sql, args = build_delete(self.table_name, id_list, where, where_document)
        self.logger.statement("delete", sql, args)
        deleted = self.executor.execute(sql, args)
        self.logger.message("Deleted %d record(s) from %s", deleted, self.name)
        return deleted

    def count(self) -> int:
        """Count records in the collection."""
        sql, args = build_count(self.table_name)
        self.logger.statement("count", sql, args)
        rows = self.executor.query(sql, args)
        if not rows:
            return 0
        return int(to_float(lookup_column(rows[0], "cnt", "count(*)")))

    # ------------------------------------------------------------------
    # Hybrid search
    # ------------------------------------------------------------------
    def hybrid_search(
        self,
        query: Union[HybridSearchQuery, Dict[str, Any], None] = None,
        knn: Union[HybridSearchKNN, Dict[str, Any], None] = None,
        rank: Union[HybridSearchRank, Dict[str, Any], None] = None,
        n_results: int = 0,
    ) -> HybridSearchResult:
        """Combine full-text and vector search, fused by the server.

        Args:
            query: Full-text / scalar section
            knn: Vector section
            rank: Rank fusion settings (``{"rrf": {"k": 60}}``)
            n_results: Final result count; 0 keeps the server default

        Returns:
            HybridSearchResult ordered best first
        """
        request = self._hybrid_builder.build(query=query, knn=knn, rank=rank, size=n_results)
        if request.knn is not None:
            self._check_dimension(request.knn["query_vector"])
        rows = self.transport.search(self.table_name, request.to_json())
        self.logger.message("Hybrid search on %s returned %d row(s)", self.name, len(rows))
        return HybridSearchResult.from_rows(rows)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _embed(self, texts: Sequence[str]) -> Vectors:
        if self.embedding is None:
            raise EmbeddingFunctionRequired(
                "query_texts provided but no embedding adapter is configured",
                collection_name=self.name,
            )
        vectors = self.embedding.get_embeddings(list(texts))
        if len(vectors) != len(texts):
            raise SearchError(
                "Embedding adapter returned a different number of vectors",
                model=self.embedding.model_name,
                expected=len(texts),
                got=len(vectors),
            )
        return [list(v) for v in vectors]

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if self.dimension is not None and len(vector) != self.dimension:
            raise InvalidParameter(
                "Query vector dimension mismatch",
                collection_name=self.name,
                expected=self.dimension,
                got=len(vector),
            )
