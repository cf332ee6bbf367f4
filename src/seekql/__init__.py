"""
SeekQL compiles metadata filters, full-text predicates, vector queries and
hybrid search requests into SQL statements and ``DBMS_HYBRID_SEARCH``
descriptors for SeekDB / OceanBase collections.
"""

from .abc import EmbeddingAdapter, HybridSearchTransport, SQLExecutor
from .collection import Collection
from .querydsl import Q, parse_document_filter, parse_filter
from .querydsl.compilers import CompiledPredicate, search_where, sql_where
from .schema import (
    GetResult,
    HybridSearchKNN,
    HybridSearchQuery,
    HybridSearchRank,
    HybridSearchResult,
    QueryResult,
    RRFConfig,
    VectorQuerySpec,
)
from .search import DbmsHybridSearchTransport, HybridSearchRequest, HybridSearchRequestBuilder, VectorQueryBuilder

__version__ = "0.1.0"

__all__ = [
    "Collection",
    "Q",
    "parse_filter",
    "parse_document_filter",
    "CompiledPredicate",
    "sql_where",
    "search_where",
    "HybridSearchRequest",
    "HybridSearchRequestBuilder",
    "VectorQueryBuilder",
    "DbmsHybridSearchTransport",
    "EmbeddingAdapter",
    "SQLExecutor",
    "HybridSearchTransport",
    "GetResult",
    "QueryResult",
    "HybridSearchResult",
    "HybridSearchQuery",
    "HybridSearchKNN",
    "HybridSearchRank",
    "RRFConfig",
    "VectorQuerySpec",
]
