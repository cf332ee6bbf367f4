"""Request and statement builders for the search paths."""

from .hybrid import HybridSearchRequest, HybridSearchRequestBuilder
from .statements import build_count, build_delete, build_get, build_where
from .transport import DbmsHybridSearchTransport
from .vector import VectorQueryBuilder

__all__ = (
    "HybridSearchRequest",
    "HybridSearchRequestBuilder",
    "VectorQueryBuilder",
    "DbmsHybridSearchTransport",
    "build_where",
    "build_get",
    "build_delete",
    "build_count",
)
