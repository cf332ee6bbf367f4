"""
Distance metric and SQL operator constants shared by builders and compilers.
"""


class DistanceMetric:
    L2 = "l2"
    COSINE = "cosine"
    INNER_PRODUCT = "inner_product"


DISTANCE_FUNC_MAP = {
    DistanceMetric.L2: "l2_distance",
    DistanceMetric.COSINE: "cosine_distance",
    DistanceMetric.INNER_PRODUCT: "inner_product",
}

# Unknown metrics fall back to L2, matching the server default
DEFAULT_DISTANCE_FUNC = "l2_distance"


def distance_func_name(metric: str) -> str:
    """Return the SQL distance function for a metric name."""
    return DISTANCE_FUNC_MAP.get((metric or "").lower(), DEFAULT_DISTANCE_FUNC)


HYBRID_SEARCH_PROCEDURE = "DBMS_HYBRID_SEARCH.GET_SQL"
