"""Vector similarity (ANN) statement builder.

The query vector is inlined as a ``[v1,v2,...]`` literal because the target
grammar does not accept it as a bound parameter. Only numeric entries are
allowed in that literal. Filter values and the limit remain bound.
"""

from typing import Any, List, Optional, Sequence, Tuple

from seekql.constants import distance_func_name
from seekql.exceptions import InvalidParameter
from seekql.querydsl.compilers.base import CompiledPredicate
from seekql.querydsl.compilers.sql import SqlWhereCompiler, sql_where
from seekql.schema import VectorQuerySpec
from seekql.settings import settings as api_settings
from seekql.utils import quote_table, vector_to_string

from .statements import build_where, select_columns

__all__ = ("VectorQueryBuilder",)


class VectorQueryBuilder:
    """Build ``ORDER BY <distance> APPROXIMATE LIMIT ?`` statements for one table."""

    def __init__(self, table_name: str, compiler: SqlWhereCompiler = sql_where) -> None:
        self.table_name = table_name
        self.compiler = compiler

    def build(
        self,
        distance: str,
        query_vector: Sequence[float],
        compiled_filter: Optional[CompiledPredicate] = None,
        limit: Optional[int] = None,
    ) -> Tuple[str, List[Any]]:
        """Build the statement and its ordered arguments.

        Args:
            distance: Metric name (``l2``, ``cosine``, ``inner_product``);
                unknown names use ``l2_distance``
            query_vector: Numeric query embedding
            compiled_filter: Predicate from the SQL compiler, or None
            limit: Number of neighbours; defaults to ``VECTOR_SEARCH_LIMIT``

        Raises:
            InvalidParameter: On an empty or non-numeric vector, or ``limit <= 0``
        """
        if not query_vector:
            raise InvalidParameter("Query vector must not be empty")
        if limit is None:
            limit = api_settings.VECTOR_SEARCH_LIMIT
        if limit <= 0:
            raise InvalidParameter("limit must be > 0", limit=limit)

        func = distance_func_name(distance)
        column = api_settings.EMBEDDING_COLUMN
        distance_expr = f"{func}({column}, '{vector_to_string(query_vector)}')"
        args: List[Any] = []
        where_sql = ""
        if compiled_filter is not None and not compiled_filter.is_empty:
            where_sql = f" WHERE {compiled_filter.clause}"
            args.extend(compiled_filter.args)
        args.append(limit)
        sql = (
            f"SELECT {select_columns()}, {distance_expr} AS distance"
            f" FROM {quote_table(self.table_name)}{where_sql}"
            f" ORDER BY {distance_expr} APPROXIMATE LIMIT {self.compiler.placeholder}"
        )
        return sql, args

    def build_spec(self, spec: VectorQuerySpec) -> Tuple[str, List[Any]]:
        """Compile the query's filters and build the statement."""
        predicate = build_where(None, spec.where, spec.where_document, self.compiler)
        return self.build(spec.distance, spec.query_vector, predicate, spec.limit)
