"""SQL statement builders for the direct get / delete / count paths.

Every builder returns ``(sql, args)`` with values bound through placeholders.
Table names are expected unquoted (``c$v1$<collection>``) and are quoted here.
"""

from typing import Any, List, Optional, Sequence, Tuple

from seekql.exceptions import InvalidParameter
from seekql.querydsl.compilers.base import CompiledPredicate
from seekql.querydsl.compilers.sql import SqlWhereCompiler, sql_where
from seekql.querydsl.compilers.utils import placeholders
from seekql.settings import settings as api_settings
from seekql.utils import quote_table

__all__ = (
    "select_columns",
    "build_where",
    "build_get",
    "build_delete",
    "build_count",
)

Statement = Tuple[str, List[Any]]


def select_columns() -> str:
    """Column list shared by every row-returning statement."""
    return ", ".join(
        (
            api_settings.ID_COLUMN,
            api_settings.DOCUMENT_COLUMN,
            api_settings.METADATA_COLUMN,
            api_settings.EMBEDDING_COLUMN,
        )
    )


def build_where(
    ids: Optional[Sequence[str]] = None,
    where: Any = None,
    where_document: Any = None,
    compiler: SqlWhereCompiler = sql_where,
) -> CompiledPredicate:
    """Join id, metadata and document predicates with AND.

    Returns an empty predicate when nothing filters.
    """
    conditions: List[str] = []
    args: List[Any] = []
    if ids:
        id_list = [str(i) for i in ids]
        conditions.append(
            f"{api_settings.ID_COLUMN} IN ({placeholders(len(id_list), compiler.placeholder)})"
        )
        args.extend(id_list)
    for predicate in (compiler.to_where(where), compiler.to_where_document(where_document)):
        if not predicate.is_empty:
            conditions.append(predicate.clause)
            args.extend(predicate.args)
    return CompiledPredicate(" AND ".join(conditions), args)


def _where_sql(predicate: CompiledPredicate) -> str:
    return f" WHERE {predicate.clause}" if not predicate.is_empty else ""


def build_get(
    table_name: str,
    ids: Optional[Sequence[str]] = None,
    where: Any = None,
    where_document: Any = None,
    limit: int = 0,
    offset: int = 0,
    compiler: SqlWhereCompiler = sql_where,
) -> Statement:
    """Build a SELECT for records matching ids and filters.

    ``limit <= 0`` falls back to ``DEFAULT_GET_LIMIT``.
    """
    if offset < 0:
        raise InvalidParameter("offset must be >= 0", offset=offset)
    predicate = build_where(ids, where, where_document, compiler)
    sql = (
        f"SELECT {select_columns()} FROM {quote_table(table_name)}{_where_sql(predicate)}"
        f" LIMIT {compiler.placeholder} OFFSET {compiler.placeholder}"
    )
    size = limit if limit > 0 else api_settings.DEFAULT_GET_LIMIT
    return sql, [*predicate.args, size, offset]


def build_delete(
    table_name: str,
    ids: Optional[Sequence[str]] = None,
    where: Any = None,
    where_document: Any = None,
    compiler: SqlWhereCompiler = sql_where,
) -> Statement:
    """Build a DELETE for records matching ids and filters.

    Raises:
        InvalidParameter: If no id or filter selects anything
    """
    predicate = build_where(ids, where, where_document, compiler)
    if predicate.is_empty:
        raise InvalidParameter("Delete requires ids, where or where_document", table=table_name)
    return f"DELETE FROM {quote_table(table_name)}{_where_sql(predicate)}", list(predicate.args)


def build_count(table_name: str) -> Statement:
    return f"SELECT COUNT(*) AS cnt FROM {quote_table(table_name)}", []
