"""Hybrid search transport over a SQL executor.

``@search_parm`` is a session variable, so the executor must keep all three
statements on one connection (a transaction or a dedicated session).
"""

from typing import List

from seekql.abc import HybridSearchTransport, SQLExecutor
from seekql.constants import HYBRID_SEARCH_PROCEDURE
from seekql.logger import Logger
from seekql.types import Row
from seekql.utils import lookup_column, to_str

__all__ = ("DbmsHybridSearchTransport",)


class DbmsHybridSearchTransport(HybridSearchTransport):
    """Run hybrid searches through ``DBMS_HYBRID_SEARCH.GET_SQL``.

    1. ``SET @search_parm = '<json>'``
    2. ``SELECT DBMS_HYBRID_SEARCH.GET_SQL('<table>', @search_parm) AS query_sql FROM dual``
    3. execute the returned SQL
    """

    def __init__(self, executor: SQLExecutor) -> None:
        self.executor = executor
        self.logger = Logger(self.__class__.__name__)

    def search(self, table_name: str, search_parm: str) -> List[Row]:
        escaped = search_parm.replace("'", "''")
        self.executor.execute(f"SET @search_parm = '{escaped}'")

        rows = self.executor.query(
            f"SELECT {HYBRID_SEARCH_PROCEDURE}('{table_name}', @search_parm) AS query_sql FROM dual"
        )
        query_sql = to_str(lookup_column(rows[0], "query_sql")) if rows else ""
        query_sql = query_sql.strip().strip("'\"")
        if not query_sql:
            self.logger.message(f"Hybrid search on {table_name} produced no SQL")
            return []

        self.logger.statement("hybrid search", query_sql)
        return self.executor.query(query_sql)
