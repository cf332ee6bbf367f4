from .base import BaseWhere, CompiledPredicate
from .search import SearchWhereCompiler, metadata_field, search_where
from .sql import SqlWhereCompiler, sql_where

__all__ = (
    "BaseWhere",
    "CompiledPredicate",
    "SqlWhereCompiler",
    "sql_where",
    "SearchWhereCompiler",
    "search_where",
    "metadata_field",
)
