"""Compiler utility functions.

Provides helpers for normalizing compiler input, addressing JSON metadata
fields, escaping LIKE patterns and formatting SQL values for debug output.
"""

import re
from typing import Any, List, Optional, Tuple, Union

from ..ast import (
    Contains,
    DocumentAnd,
    DocumentFilterNode,
    DocumentNot,
    DocumentOr,
    FieldCondition,
    FilterNode,
    LogicalAnd,
    LogicalNot,
    LogicalOr,
    Regex,
)
from ..parser import parse_document_filter, parse_filter

_FILTER_NODES = (FieldCondition, LogicalAnd, LogicalOr, LogicalNot)
_DOCUMENT_NODES = (Contains, Regex, DocumentAnd, DocumentOr, DocumentNot)
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def normalize_where_input(where: Any) -> Optional[FilterNode]:
    """Normalize an AST node, Q object or dict to a ``FilterNode``.

    Args:
        where: FilterNode, Q object (with .to_dict() method), dict or None

    Returns:
        FilterNode ready for compilation, or None when there is no predicate

    Raises:
        InvalidFilter: If the input cannot be parsed
    """
    if isinstance(where, _FILTER_NODES):
        return where
    return parse_filter(where)


def normalize_document_input(where_document: Any) -> Optional[DocumentFilterNode]:
    """Normalize an AST node or dict to a ``DocumentFilterNode``."""
    if isinstance(where_document, _DOCUMENT_NODES):
        return where_document
    return parse_document_filter(where_document)


def json_path(field: str) -> str:
    """Build a JSON path (``$.a.b``) for a dotted field name.

    Segments that are not plain identifiers are double-quoted.
    """
    segments = []
    for part in field.split("."):
        segments.append(part if _IDENTIFIER_RE.match(part) else f'"{part}"')
    return "$." + ".".join(segments)


def json_extract_expr(field: str, column: str, separator: str = ",") -> str:
    """Address a metadata field inside the JSON ``column``.

    The SQL compiler uses ``,`` and the search descriptor ``, `` as separator,
    matching what each target expects verbatim.
    """
    return f"(JSON_EXTRACT({column}{separator}'{json_path(field)}'))"


def placeholders(count: int, placeholder: str = "?") -> str:
    """Return ``count`` comma-separated placeholders."""
    return ", ".join([placeholder] * count)


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so ``text`` matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def format_value_sql(v: Union[None, str, int, float, List[Any], Tuple[Any, ...]]) -> str:
    """Format Python value as an SQL literal.

    Only used for debug rendering; compiled statements always bind values.
    """
    if v is None:
        return "NULL"
    if isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    if isinstance(v, str):
        return "'" + v.replace("'", "''") + "'"
    if isinstance(v, (list, tuple)):
        inner = ", ".join(format_value_sql(x) for x in v)
        return f"({inner})"
    return str(v)
