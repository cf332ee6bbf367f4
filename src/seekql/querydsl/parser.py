"""Filter parser / normalizer.

Turns loosely-typed filter mappings (or ``Q`` objects) into the typed AST
from :mod:`seekql.querydsl.ast`. Unknown shapes are rejected here so the
compilers only ever see well-formed trees.

Metadata filter grammar::

    filter    := {entry, ...}
    entry     := "$and": [filter, ...]
               | "$or":  [filter, ...]
               | "$not": filter
               | <field>: scalar                 # normalized to $eq
               | <field>: {<op>: value, ...}     # op in $eq $ne $gt $gte $lt $lte $in $nin

Document filter grammar::

    doc       := {"$contains": str} | {"$regex": str}
               | {"$and": [doc, ...]} | {"$or": [doc, ...]} | {"$not": doc}
"""

from typing import Any, List, Mapping, Optional

from ..exceptions import InvalidFilter
from .ast import (
    RESERVED_FIELD_CHARS,
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
    Operator,
    Regex,
)

__all__ = ("parse_filter", "parse_document_filter")

_OPERATORS = {op.value: op for op in Operator}


def _as_mapping(where: Any, what: str) -> Optional[Mapping[str, Any]]:
    """Accept a mapping, a ``Q``-like object or None."""
    if where is None:
        return None
    if hasattr(where, "to_dict") and callable(where.to_dict) and not isinstance(where, Mapping):
        where = where.to_dict()
    if not isinstance(where, Mapping):
        raise InvalidFilter(f"{what} must be a mapping", got=type(where).__name__)
    return where


def parse_filter(where: Any) -> Optional[FilterNode]:
    """Parse a metadata filter mapping into a ``FilterNode``.

    Returns None for a missing or empty filter, meaning "no predicate".

    Raises:
        InvalidFilter: On unknown operators, wrong value shapes or malformed nesting
    """
    mapping = _as_mapping(where, "Filter")
    if not mapping:
        return None
    return _parse_mapping(mapping)


def _parse_mapping(mapping: Mapping[str, Any]) -> FilterNode:
    nodes: List[FilterNode] = []
    for key, value in mapping.items():
        if not isinstance(key, str):
            raise InvalidFilter("Filter keys must be strings", key=key)
        if key in ("$and", "$or"):
            nodes.append(_parse_logical_list(key, value))
        elif key == "$not":
            nodes.append(LogicalNot(child=_parse_child(key, value)))
        elif key.startswith("$"):
            raise InvalidFilter("Unsupported logical operator", key=key)
        else:
            nodes.append(_parse_field(key, value))
    if len(nodes) == 1:
        return nodes[0]
    return LogicalAnd(children=tuple(nodes), implicit=True)


def _parse_child(key: str, value: Any) -> FilterNode:
    if not isinstance(value, Mapping):
        raise InvalidFilter(f"{key} expects a filter mapping", key=key, got=type(value).__name__)
    if not value:
        raise InvalidFilter(f"{key} expects a non-empty filter mapping", key=key)
    return _parse_mapping(value)


def _parse_logical_list(key: str, value: Any) -> FilterNode:
    if not isinstance(value, (list, tuple)):
        raise InvalidFilter(f"{key} expects a list of filter mappings", key=key, got=type(value).__name__)
    children = tuple(_parse_child(key, item) for item in value)
    if key == "$and":
        return LogicalAnd(children=children)
    return LogicalOr(children=children)


def _parse_field(field: str, value: Any) -> FilterNode:
    _check_field_name(field)
    if isinstance(value, Mapping):
        if not value:
            raise InvalidFilter("Field condition must contain at least one operator", key=field)
        conditions: List[FilterNode] = []
        for op, operand in value.items():
            operator = _OPERATORS.get(op)
            if operator is None:
                raise InvalidFilter(
                    f"Unsupported operator {op}. Supported: {', '.join(sorted(_OPERATORS))}",
                    key=field,
                    operator=op,
                )
            conditions.append(FieldCondition(field=field, operator=operator, value=operand))
        if len(conditions) == 1:
            return conditions[0]
        return LogicalAnd(children=tuple(conditions), implicit=True)
    if isinstance(value, (list, tuple)):
        raise InvalidFilter("List values require an explicit $in or $nin operator", key=field)
    return FieldCondition(field=field, operator=Operator.EQ, value=value)


def _check_field_name(field: str) -> None:
    if not field:
        raise InvalidFilter("Field name must be non-empty")
    if any(ch in field for ch in RESERVED_FIELD_CHARS):
        raise InvalidFilter("Field name contains a quote, escape or placeholder character", key=field)
    if any(not part for part in field.split(".")):
        raise InvalidFilter("Field path contains an empty segment", key=field)


# ---------------------------------------------------------------------------
# Document filters
# ---------------------------------------------------------------------------


def parse_document_filter(where_document: Any) -> Optional[DocumentFilterNode]:
    """Parse a document (full-text) filter mapping into a ``DocumentFilterNode``.

    Returns None for a missing or empty filter.

    Raises:
        InvalidFilter: On unknown operators or malformed nesting
    """
    mapping = _as_mapping(where_document, "Document filter")
    if not mapping:
        return None
    return _parse_document_mapping(mapping)


def _parse_document_mapping(mapping: Mapping[str, Any]) -> DocumentFilterNode:
    nodes: List[DocumentFilterNode] = []
    for key, value in mapping.items():
        if key in ("$contains", "$regex"):
            if not isinstance(value, str):
                raise InvalidFilter(f"{key} expects a string", operator=key, got=type(value).__name__)
            nodes.append(Contains(text=value) if key == "$contains" else Regex(pattern=value))
        elif key in ("$and", "$or"):
            if not isinstance(value, (list, tuple)):
                raise InvalidFilter(f"{key} expects a list of document filters", key=key)
            children = tuple(_parse_document_child(key, item) for item in value)
            nodes.append(DocumentAnd(children=children) if key == "$and" else DocumentOr(children=children))
        elif key == "$not":
            nodes.append(DocumentNot(child=_parse_document_child(key, value)))
        else:
            raise InvalidFilter(
                "Unsupported document filter operator. Supported: $contains, $regex, $and, $or, $not",
                operator=key,
            )
    if len(nodes) == 1:
        return nodes[0]
    return DocumentAnd(children=tuple(nodes))


def _parse_document_child(key: str, value: Any) -> DocumentFilterNode:
    if not isinstance(value, Mapping) or not value:
        raise InvalidFilter(f"{key} expects non-empty document filter mappings", key=key)
    return _parse_document_mapping(value)
