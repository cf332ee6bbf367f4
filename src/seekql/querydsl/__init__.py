"""Query DSL module.

Exports the `Q` builder, the filter parsers and the AST node types. Compiled
representations are handled by the `compilers` subpackage.
"""

from .ast import (
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
from .parser import parse_document_filter, parse_filter
from .q import Q

__all__ = (
    "Q",
    "parse_filter",
    "parse_document_filter",
    "Operator",
    "FieldCondition",
    "LogicalAnd",
    "LogicalOr",
    "LogicalNot",
    "FilterNode",
    "Contains",
    "Regex",
    "DocumentAnd",
    "DocumentOr",
    "DocumentNot",
    "DocumentFilterNode",
)
