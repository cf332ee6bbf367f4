"""SQL where compiler.

Transforms filter ASTs into parameterized SQL boolean expressions for the
collection tables.

Metadata fields live in a JSON column and are addressed with
``(JSON_EXTRACT(metadata,'$.field'))``. Document filters address the text
column directly.

Supports:
- Comparison: =, !=, >, >=, <, <=
- Membership: IN, NOT IN
- Logical: AND, OR, NOT
- Document: LIKE (substring), REGEXP

Every value is bound through a placeholder, never inlined. Same-field range
conditions are kept as sibling predicates; SQL accepts the compound form as is.
"""

from typing import Any, List, Optional

from seekql.exceptions import InvalidFilter
from seekql.settings import settings as api_settings

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
    Operator,
    Regex,
)
from .base import BaseWhere, CompiledPredicate
from .utils import (
    escape_like,
    format_value_sql,
    json_extract_expr,
    normalize_document_input,
    normalize_where_input,
    placeholders,
)

__all__ = (
    "SqlWhereCompiler",
    "sql_where",
)


class SqlWhereCompiler(BaseWhere):
    """Compile filter ASTs into SQL WHERE fragments with ordered arguments.

    Args:
        metadata_column: JSON column holding document metadata
        document_column: Text column holding document content
        placeholder: Bind placeholder emitted per argument (``?`` or ``%s``)
    """

    # Operator mapping from universal to SQL syntax
    _OP_MAP = {
        Operator.EQ: "=",
        Operator.NE: "!=",
        Operator.GT: ">",
        Operator.GTE: ">=",
        Operator.LT: "<",
        Operator.LTE: "<=",
        Operator.IN: "IN",
        Operator.NIN: "NOT IN",
    }

    def __init__(
        self,
        metadata_column: Optional[str] = None,
        document_column: Optional[str] = None,
        placeholder: str = "?",
    ) -> None:
        self.metadata_column = metadata_column or api_settings.METADATA_COLUMN
        self.document_column = document_column or api_settings.DOCUMENT_COLUMN
        self.placeholder = placeholder

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def compile(self, node: Optional[FilterNode]) -> CompiledPredicate:
        """Compile a metadata filter AST; None compiles to an empty predicate."""
        args: List[Any] = []
        if node is None:
            return CompiledPredicate("", args)
        clause = self._node_to_sql(node, args)
        return CompiledPredicate(clause, args)

    def compile_document(self, node: Optional[DocumentFilterNode]) -> CompiledPredicate:
        """Compile a document filter AST; None compiles to an empty predicate."""
        args: List[Any] = []
        if node is None:
            return CompiledPredicate("", args)
        clause = self._document_to_sql(node, args)
        return CompiledPredicate(clause, args)

    def to_where(self, where: Any) -> CompiledPredicate:
        """Parse (if needed) and compile a metadata filter.

        Args:
            where: FilterNode, Q object, universal dict or None

        Returns:
            CompiledPredicate with clause and ordered args
        """
        return self.compile(normalize_where_input(where))

    def to_where_document(self, where_document: Any) -> CompiledPredicate:
        """Parse (if needed) and compile a document filter."""
        return self.compile_document(normalize_document_input(where_document))

    def to_expr(self, where: Any) -> str:
        """Render the compiled clause with arguments inlined, for debugging only."""
        clause, args = self.to_where(where)
        return self._interpolate(clause, args)

    # ------------------------------------------------------------------
    # Metadata filters
    # ------------------------------------------------------------------
    def field_expr(self, field: str) -> str:
        return json_extract_expr(field, self.metadata_column, ",")

    def _node_to_sql(self, node: FilterNode, args: List[Any]) -> str:
        """Recursively transform a node, appending bound values to ``args``."""
        if isinstance(node, FieldCondition):
            return self._condition_to_sql(node, args)
        if isinstance(node, (LogicalAnd, LogicalOr)):
            joiner = " AND " if isinstance(node, LogicalAnd) else " OR "
            parts = [part for part in (self._node_to_sql(child, args) for child in node.children) if part]
            if not parts:
                return ""
            return "(" + joiner.join(parts) + ")"
        if isinstance(node, LogicalNot):
            inner = self._node_to_sql(node.child, args)
            if not inner:
                raise InvalidFilter("$not requires a non-empty expression", key="$not")
            return f"NOT ({inner})"
        raise InvalidFilter("Unsupported filter node", node=type(node).__name__)

    def _condition_to_sql(self, cond: FieldCondition, args: List[Any]) -> str:
        ident = self.field_expr(cond.field)
        sql_op = self._OP_MAP[cond.operator]
        if cond.operator.is_membership:
            values = list(cond.value)
            if not values:
                raise InvalidFilter(
                    f"Operator {cond.operator.value} requires a non-empty list",
                    key=cond.field,
                    operator=cond.operator.value,
                )
            args.extend(values)
            return f"{ident} {sql_op} ({placeholders(len(values), self.placeholder)})"
        args.append(cond.value)
        return f"{ident} {sql_op} {self.placeholder}"

    # ------------------------------------------------------------------
    # Document filters
    # ------------------------------------------------------------------
    def _document_to_sql(self, node: DocumentFilterNode, args: List[Any]) -> str:
        if isinstance(node, Contains):
            args.append(f"%{escape_like(node.text)}%")
            return f"{self.document_column} LIKE {self.placeholder}"
        if isinstance(node, Regex):
            args.append(node.pattern)
            return f"{self.document_column} REGEXP {self.placeholder}"
        if isinstance(node, (DocumentAnd, DocumentOr)):
            joiner = " AND " if isinstance(node, DocumentAnd) else " OR "
            parts = [part for part in (self._document_to_sql(child, args) for child in node.children) if part]
            if not parts:
                return ""
            return "(" + joiner.join(parts) + ")"
        if isinstance(node, DocumentNot):
            inner = self._document_to_sql(node.child, args)
            if not inner:
                raise InvalidFilter("$not requires a non-empty expression", key="$not")
            return f"NOT ({inner})"
        raise InvalidFilter("Unsupported document filter node", node=type(node).__name__)

    def _interpolate(self, clause: str, args: List[Any]) -> str:
        pieces = clause.split(self.placeholder)
        out = [pieces[0]]
        for value, piece in zip(args, pieces[1:]):
            out.append(format_value_sql(value))
            out.append(piece)
        return "".join(out)


sql_where = SqlWhereCompiler()
