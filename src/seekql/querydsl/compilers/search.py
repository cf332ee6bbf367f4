"""Search descriptor where compiler.

Transforms filter ASTs into the term / range / bool query document consumed
by the server-side hybrid search procedure.

Mapping:
- ``$eq``              -> ``{"term": {field: value}}``
- ``$ne``              -> ``{"bool": {"must_not": [term]}}``
- ``$gt/$gte/$lt/$lte`` -> one ``{"range": {field: {...}}}`` per field and AND group
- ``$in``              -> ``{"bool": {"should": [term, ...]}}``
- ``$nin``             -> ``{"bool": {"must_not": [term, ...]}}``
- ``$and/$or/$not``    -> ``bool.must`` / ``bool.should`` / ``bool.must_not``

Document filters compile to ``query_string`` clauses over the document field.

Limitations:
- ``$regex`` has no full-text equivalent and raises ``UnsupportedInTarget``
"""

import json
from typing import Any, Callable, Dict, List, Optional, Sequence

from seekql.exceptions import InvalidFilter, UnsupportedInTarget
from seekql.settings import settings as api_settings
from seekql.types import SearchClause

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
from .base import BaseWhere
from .utils import json_extract_expr, normalize_document_input, normalize_where_input

__all__ = (
    "SearchWhereCompiler",
    "search_where",
    "metadata_field",
)

FieldFormatter = Callable[[str], str]


def metadata_field(field: str) -> str:
    """Address a metadata field the way the hybrid search procedure expects."""
    return json_extract_expr(field, api_settings.METADATA_COLUMN, ", ")


class SearchWhereCompiler(BaseWhere):
    """Compile filter ASTs into search descriptor clauses.

    Args:
        field_formatter: Maps a filter field name to the descriptor field key.
            Defaults to the bare field name.
        document_field: Field searched by document ``query_string`` clauses
    """

    def __init__(
        self,
        field_formatter: Optional[FieldFormatter] = None,
        document_field: Optional[str] = None,
    ) -> None:
        self.field_formatter: FieldFormatter = field_formatter or (lambda field: field)
        self.document_field = document_field or api_settings.DOCUMENT_COLUMN

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def compile(self, node: Optional[FilterNode]) -> List[SearchClause]:
        """Compile a metadata filter into a flat list of clauses.

        The caller combines the list, typically under ``bool.filter``.
        None compiles to an empty list.
        """
        if node is None:
            return []
        return self._compile(node)

    def compile_document(self, node: Optional[DocumentFilterNode]) -> Optional[SearchClause]:
        """Compile a document filter into one full-text clause (None if empty).

        Raises:
            UnsupportedInTarget: If the filter uses ``$regex``
        """
        if node is None:
            return None
        return self._document_clause(node)

    def to_where(self, where: Any) -> List[SearchClause]:
        """Parse (if needed) and compile a metadata filter."""
        return self.compile(normalize_where_input(where))

    def to_where_document(self, where_document: Any) -> Optional[SearchClause]:
        """Parse (if needed) and compile a document filter."""
        return self.compile_document(normalize_document_input(where_document))

    def to_expr(self, where: Any) -> str:
        """Render compiled clauses as JSON for debugging."""
        return json.dumps(self.to_where(where), ensure_ascii=False, sort_keys=True)

    # ------------------------------------------------------------------
    # Metadata filters
    # ------------------------------------------------------------------
    def _compile(self, node: FilterNode) -> List[SearchClause]:
        if isinstance(node, FieldCondition):
            return self._compile_group([node])
        if isinstance(node, LogicalAnd):
            clauses = self._compile_group(node.children)
            if node.implicit or not clauses:
                return clauses
            return [{"bool": {"must": clauses}}]
        if isinstance(node, LogicalOr):
            should = [self._collapse(self._compile(child)) for child in node.children]
            should = [clause for clause in should if clause is not None]
            if not should:
                return []
            return [{"bool": {"should": should}}]
        if isinstance(node, LogicalNot):
            inner = self._collapse(self._compile(node.child))
            if inner is None:
                raise InvalidFilter("$not requires a non-empty expression", key="$not")
            return [{"bool": {"must_not": [inner]}}]
        raise InvalidFilter("Unsupported filter node", node=type(node).__name__)

    def _compile_group(self, children: Sequence[FilterNode]) -> List[SearchClause]:
        """Compile AND-ed siblings, folding range bounds into one node per field."""
        clauses: List[SearchClause] = []
        ranges: Dict[str, Dict[str, Any]] = {}
        for child in self._flatten(children):
            if isinstance(child, FieldCondition) and child.operator.is_range:
                bound = child.operator.bound_name
                bounds = ranges.get(child.field)
                # A repeated bound starts a new range node rather than overwrite
                if bounds is None or bound in bounds:
                    bounds = {}
                    ranges[child.field] = bounds
                    clauses.append({"range": {self.field_formatter(child.field): bounds}})
                bounds[bound] = child.value
            elif isinstance(child, FieldCondition):
                clauses.append(self._condition_clause(child))
            else:
                clauses.extend(self._compile(child))
        return clauses

    def _flatten(self, children: Sequence[FilterNode]) -> List[FilterNode]:
        """Inline implicit conjunctions so their conditions share one group."""
        flat: List[FilterNode] = []
        for child in children:
            if isinstance(child, LogicalAnd) and child.implicit:
                flat.extend(self._flatten(child.children))
            else:
                flat.append(child)
        return flat

    def _condition_clause(self, cond: FieldCondition) -> SearchClause:
        field = self.field_formatter(cond.field)
        if cond.operator is Operator.EQ:
            return {"term": {field: cond.value}}
        if cond.operator is Operator.NE:
            return {"bool": {"must_not": [{"term": {field: cond.value}}]}}
        terms = [{"term": {field: value}} for value in cond.value]
        if cond.operator is Operator.IN:
            return {"bool": {"should": terms}}
        if cond.operator is Operator.NIN:
            return {"bool": {"must_not": terms}}
        return {"range": {field: {cond.operator.bound_name: cond.value}}}

    @staticmethod
    def _collapse(clauses: List[SearchClause]) -> Optional[SearchClause]:
        """Reduce a clause list to a single clause with AND semantics."""
        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return {"bool": {"must": clauses}}

    # ------------------------------------------------------------------
    # Document filters
    # ------------------------------------------------------------------
    def _query_string(self, query: str) -> SearchClause:
        return {"query_string": {"fields": [self.document_field], "query": query}}

    def _document_clause(self, node: DocumentFilterNode) -> Optional[SearchClause]:
        if isinstance(node, Contains):
            return self._query_string(node.text)
        if isinstance(node, Regex):
            raise UnsupportedInTarget(
                "$regex is unsupported in hybrid search",
                operator="$regex",
                target="search",
            )
        if isinstance(node, (DocumentAnd, DocumentOr)):
            is_and = isinstance(node, DocumentAnd)
            if node.children and all(isinstance(child, Contains) for child in node.children):
                joiner = " " if is_and else " OR "
                return self._query_string(joiner.join(child.text for child in node.children))
            clauses = [self._document_clause(child) for child in node.children]
            clauses = [clause for clause in clauses if clause is not None]
            if not clauses:
                return None
            if len(clauses) == 1:
                return clauses[0]
            return {"bool": {"must" if is_and else "should": clauses}}
        if isinstance(node, DocumentNot):
            inner = self._document_clause(node.child)
            if inner is None:
                raise InvalidFilter("$not requires a non-empty expression", key="$not")
            return {"bool": {"must_not": [inner]}}
        raise InvalidFilter("Unsupported document filter node", node=type(node).__name__)


search_where = SearchWhereCompiler()
