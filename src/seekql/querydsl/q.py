"""Query DSL core utilities.

This module defines the `Q` class used to compose structured filter
expressions. A `Q` node can be turned into the universal dict representation,
into the typed filter AST, or compiled straight into SQL predicates or search
descriptor clauses.

Typical usage:

- Build filters: `Q(score__gte=18) & Q(score__lte=30)`
- Negate: `~Q(category__eq="AI")`
- Compile: `q.to_where("sql")` or `q.to_expr("search")`
"""

from __future__ import annotations

from copy import deepcopy
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from .parser import parse_filter

if TYPE_CHECKING:
    from .ast import FilterNode
    from .compilers.base import BaseWhere

BackendType = Literal["generic", "sql", "search"]


class Q:
    """Composable boolean query node.

    A `Q` instance holds leaf-level filters (e.g., `field__op=value`) or
    boolean combinations of child `Q` nodes using `$and` / `$or` connectors.

    - Use `&` to combine with logical AND.
    - Use `|` to combine with logical OR.
    - Use `~` to negate a node.

    Filter keys follow the `field__lookup` convention where lookup is one
    of: `eq`, `ne`, `gt`, `gte`, `lt`, `lte`, `in`, `nin`. Remaining double
    underscores address nested metadata (`info__lang` -> `info.lang`).
    """

    _OP_MAP = {
        "eq": "$eq",
        "ne": "$ne",
        "gt": "$gt",
        "gte": "$gte",
        "lt": "$lt",
        "lte": "$lte",
        "in": "$in",
        "nin": "$nin",
    }

    def __init__(self, negate: bool = False, **filters: Any):
        """Initialize a `Q` node.

        - negate: whether this node is negated.
        - filters: leaf-level filters using `field__lookup=value` pairs.
        """
        self.filters: Dict[str, Any] = filters
        self.children: List["Q"] = []
        self.connector = "$and"
        self.negate = negate

    def __and__(self, other: "Q") -> "Q":
        """Return a new node representing logical AND of two nodes."""
        node = Q()
        node.connector = "$and"
        node.children = [self, other]
        return node

    def __or__(self, other: "Q") -> "Q":
        """Return a new node representing logical OR of two nodes."""
        node = Q()
        node.connector = "$or"
        node.children = [self, other]
        return node

    def __invert__(self) -> "Q":
        """Return a negated copy of this node (logical NOT)."""
        q = deepcopy(self)
        q.negate = not self.negate
        return q

    def __str__(self) -> str:
        return str(self.to_dict())

    def __repr__(self) -> str:
        return f"<Q: {self.to_dict()}>"

    # -------------------
    # Universal dict representation
    # -------------------
    def _leaf_to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Convert leaf filters to the universal dict form.

        Returns a mapping where keys are field names (dots for nested)
        and values are dicts of universal operators (e.g., `$eq`).
        """
        result: Dict[str, Dict[str, Any]] = {}
        for key, value in self.filters.items():
            field, op = key, "$eq"
            if "__" in key:
                # "info__lang__eq" -> field="info__lang", lookup="eq"
                head, lookup = key.rsplit("__", 1)
                if lookup in self._OP_MAP:
                    field, op = head, self._OP_MAP[lookup]
            field_key = field.replace("__", ".")
            result.setdefault(field_key, {})[op] = list(value) if isinstance(value, tuple) else value
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Return the universal dict representation of this node.

        - Leaves become `{field: {op: value}}` mappings.
        - Boolean combinations use `{"$and": [...]}`, `{"$or": [...]}`.
        - Negation wraps with `{"$not": node}`.
        """
        if self.children:
            node = {self.connector: [child.to_dict() for child in self.children]}
        else:
            node = self._leaf_to_dict()
        if self.negate:
            return {"$not": node}
        return node

    def to_filter(self) -> Optional[FilterNode]:
        """Parse this node into the typed filter AST (None when empty)."""
        return parse_filter(self.to_dict())

    # -------------------
    # Compiled representations
    # -------------------

    def _get_where_compiler(self, backend: BackendType) -> Optional[BaseWhere]:
        """Return the where compiler for a backend, if any."""
        if backend == "sql":
            from .compilers.sql import sql_where

            return sql_where
        elif backend == "search":
            from .compilers.search import search_where

            return search_where
        else:
            return None

    def to_where(self, backend: BackendType = "generic") -> Any:
        """Compile to a backend-native "where" representation.

        - `sql` returns a `CompiledPredicate` (clause plus bound args).
        - `search` returns a list of search descriptor clauses.
        - `generic` returns the universal dict.
        """
        where_compiler = self._get_where_compiler(backend)
        if where_compiler:
            return where_compiler.to_where(self.to_filter())
        return self.to_dict()

    def to_expr(self, backend: BackendType = "generic") -> str:
        """Compile to a string expression for debugging.

        If a backend compiler is available, uses its string formatter;
        otherwise returns `str(universal_dict)`.
        """
        where_compiler = self._get_where_compiler(backend)
        if where_compiler:
            return where_compiler.to_expr(self.to_filter())
        return str(self.to_dict())
