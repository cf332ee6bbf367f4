"""Base compiler interface.

Defines the abstract contract both filter compilers follow, and the
``CompiledPredicate`` value they share.
"""

from abc import ABC, abstractmethod
from typing import Any, List, NamedTuple

__all__ = ("BaseWhere", "CompiledPredicate")


class CompiledPredicate(NamedTuple):
    """SQL boolean expression plus its bound arguments.

    ``args`` is ordered exactly like the placeholders in ``clause``, so both
    can be appended verbatim to a larger statement.
    """

    clause: str
    args: List[Any]

    @property
    def is_empty(self) -> bool:
        return not self.clause


class BaseWhere(ABC):
    """Abstract base class for where clause compilers.

    Subclasses implement `to_where` and `to_expr` for metadata filters and the
    matching `*_document` methods for full-text filters.
    """

    @abstractmethod
    def to_where(self, where: Any) -> Any:
        """
        Parse a filter mapping / Q / AST node and compile it.
        - CompiledPredicate for SQL
        - list of clauses for the search descriptor
        """
        raise NotImplementedError

    @abstractmethod
    def to_where_document(self, where_document: Any) -> Any:
        """Parse and compile a document (full-text) filter."""
        raise NotImplementedError

    @abstractmethod
    def to_expr(self, where: Any) -> str:
        """Render a compiled filter as a human-readable string for debugging."""
        raise NotImplementedError
