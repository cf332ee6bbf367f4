"""Typed filter AST.

Two closed node families are defined here:

- ``FilterNode`` for metadata predicates: ``FieldCondition`` leaves combined with
  ``LogicalAnd`` / ``LogicalOr`` / ``LogicalNot``.
- ``DocumentFilterNode`` for full-text predicates: ``Contains`` and ``Regex``
  leaves combined with ``DocumentAnd`` / ``DocumentOr`` / ``DocumentNot``.

Nodes are frozen pydantic models. They are built once by the parser (or by
hand) and never mutated, so one tree can be handed to both compilers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..exceptions import InvalidFilter

__all__ = (
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

_SCALAR_TYPES = (str, int, float, bool)

# Quotes, escapes and bind placeholders are never part of a field name
RESERVED_FIELD_CHARS = ("'", '"', "\\", "`", "?", "%")


class Operator(str, Enum):
    """Comparison operators supported in metadata filters."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"

    @property
    def is_range(self) -> bool:
        return self in (Operator.GT, Operator.GTE, Operator.LT, Operator.LTE)

    @property
    def is_membership(self) -> bool:
        return self in (Operator.IN, Operator.NIN)

    @property
    def bound_name(self) -> str:
        """Name of the bound in a range query (``gt``, ``gte``, ``lt``, ``lte``)."""
        return self.value[1:]


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Metadata filter nodes
# ---------------------------------------------------------------------------


class FieldCondition(_Node):
    """Leaf comparison ``field <operator> value``."""

    field: str
    operator: Operator
    value: Any = None

    @field_validator("value", mode="before")
    @classmethod
    def _freeze_sequences(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return tuple(value)
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> "FieldCondition":
        if not self.field:
            raise InvalidFilter("Field name must be non-empty", operator=self.operator.value)
        if any(ch in self.field for ch in RESERVED_FIELD_CHARS):
            raise InvalidFilter("Field name contains a reserved character", key=self.field)
        if self.operator.is_membership:
            if not isinstance(self.value, tuple):
                raise InvalidFilter(
                    f"Operator {self.operator.value} requires a list value",
                    key=self.field,
                    operator=self.operator.value,
                )
            if not self.value:
                raise InvalidFilter(
                    f"Operator {self.operator.value} requires a non-empty list",
                    key=self.field,
                    operator=self.operator.value,
                )
            for item in self.value:
                _check_scalar(self.field, self.operator, item)
        else:
            _check_scalar(self.field, self.operator, self.value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {self.field: {self.operator.value: value}}


class LogicalAnd(_Node):
    """Conjunction of child nodes.

    ``implicit`` marks conjunctions that came from a single mapping (several
    keys, or several operators on one field) rather than an explicit ``$and``.
    """

    children: Tuple[FilterNode, ...] = ()
    implicit: bool = False

    def to_dict(self) -> Dict[str, Any]:
        if self.implicit:
            merged = _merge_mappings([child.to_dict() for child in self.children])
            if merged is not None:
                return merged
        return {"$and": [child.to_dict() for child in self.children]}


class LogicalOr(_Node):
    """Disjunction of child nodes."""

    children: Tuple[FilterNode, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"$or": [child.to_dict() for child in self.children]}


class LogicalNot(_Node):
    """Negation of a single child node."""

    child: FilterNode

    def to_dict(self) -> Dict[str, Any]:
        return {"$not": self.child.to_dict()}


FilterNode = Union[FieldCondition, LogicalAnd, LogicalOr, LogicalNot]


# ---------------------------------------------------------------------------
# Document filter nodes
# ---------------------------------------------------------------------------


class Contains(_Node):
    """Substring / full-text match against the document column."""

    text: str

    @model_validator(mode="after")
    def _check_text(self) -> "Contains":
        if not self.text:
            raise InvalidFilter("$contains requires a non-empty string", operator="$contains")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"$contains": self.text}


class Regex(_Node):
    """Regular expression match against the document column."""

    pattern: str

    @model_validator(mode="after")
    def _check_pattern(self) -> "Regex":
        if not self.pattern:
            raise InvalidFilter("$regex requires a non-empty pattern", operator="$regex")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"$regex": self.pattern}


class DocumentAnd(_Node):
    children: Tuple[DocumentFilterNode, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"$and": [child.to_dict() for child in self.children]}


class DocumentOr(_Node):
    children: Tuple[DocumentFilterNode, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"$or": [child.to_dict() for child in self.children]}


class DocumentNot(_Node):
    child: DocumentFilterNode

    def to_dict(self) -> Dict[str, Any]:
        return {"$not": self.child.to_dict()}


DocumentFilterNode = Union[Contains, Regex, DocumentAnd, DocumentOr, DocumentNot]


for _model in (LogicalAnd, LogicalOr, LogicalNot, DocumentAnd, DocumentOr, DocumentNot):
    _model.model_rebuild()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_scalar(field: str, operator: Operator, value: Any) -> None:
    if not isinstance(value, _SCALAR_TYPES):
        raise InvalidFilter(
            f"Operator {operator.value} requires a string, number or boolean value",
            key=field,
            operator=operator.value,
            value=value,
        )


def _merge_mappings(parts: List[Dict[str, Any]]) -> Union[Dict[str, Any], None]:
    """Merge child mappings back into one mapping, or None on key collision."""
    merged: Dict[str, Any] = {}
    for part in parts:
        for key, value in part.items():
            if key not in merged:
                merged[key] = dict(value) if isinstance(value, dict) else value
                continue
            existing = merged[key]
            if key.startswith("$") or not isinstance(existing, dict) or not isinstance(value, dict):
                return None
            if set(existing) & set(value):
                return None
            existing.update(value)
    return merged
