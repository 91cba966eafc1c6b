"""
Parsed expression tree.

The validator turns the JSON-shaped wire form into these nodes once, so the
matcher never re-inspects raw dictionaries. Nodes are immutable and can be
turned back into wire form with ``to_expression()``.

Example:
    >>> node = FieldNode("age", OperatorMap((("$gte", 18, 18),)))
    >>> (node & FieldNode("city", Literal("Berlin"))).to_expression()
    {'$and': [{'age': {'$gte': 18}}, {'city': 'Berlin'}]}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .paths import split_path
from .patterns import has_negation, has_wildcard, remove_negation, wildcard_to_regex


# =============================================================================
# CONDITION VALUES
# =============================================================================

@dataclass(frozen=True)
class Literal:
    """
    A scalar compared for equality.

    String literals may carry ``%``/``_`` wildcards and a leading ``!``
    negation. ``pattern`` holds the anchored regex source for wildcard
    literals and is None otherwise.
    """
    raw: Any
    value: Any = None
    negated: bool = False
    pattern: Optional[str] = None

    @classmethod
    def parse(cls, raw: Any, allow_negation: bool = True) -> "Literal":
        if not isinstance(raw, str):
            return cls(raw, raw)
        negated = allow_negation and has_negation(raw)
        text = remove_negation(raw) if negated else raw
        pattern = wildcard_to_regex(text) if has_wildcard(text) else None
        return cls(raw, text, negated, pattern)

    @property
    def is_wildcard(self) -> bool:
        return self.pattern is not None

    def to_expression(self) -> Any:
        return self.raw


@dataclass(frozen=True)
class OperatorMap:
    """
    One or more operators applied to the same field, ANDed in order.

    Each entry is ``(key, operand, raw_operand)``: ``operand`` is what the
    operator's validator returned, ``raw_operand`` the wire value. The
    operand of a field-level ``$not`` is itself a Literal or OperatorMap.
    """
    operators: Tuple[Tuple[str, Any, Any], ...]

    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _, _ in self.operators)

    def to_expression(self) -> Dict[str, Any]:
        return {key: raw for key, _, raw in self.operators}


@dataclass(frozen=True)
class ArrayOr:
    """List shorthand: the field equals any member (implied ``$in``)."""
    members: Tuple[Literal, ...]

    @classmethod
    def parse(cls, values: Any) -> "ArrayOr":
        return cls(tuple(Literal.parse(v, allow_negation=False) for v in values))

    def to_expression(self) -> list:
        return [m.raw for m in self.members]


@dataclass(frozen=True)
class Nested:
    """Expression applied to the sub-record found at the field."""
    node: "ExpressionNode"

    def to_expression(self) -> Any:
        return self.node.to_expression()


ConditionValue = Union[Literal, OperatorMap, ArrayOr, Nested]


# =============================================================================
# EXPRESSION NODES
# =============================================================================

class ExpressionNode(ABC):
    """Base class of parsed expression nodes."""

    kind: str = "node"

    @abstractmethod
    def to_expression(self) -> Any:
        """Convert back to wire form."""
        pass

    def children(self) -> Tuple["ExpressionNode", ...]:
        return ()

    def __and__(self, other: "ExpressionNode") -> "AndNode":
        return AndNode((self, other))

    def __or__(self, other: "ExpressionNode") -> "OrNode":
        return OrNode((self, other))

    def __invert__(self) -> "NotNode":
        return NotNode(self)


@dataclass(frozen=True)
class AndNode(ExpressionNode):
    """Every child matches. Also the implicit form of a multi-key object."""
    items: Tuple[ExpressionNode, ...]
    # an implicit AND (plain object) renders as a merged dict
    implicit: bool = False
    kind = "and"

    def children(self) -> Tuple[ExpressionNode, ...]:
        return self.items

    def to_expression(self) -> Dict[str, Any]:
        if self.implicit:
            merged: Dict[str, Any] = {}
            for item in self.items:
                merged.update(item.to_expression())
            return merged
        return {"$and": [item.to_expression() for item in self.items]}


@dataclass(frozen=True)
class OrNode(ExpressionNode):
    items: Tuple[ExpressionNode, ...]
    kind = "or"

    def children(self) -> Tuple[ExpressionNode, ...]:
        return self.items

    def to_expression(self) -> Dict[str, Any]:
        return {"$or": [item.to_expression() for item in self.items]}


@dataclass(frozen=True)
class NotNode(ExpressionNode):
    item: ExpressionNode
    kind = "not"

    def children(self) -> Tuple[ExpressionNode, ...]:
        return (self.item,)

    def to_expression(self) -> Dict[str, Any]:
        return {"$not": self.item.to_expression()}


@dataclass(frozen=True)
class FieldNode(ExpressionNode):
    """Condition on the value found at a dot path."""
    path: str
    condition: ConditionValue
    segments: Tuple[str, ...] = field(init=False, repr=False, compare=False)
    kind = "field"

    def __post_init__(self):
        object.__setattr__(self, "segments", split_path(self.path))

    def children(self) -> Tuple[ExpressionNode, ...]:
        if isinstance(self.condition, Nested):
            return (self.condition.node,)
        return ()

    def to_expression(self) -> Dict[str, Any]:
        return {self.path: self.condition.to_expression()}


@dataclass(frozen=True)
class AnyPropertyNode(ExpressionNode):
    """Top-level scalar: some property of the record equals it."""
    literal: Literal
    kind = "any"

    def to_expression(self) -> Any:
        return self.literal.raw


@dataclass(frozen=True)
class PredicateNode(ExpressionNode):
    """Top-level callable used as the predicate itself."""
    predicate: Callable[[Any], Any]
    kind = "predicate"

    def to_expression(self) -> Any:
        return self.predicate


# The root of a validated expression
ValidExpression = ExpressionNode
