"""
Record matching.

The ``Matcher`` walks a parsed expression tree against one record at a time.
Operator keys are dispatched through the registry, so custom operators need
no changes here.

Missing fields follow MongoDB semantics: a literal or ``$eq`` matches a
missing field only when the operand is None, ``$ne``/``$nin``/negated
literals match it unless None is involved, ``$exists: false`` matches it, and
every other operator is False.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from ..operators.comparison import equals_with_traversal
from ..operators.registry import OperatorRegistry, get_default_registry
from .context import EvaluationContext
from .expression import (
    AndNode,
    AnyPropertyNode,
    ArrayOr,
    ConditionValue,
    ExpressionNode,
    FieldNode,
    Literal,
    Nested,
    NotNode,
    OperatorMap,
    OrNode,
    PredicateNode,
)
from .paths import MISSING, resolve_path


PRIMITIVE_TYPES = (str, bytes, int, float, bool)


def record_properties(record: Any):
    """Top-level property values of a record (mapping values or attributes)."""
    if isinstance(record, Mapping):
        return list(record.values())
    try:
        return list(vars(record).values())
    except TypeError:
        return []


class Matcher:
    """
    Evaluates parsed expressions against records.

    Args:
        registry: Operator registry used for ``$`` keys

    Example:
        >>> from recfilter.query.validator import validate
        >>> node = validate({"age": {"$gt": 30}})
        >>> Matcher().matches({"age": 42}, node, EvaluationContext())
        True
    """

    def __init__(self, registry: Optional[OperatorRegistry] = None):
        self.registry = registry or get_default_registry()
        self._dispatch: Dict[type, Callable[[Any, Any, EvaluationContext], bool]] = {
            AndNode: self._eval_and,
            OrNode: self._eval_or,
            NotNode: self._eval_not,
            FieldNode: self._eval_field,
            AnyPropertyNode: self._eval_any_property,
            PredicateNode: self._eval_predicate,
        }

    def matches(self, record: Any, node: ExpressionNode, ctx: EvaluationContext) -> bool:
        """True if ``record`` satisfies ``node``."""
        return self.evaluate(record, node, ctx)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def evaluate(self, record: Any, node: ExpressionNode, ctx: EvaluationContext) -> bool:
        return self._dispatch[type(node)](record, node, ctx)

    def _eval_and(self, record: Any, node: AndNode, ctx: EvaluationContext) -> bool:
        for item in node.items:
            if not self.evaluate(record, item, ctx):
                return False
        return True

    def _eval_or(self, record: Any, node: OrNode, ctx: EvaluationContext) -> bool:
        for item in node.items:
            if self.evaluate(record, item, ctx):
                return True
        return False

    def _eval_not(self, record: Any, node: NotNode, ctx: EvaluationContext) -> bool:
        return not self.evaluate(record, node.item, ctx)

    def _eval_field(self, record: Any, node: FieldNode, ctx: EvaluationContext) -> bool:
        value = resolve_path(record, node.segments)
        return self.evaluate_condition(value, node.condition, ctx, node.path)

    def _eval_any_property(self, record: Any, node: AnyPropertyNode, ctx: EvaluationContext) -> bool:
        literal = node.literal
        if record is None:
            return False
        if isinstance(record, PRIMITIVE_TYPES):
            candidates = [record]
        else:
            candidates = record_properties(record)

        hit = any(self.literal_hit(value, literal, ctx) for value in candidates)
        return not hit if literal.negated else hit

    def _eval_predicate(self, record: Any, node: PredicateNode, ctx: EvaluationContext) -> bool:
        return bool(node.predicate(record))

    # -------------------------------------------------------------------------
    # Conditions
    # -------------------------------------------------------------------------

    def evaluate_condition(
        self,
        value: Any,
        condition: ConditionValue,
        ctx: EvaluationContext,
        path: str = "",
    ) -> bool:
        """Evaluate a field condition against an already resolved value."""
        if isinstance(condition, Literal):
            return self.match_literal(value, condition, ctx)
        if isinstance(condition, OperatorMap):
            return self._eval_operator_map(value, condition, ctx, path)
        if isinstance(condition, ArrayOr):
            return self._eval_array_or(value, condition, ctx)
        if isinstance(condition, Nested):
            return self._eval_nested(value, condition, ctx)
        return False

    def match_literal(self, value: Any, literal: Literal, ctx: EvaluationContext) -> bool:
        hit = self.literal_hit(value, literal, ctx)
        return not hit if literal.negated else hit

    def literal_hit(self, value: Any, literal: Literal, ctx: EvaluationContext) -> bool:
        """Positive (un-negated) literal test, with array traversal."""
        if literal.is_wildcard:
            compiled = ctx.regex(literal.pattern)
            if compiled is None:
                return False
            if isinstance(value, str):
                return compiled.match(value) is not None
            if isinstance(value, (list, tuple)):
                return any(isinstance(v, str) and compiled.match(v) is not None for v in value)
            return False

        comparator = ctx.options.custom_comparator
        if comparator is not None and value is not MISSING:
            return bool(comparator(value, literal.value))
        return equals_with_traversal(value, literal.value, ctx)

    def _eval_array_or(self, value: Any, condition: ArrayOr, ctx: EvaluationContext) -> bool:
        return any(self.literal_hit(value, member, ctx) for member in condition.members)

    def _eval_operator_map(
        self,
        value: Any,
        condition: OperatorMap,
        ctx: EvaluationContext,
        path: str,
    ) -> bool:
        for key, operand, _ in condition.operators:
            if not self.apply_operator(key, value, operand, ctx, path):
                return False
        return True

    def apply_operator(
        self,
        key: str,
        value: Any,
        operand: Any,
        ctx: EvaluationContext,
        path: str = "",
    ) -> bool:
        """Run a single operator. Field-level ``$not`` negates its condition."""
        if key == "$not":
            return not self.evaluate_condition(value, operand, ctx, path)

        try:
            info = self.registry.get(key)
        except KeyError:
            # operator removed after the expression was validated
            return False
        try:
            return bool(info.evaluate(value, operand, ctx))
        except (TypeError, ValueError, AttributeError):
            return False

    def _eval_nested(self, value: Any, condition: Nested, ctx: EvaluationContext) -> bool:
        if value is MISSING or value is None or isinstance(value, PRIMITIVE_TYPES):
            return False
        if isinstance(value, (list, tuple)):
            return any(
                self._eval_nested(item, condition, ctx)
                for item in value
                if not isinstance(item, (list, tuple))
            )
        return self.evaluate(value, condition.node, ctx)


