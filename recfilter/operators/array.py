"""
Array operators: $in, $nin, $contains, $size, $all.
"""

from __future__ import annotations

from typing import Any, Sequence, TYPE_CHECKING

from ..core.exceptions import InvalidExpressionError
from ..query.paths import MISSING
from .comparison import equals_with_traversal, values_equal
from .registry import OperatorFamily, OperatorInfo, OperatorRegistry, accept_any

if TYPE_CHECKING:
    from ..query.context import EvaluationContext


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def evaluate_in(actual: Any, operand: Sequence[Any], ctx: "EvaluationContext") -> bool:
    """Value (or any element of an array value) equals one of the operand values."""
    return any(equals_with_traversal(actual, candidate, ctx) for candidate in operand)


def evaluate_nin(actual: Any, operand: Sequence[Any], ctx: "EvaluationContext") -> bool:
    return not evaluate_in(actual, operand, ctx)


def evaluate_contains(actual: Any, operand: Any, ctx: "EvaluationContext") -> bool:
    """
    Membership for array values, substring search for string values.
    """
    if _is_array(actual):
        return any(values_equal(item, operand, ctx) for item in actual)
    if isinstance(actual, str) and isinstance(operand, str):
        return ctx.fold(operand) in ctx.fold(actual)
    return False


def evaluate_size(actual: Any, operand: int, ctx: "EvaluationContext") -> bool:
    return _is_array(actual) and len(actual) == operand


def evaluate_all(actual: Any, operand: Sequence[Any], ctx: "EvaluationContext") -> bool:
    """Array value contains every operand value."""
    if actual is MISSING or not _is_array(actual):
        return False
    return all(
        any(values_equal(item, wanted, ctx) for item in actual)
        for wanted in operand
    )


# =============================================================================
# OPERAND VALIDATORS
# =============================================================================

def validate_list(operand: Any, path: str) -> tuple:
    if not isinstance(operand, (list, tuple, set, frozenset)):
        raise InvalidExpressionError(
            f"operand must be an array, got {type(operand).__name__}",
            expression=operand,
            path=path,
        )
    return tuple(operand)


def validate_size(operand: Any, path: str) -> int:
    if isinstance(operand, bool) or not isinstance(operand, int) or operand < 0:
        raise InvalidExpressionError(
            f"$size needs a non-negative integer, got {operand!r}",
            expression=operand,
            path=path,
        )
    return operand


def register(registry: OperatorRegistry) -> None:
    """Register the array family."""
    family = OperatorFamily.ARRAY
    for info in (
        OperatorInfo("$in", family, evaluate_in, validate_list, "IN", "value in list"),
        OperatorInfo("$nin", family, evaluate_nin, validate_list, "NOT IN", "value not in list"),
        OperatorInfo("$contains", family, evaluate_contains, accept_any, "CONTAINS",
                     "array contains value, or string contains substring"),
        OperatorInfo("$size", family, evaluate_size, validate_size, "SIZE", "array length"),
        OperatorInfo("$all", family, evaluate_all, validate_list, "ALL",
                     "array contains every value"),
    ):
        registry.register(info)
