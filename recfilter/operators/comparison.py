"""
Comparison operators: $eq, $ne, $gt, $gte, $lt, $lte, $exists.

Equality never coerces across types: ``'30'`` does not equal ``30`` and
``True`` does not equal ``1``. Strings compare case-insensitively unless the
call is case sensitive. When the record value is a list and the operand is
not, the operator applies to the elements (MongoDB array semantics).
"""

from __future__ import annotations

import datetime as dt
import operator
from numbers import Real
from typing import Any, Callable, Optional, Tuple, TYPE_CHECKING

from ..core.exceptions import InvalidExpressionError
from ..query.paths import MISSING
from .registry import OperatorFamily, OperatorInfo, OperatorRegistry, accept_any

if TYPE_CHECKING:
    from ..query.context import EvaluationContext


def value_family(value: Any) -> str:
    """Coarse type family used to refuse cross-type comparisons."""
    if value is None:
        return "none"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, Real):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dt.datetime):
        return "datetime"
    if isinstance(value, dt.date):
        return "date"
    return "other"


def values_equal(actual: Any, expected: Any, ctx: "EvaluationContext") -> bool:
    """
    Strict, case-normalized equality of two values.

    A missing field equals only ``None``.
    """
    if actual is MISSING:
        return expected is None

    family = value_family(actual)
    if family != value_family(expected):
        return False
    if family == "string":
        return ctx.fold(actual) == ctx.fold(expected)
    try:
        return bool(actual == expected)
    except (TypeError, ValueError):
        return False


def equals_with_traversal(actual: Any, expected: Any, ctx: "EvaluationContext") -> bool:
    """``values_equal``, or any element equal when ``actual`` is a list."""
    if values_equal(actual, expected, ctx):
        return True
    if isinstance(actual, (list, tuple)) and not isinstance(expected, (list, tuple)):
        return any(values_equal(item, expected, ctx) for item in actual)
    return False


def ordered_pair(a: Any, b: Any, ctx: "EvaluationContext") -> Optional[Tuple[Any, Any]]:
    """
    Return ``(a, b)`` ready for ``<``/``>`` or None if they are not
    mutually ordered (number, datetime/date, or string).
    """
    fa, fb = value_family(a), value_family(b)

    if fa == fb == "number":
        return a, b
    if fa == fb == "string":
        return ctx.fold(a), ctx.fold(b)
    if fa in ("datetime", "date") and fb in ("datetime", "date"):
        if fa != fb:
            a = a if fa == "datetime" else dt.datetime(a.year, a.month, a.day)
            b = b if fb == "datetime" else dt.datetime(b.year, b.month, b.day)
        return a, b
    return None


def _ordering(compare: Callable[[Any, Any], bool]):
    def evaluate(actual: Any, operand: Any, ctx: "EvaluationContext") -> bool:
        if actual is MISSING or actual is None:
            return False
        if isinstance(actual, (list, tuple)):
            return any(evaluate(item, operand, ctx) for item in actual)
        pair = ordered_pair(actual, operand, ctx)
        if pair is None:
            return False
        try:
            return bool(compare(*pair))
        except TypeError:
            # naive vs aware datetimes
            return False
    return evaluate


def evaluate_eq(actual: Any, operand: Any, ctx: "EvaluationContext") -> bool:
    return equals_with_traversal(actual, operand, ctx)


def evaluate_ne(actual: Any, operand: Any, ctx: "EvaluationContext") -> bool:
    return not equals_with_traversal(actual, operand, ctx)


def evaluate_exists(actual: Any, operand: bool, ctx: "EvaluationContext") -> bool:
    return (actual is not MISSING) == operand


evaluate_gt = _ordering(operator.gt)
evaluate_gte = _ordering(operator.ge)
evaluate_lt = _ordering(operator.lt)
evaluate_lte = _ordering(operator.le)


# =============================================================================
# OPERAND VALIDATORS
# =============================================================================

def validate_orderable(operand: Any, path: str) -> Any:
    if value_family(operand) not in ("number", "string", "datetime", "date"):
        raise InvalidExpressionError(
            f"ordering operators need a number, string, date or datetime operand, "
            f"got {type(operand).__name__}",
            expression=operand,
            path=path,
        )
    return operand


def validate_bool_operand(operand: Any, path: str) -> bool:
    if not isinstance(operand, bool):
        raise InvalidExpressionError(
            f"operand must be true or false, got {operand!r}", expression=operand, path=path
        )
    return operand


def register(registry: OperatorRegistry) -> None:
    """Register the comparison family."""
    family = OperatorFamily.COMPARISON
    for info in (
        OperatorInfo("$eq", family, evaluate_eq, accept_any, "=", "equal to"),
        OperatorInfo("$ne", family, evaluate_ne, accept_any, "!=", "not equal to"),
        OperatorInfo("$gt", family, evaluate_gt, validate_orderable, ">", "greater than"),
        OperatorInfo("$gte", family, evaluate_gte, validate_orderable, ">=", "greater than or equal"),
        OperatorInfo("$lt", family, evaluate_lt, validate_orderable, "<", "less than"),
        OperatorInfo("$lte", family, evaluate_lte, validate_orderable, "<=", "less than or equal"),
        OperatorInfo("$exists", family, evaluate_exists, validate_bool_operand, "EXISTS",
                     "field is present"),
    ):
        registry.register(info)
