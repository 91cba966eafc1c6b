"""
Datetime operators: $recent, $upcoming, $dayOfWeek, $timeOfDay, $age,
$isWeekday, $isWeekend, $isBefore, $isAfter.

Record values must be ``datetime.datetime`` or ``datetime.date``; anything
else never matches. "Now" comes from the context clock so results are
reproducible under test.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, FrozenSet, Optional, Tuple, TYPE_CHECKING

from ..core.exceptions import InvalidExpressionError
from ..utils.dates import (
    AGE_UNITS,
    as_datetime,
    calculate_age,
    day_of_week,
    hour_in_range,
    is_date_value,
    is_weekday,
    is_weekend,
)
from .comparison import ordered_pair
from .registry import OperatorFamily, OperatorInfo, OperatorRegistry

if TYPE_CHECKING:
    from ..query.context import EvaluationContext


RELATIVE_UNITS = ("days", "hours", "minutes")


@dataclass(frozen=True)
class AgeQuery:
    min: Optional[float] = None
    max: Optional[float] = None
    unit: str = "years"


# =============================================================================
# EVALUATION
# =============================================================================

def evaluate_recent(actual: Any, operand: dt.timedelta, ctx: "EvaluationContext") -> bool:
    """``now - operand <= value <= now``"""
    if not is_date_value(actual):
        return False
    value = as_datetime(actual)
    now = ctx.now_for(value)
    return now - operand <= value <= now


def evaluate_upcoming(actual: Any, operand: dt.timedelta, ctx: "EvaluationContext") -> bool:
    """``now <= value <= now + operand``"""
    if not is_date_value(actual):
        return False
    value = as_datetime(actual)
    now = ctx.now_for(value)
    return now <= value <= now + operand


def evaluate_day_of_week(actual: Any, operand: FrozenSet[int], ctx: "EvaluationContext") -> bool:
    return is_date_value(actual) and day_of_week(actual) in operand


def evaluate_time_of_day(actual: Any, operand: Tuple[int, int], ctx: "EvaluationContext") -> bool:
    # plain dates carry no wall-clock hour
    if not isinstance(actual, dt.datetime):
        return False
    start, end = operand
    return hour_in_range(actual.hour, start, end)


def evaluate_age(actual: Any, operand: AgeQuery, ctx: "EvaluationContext") -> bool:
    if not is_date_value(actual):
        return False
    age = calculate_age(actual, operand.unit, ctx.now_for(as_datetime(actual)))
    if operand.min is not None and age < operand.min:
        return False
    if operand.max is not None and age > operand.max:
        return False
    return True


def evaluate_is_weekday(actual: Any, operand: bool, ctx: "EvaluationContext") -> bool:
    return is_date_value(actual) and is_weekday(actual) == operand


def evaluate_is_weekend(actual: Any, operand: bool, ctx: "EvaluationContext") -> bool:
    return is_date_value(actual) and is_weekend(actual) == operand


def _compare_dates(actual: Any, operand: dt.date, ctx: "EvaluationContext", before: bool) -> bool:
    if not is_date_value(actual):
        return False
    pair = ordered_pair(actual, operand, ctx)
    if pair is None:
        return False
    try:
        return pair[0] < pair[1] if before else pair[0] > pair[1]
    except TypeError:
        return False


def evaluate_is_before(actual: Any, operand: dt.date, ctx: "EvaluationContext") -> bool:
    return _compare_dates(actual, operand, ctx, before=True)


def evaluate_is_after(actual: Any, operand: dt.date, ctx: "EvaluationContext") -> bool:
    return _compare_dates(actual, operand, ctx, before=False)


# =============================================================================
# OPERAND VALIDATORS
# =============================================================================

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_relative_time(operand: Any, path: str) -> dt.timedelta:
    """``{days?, hours?, minutes?}``, at least one positive; summed."""
    if not isinstance(operand, Mapping):
        raise InvalidExpressionError(
            "relative time needs an object like {'days': 7}", expression=operand, path=path
        )
    unknown = set(operand) - set(RELATIVE_UNITS)
    if unknown:
        raise InvalidExpressionError(
            f"unknown relative time keys: {sorted(unknown)}", expression=operand, path=path
        )

    amounts = {}
    for unit in RELATIVE_UNITS:
        value = operand.get(unit)
        if value is None:
            continue
        if not _is_number(value) or value < 0:
            raise InvalidExpressionError(
                f"'{unit}' must be a non-negative number, got {value!r}",
                expression=operand,
                path=path,
            )
        amounts[unit] = value

    if not any(v > 0 for v in amounts.values()):
        raise InvalidExpressionError(
            "relative time needs at least one positive amount", expression=operand, path=path
        )
    return dt.timedelta(**amounts)


def validate_day_of_week(operand: Any, path: str) -> FrozenSet[int]:
    days = list(operand) if isinstance(operand, (list, tuple)) else [operand]
    if not days or not all(_is_int(d) and 0 <= d <= 6 for d in days):
        raise InvalidExpressionError(
            f"$dayOfWeek needs integers 0-6 (0 = Sunday), got {operand!r}",
            expression=operand,
            path=path,
        )
    return frozenset(days)


def validate_time_of_day(operand: Any, path: str) -> Tuple[int, int]:
    if not isinstance(operand, Mapping) or "start" not in operand or "end" not in operand:
        raise InvalidExpressionError(
            "$timeOfDay needs {'start': hour, 'end': hour}", expression=operand, path=path
        )
    start, end = operand["start"], operand["end"]
    for hour in (start, end):
        if not _is_int(hour) or not 0 <= hour <= 23:
            raise InvalidExpressionError(
                f"$timeOfDay hours must be integers 0-23, got {hour!r}",
                expression=operand,
                path=path,
            )
    return start, end


def validate_age(operand: Any, path: str) -> AgeQuery:
    if not isinstance(operand, Mapping):
        raise InvalidExpressionError(
            "$age needs an object like {'min': 18}", expression=operand, path=path
        )
    unit = operand.get("unit", "years")
    if unit not in AGE_UNITS:
        raise InvalidExpressionError(
            f"$age unit must be one of {AGE_UNITS}, got {unit!r}", expression=operand, path=path
        )
    bounds = {}
    for key in ("min", "max"):
        value = operand.get(key)
        if value is None:
            continue
        if not _is_number(value) or value < 0:
            raise InvalidExpressionError(
                f"$age {key} must be a non-negative number, got {value!r}",
                expression=operand,
                path=path,
            )
        bounds[key] = value
    if "min" in bounds and "max" in bounds and bounds["min"] > bounds["max"]:
        raise InvalidExpressionError("$age min exceeds max", expression=operand, path=path)
    return AgeQuery(unit=unit, **bounds)


def validate_flag(operand: Any, path: str) -> bool:
    if not isinstance(operand, bool):
        raise InvalidExpressionError(
            f"operand must be true or false, got {operand!r}", expression=operand, path=path
        )
    return operand


def validate_date(operand: Any, path: str) -> dt.date:
    if not is_date_value(operand):
        raise InvalidExpressionError(
            f"operand must be a date or datetime, got {type(operand).__name__}",
            expression=operand,
            path=path,
        )
    return operand


def register(registry: OperatorRegistry) -> None:
    """Register the datetime family."""
    family = OperatorFamily.DATETIME
    for info in (
        OperatorInfo("$recent", family, evaluate_recent, validate_relative_time,
                     "RECENT", "within the last duration"),
        OperatorInfo("$upcoming", family, evaluate_upcoming, validate_relative_time,
                     "UPCOMING", "within the next duration"),
        OperatorInfo("$dayOfWeek", family, evaluate_day_of_week, validate_day_of_week,
                     "DAY OF WEEK", "weekday number, 0 = Sunday"),
        OperatorInfo("$timeOfDay", family, evaluate_time_of_day, validate_time_of_day,
                     "TIME OF DAY", "hour within [start, end)"),
        OperatorInfo("$age", family, evaluate_age, validate_age, "AGE",
                     "age in whole calendar units"),
        OperatorInfo("$isWeekday", family, evaluate_is_weekday, validate_flag,
                     "WEEKDAY", "falls on Monday-Friday"),
        OperatorInfo("$isWeekend", family, evaluate_is_weekend, validate_flag,
                     "WEEKEND", "falls on Saturday or Sunday"),
        OperatorInfo("$isBefore", family, evaluate_is_before, validate_date,
                     "BEFORE", "earlier than a date"),
        OperatorInfo("$isAfter", family, evaluate_is_after, validate_date,
                     "AFTER", "later than a date"),
    ):
        registry.register(info)
