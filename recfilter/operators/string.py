"""
String operators: $startsWith, $endsWith, $regex, $match.

Non-string record values never match. ``$regex`` and ``$match`` are
aliases; both take a pattern source or a compiled pattern and use
``re.search`` semantics.
"""

from __future__ import annotations

import re
from typing import Any, Pattern, Union, TYPE_CHECKING

from ..core.exceptions import InvalidExpressionError
from ..query.patterns import DEFAULT_MAX_REGEX_LENGTH, check_regex_safety
from .registry import OperatorFamily, OperatorInfo, OperatorRegistry

if TYPE_CHECKING:
    from ..query.context import EvaluationContext


def evaluate_starts_with(actual: Any, operand: str, ctx: "EvaluationContext") -> bool:
    if not isinstance(actual, str):
        return False
    return ctx.fold(actual).startswith(ctx.fold(operand))


def evaluate_ends_with(actual: Any, operand: str, ctx: "EvaluationContext") -> bool:
    if not isinstance(actual, str):
        return False
    return ctx.fold(actual).endswith(ctx.fold(operand))


def evaluate_regex(actual: Any, operand: Union[str, Pattern], ctx: "EvaluationContext") -> bool:
    if not isinstance(actual, str):
        return False
    compiled = ctx.regex(operand)
    if compiled is None:
        return False
    return compiled.search(actual) is not None


# =============================================================================
# OPERAND VALIDATORS
# =============================================================================

def validate_string(operand: Any, path: str) -> str:
    if not isinstance(operand, str):
        raise InvalidExpressionError(
            f"operand must be a string, got {type(operand).__name__}",
            expression=operand,
            path=path,
        )
    return operand


def validate_pattern(operand: Any, path: str) -> Union[str, Pattern]:
    """Compile once up front so broken or unsafe patterns fail validation."""
    if isinstance(operand, re.Pattern):
        return operand
    validate_string(operand, path)

    problem = check_regex_safety(operand, DEFAULT_MAX_REGEX_LENGTH)
    if problem:
        raise InvalidExpressionError(
            f"rejected regex {operand!r}: {problem}", expression=operand, path=path
        )
    try:
        re.compile(operand)
    except re.error as e:
        raise InvalidExpressionError(
            f"invalid regex {operand!r}: {e}", expression=operand, path=path
        )
    return operand


def register(registry: OperatorRegistry) -> None:
    """Register the string family."""
    family = OperatorFamily.STRING
    for info in (
        OperatorInfo("$startsWith", family, evaluate_starts_with, validate_string,
                     "STARTS WITH", "string prefix"),
        OperatorInfo("$endsWith", family, evaluate_ends_with, validate_string,
                     "ENDS WITH", "string suffix"),
        OperatorInfo("$regex", family, evaluate_regex, validate_pattern,
                     "REGEX", "regular expression search"),
        OperatorInfo("$match", family, evaluate_regex, validate_pattern,
                     "MATCH", "regular expression search"),
    ):
        registry.register(info)
