"""
Operator library.

Operators are looked up by key in an ``OperatorRegistry``. The six built-in
families (comparison, array, string, logical, geospatial, datetime) each
provide a ``register(registry)`` function.

Example:
    >>> from recfilter.operators import register_operator, OperatorFamily
    >>>
    >>> register_operator(
    ...     "$between",
    ...     lambda actual, operand, ctx: (
    ...         isinstance(actual, (int, float)) and operand[0] <= actual <= operand[1]
    ...     ),
    ...     family=OperatorFamily.COMPARISON,
    ... )
"""

from .registry import (
    OperatorFamily,
    OperatorFunction,
    OperandValidator,
    OperatorInfo,
    OperatorRegistry,
    accept_any,
    get_default_registry,
    register_operator,
    list_operators,
)

__all__ = [
    "OperatorFamily",
    "OperatorFunction",
    "OperandValidator",
    "OperatorInfo",
    "OperatorRegistry",
    "accept_any",
    "get_default_registry",
    "register_operator",
    "list_operators",
]
