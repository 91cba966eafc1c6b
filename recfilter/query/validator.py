"""
Expression validation and parsing.

``validate`` checks a wire-form expression against the operator registry and
returns the parsed tree (``ValidExpression``). Validation happens once per
call, before any record is read, so a malformed expression never produces
partial results.

Depth rule: the root object is depth 1. Each child of ``$and``/``$or``/``$not``
and each nested field object adds one level. Operator maps do not.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Mapping
from typing import Any, List, Optional

from ..core.exceptions import InvalidExpressionError, MaxDepthExceededError
from ..operators.registry import OperatorRegistry, get_default_registry
from ..utils.validation import validate_max_depth
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
    ValidExpression,
)


SCALAR_TYPES = (str, int, float, bool, type(None), dt.date)


def _join(path: str, part: str) -> str:
    if not path:
        return part
    if part.startswith("["):
        return path + part
    return f"{path}.{part}"


def _is_operator_key(key: Any) -> bool:
    return isinstance(key, str) and key.startswith("$")


class ExpressionValidator:
    """
    Parses wire-form expressions into ``ExpressionNode`` trees.

    Args:
        registry: Operator registry used to resolve ``$`` keys
        max_depth: Maximum nesting depth (1-10)
    """

    def __init__(self, registry: Optional[OperatorRegistry] = None, max_depth: int = 3):
        self.registry = registry or get_default_registry()
        self.max_depth = validate_max_depth(max_depth)

    def validate(self, expression: Any) -> ValidExpression:
        """
        Validate and parse an expression.

        Raises:
            InvalidExpressionError: If the expression is malformed
            MaxDepthExceededError: If nesting exceeds ``max_depth``
        """
        if callable(expression) and not isinstance(expression, (type, re.Pattern)):
            return PredicateNode(expression)

        if isinstance(expression, SCALAR_TYPES):
            return AnyPropertyNode(Literal.parse(expression))

        if not isinstance(expression, Mapping):
            raise InvalidExpressionError(
                f"expression must be an object, a scalar or a predicate, "
                f"got {type(expression).__name__}",
                expression=expression,
            )

        return self._parse_object(expression, depth=1, path="")

    # -------------------------------------------------------------------------
    # Objects
    # -------------------------------------------------------------------------

    def _check_depth(self, depth: int, expression: Any, path: str) -> None:
        if depth > self.max_depth:
            raise MaxDepthExceededError(depth, self.max_depth, expression=expression, path=path)

    def _parse_object(self, expression: Mapping, depth: int, path: str) -> ExpressionNode:
        self._check_depth(depth, expression, path)

        items: List[ExpressionNode] = []
        for key, value in expression.items():
            if not isinstance(key, str):
                raise InvalidExpressionError(
                    f"field names must be strings, got {key!r}", expression=expression, path=path
                )
            if key in ("$and", "$or"):
                items.append(self._parse_junction(key, value, depth, _join(path, key)))
            elif key == "$not":
                items.append(self._parse_not(value, depth, _join(path, key)))
            elif _is_operator_key(key):
                info = self.registry.lookup(key, path, expression)
                raise InvalidExpressionError(
                    f"operator '{info.name}' must be applied to a field",
                    expression=expression,
                    path=path,
                )
            else:
                condition = self._parse_condition(value, depth, _join(path, key))
                items.append(FieldNode(key, condition))

        if len(items) == 1:
            return items[0]
        return AndNode(tuple(items), implicit=True)

    def _parse_junction(self, key: str, value: Any, depth: int, path: str) -> ExpressionNode:
        if not isinstance(value, (list, tuple)):
            raise InvalidExpressionError(
                f"{key} requires an array of expressions, got {type(value).__name__}",
                expression=value,
                path=path,
            )
        children = []
        for i, item in enumerate(value):
            item_path = _join(path, f"[{i}]")
            if not isinstance(item, Mapping):
                raise InvalidExpressionError(
                    f"{key} items must be objects, got {type(item).__name__}",
                    expression=item,
                    path=item_path,
                )
            children.append(self._parse_object(item, depth + 1, item_path))

        node_type = AndNode if key == "$and" else OrNode
        return node_type(tuple(children))

    def _parse_not(self, value: Any, depth: int, path: str) -> ExpressionNode:
        if isinstance(value, (list, tuple)):
            raise InvalidExpressionError(
                "$not takes a single expression, not an array", expression=value, path=path
            )
        if not isinstance(value, Mapping):
            raise InvalidExpressionError(
                f"$not requires an expression object, got {type(value).__name__}",
                expression=value,
                path=path,
            )
        return NotNode(self._parse_object(value, depth + 1, path))

    # -------------------------------------------------------------------------
    # Field conditions
    # -------------------------------------------------------------------------

    def _parse_condition(self, value: Any, depth: int, path: str) -> ConditionValue:
        if isinstance(value, Mapping):
            operator_keys = [k for k in value if _is_operator_key(k)]
            if operator_keys and len(operator_keys) != len(value):
                plain = [k for k in value if not _is_operator_key(k)]
                raise InvalidExpressionError(
                    f"cannot mix operators {operator_keys} with fields {plain}",
                    expression=value,
                    path=path,
                )
            if operator_keys:
                return self._parse_operator_map(value, path)
            return Nested(self._parse_object(value, depth + 1, path))

        if isinstance(value, (list, tuple)):
            return ArrayOr.parse(value)

        return Literal.parse(value)

    def _parse_operator_map(self, value: Mapping, path: str) -> OperatorMap:
        operators = []
        for key, operand in value.items():
            op_path = _join(path, key)
            if key == "$not":
                operators.append((key, self._parse_field_not(operand, op_path), operand))
                continue

            info = self.registry.lookup(key, op_path, value)
            if info.structural:
                raise InvalidExpressionError(
                    f"{key} cannot be used inside a field condition",
                    expression=value,
                    path=op_path,
                )
            operators.append((key, info.validate(operand, op_path), operand))

        return OperatorMap(tuple(operators))

    def _parse_field_not(self, operand: Any, path: str) -> ConditionValue:
        """Field-level ``$not`` takes an operator map or a literal."""
        if isinstance(operand, (list, tuple)):
            raise InvalidExpressionError(
                "$not takes an operator object or a value, not an array",
                expression=operand,
                path=path,
            )
        if isinstance(operand, Mapping):
            if not operand or not all(_is_operator_key(k) for k in operand):
                raise InvalidExpressionError(
                    "field-level $not takes an operator object such as {'$gt': 5}",
                    expression=operand,
                    path=path,
                )
            return self._parse_operator_map(operand, path)
        return Literal.parse(operand)


def validate(
    expression: Any,
    max_depth: int = 3,
    registry: Optional[OperatorRegistry] = None,
) -> ValidExpression:
    """
    Validate an expression and return its parsed form.

    Args:
        expression: Wire-form expression, scalar, or predicate callable
        max_depth: Maximum nesting depth
        registry: Operator registry (default registry if omitted)

    Returns:
        The parsed root node

    Raises:
        InvalidExpressionError: If the expression is malformed

    Example:
        >>> node = validate({"age": {"$gte": 18}, "city": "Ber%"})
        >>> node.kind
        'and'
    """
    return ExpressionValidator(registry, max_depth).validate(expression)
