"""
Expression parsing, validation and evaluation.

This module provides:
- Dot-path resolution and the MISSING sentinel
- The parsed expression tree and its validator
- Lazy iteration helpers
- Sorting and limiting of results
- Expression serialization

The matcher and its evaluation context live in ``recfilter.query.matcher``
and ``recfilter.query.context``.

Example:
    >>> from recfilter.query import validate
    >>>
    >>> node = validate({"$or": [{"city": "Ber%"}, {"age": {"$lt": 18}}]})
    >>> node.kind
    'or'
"""

from .paths import MISSING, get_nested_value, resolve_path, split_path

from .expression import (
    ExpressionNode,
    ValidExpression,
    AndNode,
    OrNode,
    NotNode,
    FieldNode,
    AnyPropertyNode,
    PredicateNode,
    Literal,
    OperatorMap,
    ArrayOr,
    Nested,
    ConditionValue,
)

from .validator import ExpressionValidator, validate

from .sorting import (
    SortDirection,
    OrderByField,
    normalize_order_by,
    sort_records,
    apply_post_processing,
)

from .serialization import (
    expression_to_json,
    expression_from_json,
    pack_expression,
    unpack_expression,
)

__all__ = [
    # Paths
    "MISSING",
    "get_nested_value",
    "resolve_path",
    "split_path",
    # Expression tree
    "ExpressionNode",
    "ValidExpression",
    "AndNode",
    "OrNode",
    "NotNode",
    "FieldNode",
    "AnyPropertyNode",
    "PredicateNode",
    "Literal",
    "OperatorMap",
    "ArrayOr",
    "Nested",
    "ConditionValue",
    # Validation
    "ExpressionValidator",
    "validate",
    # Sorting
    "SortDirection",
    "OrderByField",
    "normalize_order_by",
    "sort_records",
    "apply_post_processing",
    # Serialization
    "expression_to_json",
    "expression_from_json",
    "pack_expression",
    "unpack_expression",
]
