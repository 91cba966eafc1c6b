"""
Custom exceptions for recfilter.
"""

import json
from typing import Any, Dict, List, Optional


class FilterError(Exception):
    """Base exception for recfilter."""

    code = "FILTER_ERROR"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a JSON-friendly dictionary."""
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "context": {k: _safe_repr(v) for k, v in self.context.items()},
        }


class InvalidExpressionError(FilterError):
    """Malformed operator usage or expression shape."""

    code = "INVALID_EXPRESSION"

    def __init__(
        self,
        details: str,
        expression: Any = None,
        path: str = "",
        validation_errors: Optional[List[str]] = None,
    ):
        where = f" at '{path}'" if path else ""
        super().__init__(
            f"Invalid filter expression{where}: {details}",
            {"expression": expression, "path": path, "details": details},
        )
        self.details = details
        self.expression = expression
        self.path = path
        self.validation_errors = validation_errors or []


class MaxDepthExceededError(InvalidExpressionError):
    """Expression nesting is deeper than the configured max_depth."""

    code = "MAX_DEPTH_EXCEEDED"

    def __init__(self, depth: int, max_depth: int, expression: Any = None, path: str = ""):
        super().__init__(
            f"nesting depth {depth} exceeds max_depth {max_depth}",
            expression=expression,
            path=path,
        )
        self.depth = depth
        self.max_depth = max_depth


class InvalidOptionsError(FilterError):
    """Out-of-range or type-mismatched option value."""

    code = "INVALID_OPTIONS"

    def __init__(self, details: str, option: Optional[str] = None, value: Any = None):
        where = f" for option '{option}'" if option else ""
        super().__init__(
            f"Invalid filter options{where}: {details}",
            {"option": option, "value": value, "details": details},
        )
        self.details = details
        self.option = option
        self.value = value


class SerializationError(FilterError):
    """Expression cannot be serialized or deserialized."""

    code = "SERIALIZATION_ERROR"


def _safe_repr(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return repr(value)
