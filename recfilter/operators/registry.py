"""
Operator registry.

Provides a ``key -> OperatorInfo`` table used by the validator and the
matcher, and the registration seam for custom operators. Adding an
operator never requires touching the matcher's dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, TYPE_CHECKING

from ..core.exceptions import InvalidExpressionError

if TYPE_CHECKING:
    from ..query.context import EvaluationContext


# Type aliases
OperatorFunction = Callable[[Any, Any, "EvaluationContext"], bool]
OperandValidator = Callable[[Any, str], Any]


class OperatorFamily(str, Enum):
    """Operator families."""

    COMPARISON = "comparison"
    ARRAY = "array"
    STRING = "string"
    LOGICAL = "logical"
    GEOSPATIAL = "geospatial"
    DATETIME = "datetime"

    def __str__(self) -> str:
        return self.value


def accept_any(operand: Any, path: str) -> Any:
    """Operand validator that accepts everything."""
    return operand


@dataclass(frozen=True)
class OperatorInfo:
    """Information about a registered operator."""

    name: str
    family: OperatorFamily
    evaluate: Optional[OperatorFunction]
    validate: OperandValidator = accept_any
    label: str = ""
    description: str = ""
    # Structural operators ($and/$or/$not) are interpreted by the
    # validator and matcher instead of being called.
    structural: bool = False

    def __repr__(self) -> str:
        return f"OperatorInfo(name='{self.name}', family='{self.family.value}')"


# =============================================================================
# OPERATOR REGISTRY
# =============================================================================

class OperatorRegistry:
    """
    Registry for filter operators.

    Allows looking up operators by key and registering custom operators.

    Example:
        >>> registry = OperatorRegistry()
        >>> info = registry.register_function(
        ...     "$even", lambda actual, operand, ctx: actual % 2 == 0,
        ...     family=OperatorFamily.COMPARISON,
        ... )
        >>> "$even" in registry
        True
    """

    def __init__(self, builtins: bool = True):
        self._operators: Dict[str, OperatorInfo] = {}
        # bumped on every change; engines key their memos on it
        self.version = 0
        if builtins:
            self._register_builtins()

    def _register_builtins(self) -> None:
        """Register the six built-in operator families."""
        from . import array, comparison, geospatial, logical, string, temporal

        for family in (comparison, array, string, logical, geospatial, temporal):
            family.register(self)

    def register(self, info: OperatorInfo, overwrite: bool = False) -> None:
        """
        Register an operator.

        Args:
            info: Operator definition
            overwrite: Replace an existing operator with the same key

        Raises:
            ValueError: If the key is malformed or already registered
        """
        if not info.name.startswith("$") or len(info.name) < 2:
            raise ValueError(f"Operator key must start with '$': {info.name!r}")
        if info.name in self._operators and not overwrite:
            raise ValueError(f"Operator already registered: {info.name}")
        if info.evaluate is None and not info.structural:
            raise ValueError(f"Operator {info.name} needs an evaluate function")
        self._operators[info.name] = info
        self.version += 1

    def register_function(
        self,
        name: str,
        evaluate: OperatorFunction,
        family: OperatorFamily = OperatorFamily.COMPARISON,
        validate: Optional[OperandValidator] = None,
        label: str = "",
        description: str = "",
        overwrite: bool = False,
    ) -> OperatorInfo:
        """Register an operator from a bare ``(actual, operand, ctx) -> bool`` function."""
        info = OperatorInfo(
            name=name,
            family=family,
            evaluate=evaluate,
            validate=validate or accept_any,
            label=label or name.lstrip("$").upper(),
            description=description,
        )
        self.register(info, overwrite=overwrite)
        return info

    def unregister(self, name: str) -> None:
        """Remove an operator."""
        if name not in self._operators:
            raise KeyError(f"Unknown operator: {name}")
        del self._operators[name]
        self.version += 1

    def get(self, name: str) -> OperatorInfo:
        """
        Get operator info by key.

        Raises:
            KeyError: If the operator is not registered
        """
        try:
            return self._operators[name]
        except KeyError:
            raise KeyError(f"Unknown operator: {name}. Available: {sorted(self._operators)}")

    def lookup(self, name: str, path: str = "", expression: Any = None) -> OperatorInfo:
        """Like ``get`` but raises InvalidExpressionError for unknown keys."""
        info = self._operators.get(name)
        if info is None:
            raise InvalidExpressionError(
                f"unknown operator '{name}'", expression=expression, path=path
            )
        return info

    def list_operators(self, family: Optional[OperatorFamily] = None) -> List[str]:
        """List registered operator keys, optionally for one family."""
        return sorted(
            name for name, info in self._operators.items()
            if family is None or info.family == family
        )

    def label_for(self, name: str) -> str:
        info = self._operators.get(name)
        return info.label if info and info.label else name

    def __contains__(self, name: str) -> bool:
        return name in self._operators

    def __iter__(self) -> Iterator[OperatorInfo]:
        return iter(self._operators.values())

    def __len__(self) -> int:
        return len(self._operators)


# =============================================================================
# GLOBAL REGISTRY
# =============================================================================

_default_registry: Optional[OperatorRegistry] = None


def get_default_registry() -> OperatorRegistry:
    """Process-wide registry used by engines that are not given their own."""
    global _default_registry
    if _default_registry is None:
        _default_registry = OperatorRegistry()
    return _default_registry


def register_operator(
    name: str,
    evaluate: OperatorFunction,
    family: OperatorFamily = OperatorFamily.COMPARISON,
    validate: Optional[OperandValidator] = None,
    label: str = "",
    description: str = "",
    overwrite: bool = False,
) -> OperatorInfo:
    """
    Register a custom operator in the default registry.

    Args:
        name: Operator key, e.g. "$between"
        evaluate: ``(actual, operand, ctx) -> bool``; ``actual`` may be MISSING
        family: Family the operator belongs to
        validate: ``(operand, path) -> operand``; raise InvalidExpressionError
            to reject an operand
        label: Short label for debug trees
        description: Human readable description
        overwrite: Replace an existing operator

    Returns:
        The registered OperatorInfo
    """
    return get_default_registry().register_function(
        name,
        evaluate,
        family=family,
        validate=validate,
        label=label,
        description=description,
        overwrite=overwrite,
    )


def list_operators(family: Optional[OperatorFamily] = None) -> List[str]:
    """List operators in the default registry."""
    return get_default_registry().list_operators(family)
