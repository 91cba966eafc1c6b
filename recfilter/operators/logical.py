"""
Logical operators: $and, $or, $not.

These are structural: the validator turns them into AndNode, OrNode and
NotNode, and the matcher walks those nodes. They are registered so that
lookups, listings and debug labels see them like any other operator.
"""

from __future__ import annotations

from .registry import OperatorFamily, OperatorInfo, OperatorRegistry


LOGICAL_KEYS = ("$and", "$or", "$not")


def register(registry: OperatorRegistry) -> None:
    """Register the logical family."""
    family = OperatorFamily.LOGICAL
    for name, label, description in (
        ("$and", "AND", "every sub-expression matches"),
        ("$or", "OR", "at least one sub-expression matches"),
        ("$not", "NOT", "sub-expression does not match"),
    ):
        registry.register(
            OperatorInfo(name, family, None, label=label, description=description, structural=True)
        )
