"""
Literal pattern helpers: SQL-like wildcards, negation prefix, and the
regex safety guard.

Wildcards: ``%`` matches zero or more characters, ``_`` exactly one.
Every other character is literal. A leading ``!`` negates the match.
"""

from __future__ import annotations

import re
from typing import Optional


WILDCARD_PERCENT = "%"
WILDCARD_UNDERSCORE = "_"
NEGATION_PREFIX = "!"

DEFAULT_MAX_REGEX_LENGTH = 1000

# A group that ends in an unbounded quantifier and is itself quantified,
# e.g. (a+)+, (\w*)*, (x{2,})+
_NESTED_QUANTIFIER = re.compile(r"\((?:[^()\\]|\\.)*(?:[+*]|\{\d*,\})\)(?:[+*]|\{\d*,?\d*\})")


def has_wildcard(pattern: str) -> bool:
    return WILDCARD_PERCENT in pattern or WILDCARD_UNDERSCORE in pattern


def has_negation(pattern: str) -> bool:
    return pattern.startswith(NEGATION_PREFIX)


def remove_negation(pattern: str) -> str:
    return pattern[1:] if has_negation(pattern) else pattern


def wildcard_to_regex(pattern: str) -> str:
    """
    Translate a wildcard literal into an anchored regex source.

    Example:
        >>> wildcard_to_regex("J_n%")
        '^J.n.*$'
    """
    parts = []
    for char in pattern:
        if char == WILDCARD_PERCENT:
            parts.append(".*")
        elif char == WILDCARD_UNDERSCORE:
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return "^" + "".join(parts) + "$"


def check_regex_safety(pattern: str, max_length: int = DEFAULT_MAX_REGEX_LENGTH) -> Optional[str]:
    """
    Reject patterns prone to catastrophic backtracking.

    Returns:
        None if the pattern is acceptable, otherwise a reason
    """
    if len(pattern) > max_length:
        return f"pattern longer than {max_length} characters"
    if _NESTED_QUANTIFIER.search(pattern):
        return "nested quantifier may cause catastrophic backtracking"
    return None


def regex_flags(case_sensitive: bool) -> int:
    return 0 if case_sensitive else re.IGNORECASE
