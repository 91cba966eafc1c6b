"""
Text rendering of debug trees.
"""

from __future__ import annotations

import datetime as dt
import json
import re
from collections.abc import Mapping
from typing import Any, List, TYPE_CHECKING

from .tracer import TraceNode

if TYPE_CHECKING:
    from .tracer import DebugResult, DebugStats


# Tree drawing
BRANCH = "├──"
LAST_BRANCH = "└──"
VERTICAL = "│"
SPACE = "   "

# ANSI colours
RESET = "\x1b[0m"
BRIGHT = "\x1b[1m"
DIM = "\x1b[2m"
YELLOW = "\x1b[33m"
BLUE = "\x1b[34m"
MAGENTA = "\x1b[35m"
CYAN = "\x1b[36m"
GREEN = "\x1b[32m"
GRAY = "\x1b[90m"

HEADER = "Filter Debug Tree"


def _paint(text: str, colour: str, colorize: bool) -> str:
    return f"{colour}{text}{RESET}" if colorize else text


def format_value(value: Any) -> str:
    """
    Compact JSON-like rendering of an operand.

    Example:
        >>> format_value(["a", None, True])
        '["a", null, true]'
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    if isinstance(value, Mapping):
        return json.dumps(value, default=str, sort_keys=False)
    return str(value)


def format_match_stats(node: TraceNode, colorize: bool = False) -> str:
    if node.evaluated == 0:
        return _paint(" (not evaluated)", GRAY, colorize)
    percentage = node.matched / node.evaluated * 100
    return _paint(
        f" ({node.matched}/{node.evaluated} matched, {percentage:.1f}%)", GRAY, colorize
    )


def format_node_label(node: TraceNode, colorize: bool = False) -> str:
    if node.kind == "logical":
        return _paint(node.label, YELLOW + BRIGHT, colorize)

    if node.kind == "operator":
        return " ".join((
            _paint(node.field or "", CYAN, colorize),
            _paint(node.label, MAGENTA, colorize),
            _paint(format_value(node.operand), GREEN, colorize),
        ))

    if node.kind == "field":
        field_label = _paint(node.field or "", CYAN, colorize)
        if node.operator == "$in":
            return f"{field_label} {_paint('OR', YELLOW, colorize)} {format_value(node.operand)}"
        return field_label

    if node.operator == "function":
        return _paint(f"{node.operand}()", BLUE, colorize)
    return f"{node.label} {format_value(node.operand)}"


def _format_node(
    node: TraceNode,
    prefix: str,
    is_last: bool,
    lines: List[str],
    verbose: bool,
    show_timings: bool,
    colorize: bool,
) -> None:
    connector = LAST_BRANCH if is_last else BRANCH
    line = f"{prefix}{connector} {format_node_label(node, colorize)}"
    line += format_match_stats(node, colorize)
    if show_timings and node.elapsed_ms is not None:
        line += " " + _paint(f"[{node.elapsed_ms:.2f}ms]", DIM, colorize)
    lines.append(line)

    child_prefix = prefix + (SPACE if is_last else VERTICAL + "  ")
    if verbose and node.operand is not None and node.kind != "primitive":
        lines.append(f"{child_prefix}{VERTICAL} Value: {format_value(node.operand)}")

    for i, child in enumerate(node.children):
        _format_node(
            child, child_prefix, i == len(node.children) - 1,
            lines, verbose, show_timings, colorize,
        )


def render_trace(
    node: TraceNode,
    verbose: bool = False,
    show_timings: bool = False,
    colorize: bool = False,
) -> str:
    """
    Draw a trace tree with box-drawing characters.

    Example output::

        Filter Debug Tree
        └── AND (2/4 matched, 50.0%)
            ├── city = "Berlin" (3/4 matched, 75.0%)
            └── age > 25 (2/3 matched, 66.7%)
    """
    lines = [_paint(HEADER, BRIGHT + CYAN, colorize)]
    _format_node(node, "", True, lines, verbose, show_timings, colorize)
    return "\n".join(lines)


def render_stats(stats: "DebugStats", colorize: bool = False) -> str:
    lines = [
        _paint("Statistics:", BRIGHT, colorize),
        f"├── Matched: {stats.matched} / {stats.total} items ({stats.percentage:.1f}%)",
        f"├── Execution time: {stats.execution_time:.2f}ms",
        f"├── Conditions evaluated: {stats.conditions_evaluated}",
        f"└── Cache hit: {'yes' if stats.cache_hit else 'no'}",
    ]
    return "\n".join(lines)


def render_debug_result(result: "DebugResult") -> str:
    tree = render_trace(result.trace, result.verbose, result.show_timings, result.colorize)
    return tree + "\n\n" + render_stats(result.stats, result.colorize)
