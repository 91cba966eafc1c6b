"""
Tracing evaluation for ``filter_debug``.

``DebugMatcher`` mirrors the parsed expression as a tree of ``TraceNode``
objects and counts, for every node, how many records reached it and how many
of those matched. Tracing never changes outcomes: the debug matcher only
observes the decisions of the regular ``Matcher``.
"""

from __future__ import annotations

import dataclasses
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, TextIO

from ..operators.registry import OperatorRegistry
from ..query.context import EvaluationContext
from ..query.expression import (
    AndNode,
    AnyPropertyNode,
    ArrayOr,
    ExpressionNode,
    FieldNode,
    Literal,
    Nested,
    NotNode,
    OperatorMap,
    OrNode,
    PredicateNode,
)
from ..query.matcher import Matcher


@dataclass
class TraceNode:
    """
    One node of the debug tree.

    Attributes:
        kind: "logical", "field", "operator" or "primitive"
        label: Display label, e.g. "AND" or ">="
        field: Field path for field and operator nodes
        operator: Operator key, e.g. "$gte"
        operand: Wire-form operand
        evaluated: Records that reached this node
        matched: Records for which this node was true
        elapsed_ms: Cumulative evaluation time, when timings are recorded
    """
    kind: str
    label: str
    field: Optional[str] = None
    operator: Optional[str] = None
    operand: Any = None
    children: List["TraceNode"] = dataclasses.field(default_factory=list)
    evaluated: int = 0
    matched: int = 0
    elapsed_ms: Optional[float] = None

    def record(self, matched: bool, elapsed_ms: Optional[float] = None) -> None:
        self.evaluated += 1
        if matched:
            self.matched += 1
        if elapsed_ms is not None:
            self.elapsed_ms = (self.elapsed_ms or 0.0) + elapsed_ms

    def walk(self) -> Iterator["TraceNode"]:
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "kind": self.kind,
            "label": self.label,
            "field": self.field,
            "operator": self.operator,
            "operand": self.operand,
            "evaluated": self.evaluated,
            "matched": self.matched,
            "children": [c.to_dict() for c in self.children],
        }
        if self.elapsed_ms is not None:
            data["elapsed_ms"] = self.elapsed_ms
        return data


@dataclass
class DebugStats:
    """Summary of a debug run; ``execution_time`` is in milliseconds."""
    matched: int = 0
    total: int = 0
    execution_time: float = 0.0
    conditions_evaluated: int = 0
    cache_hit: bool = False

    @property
    def percentage(self) -> float:
        return (self.matched / self.total * 100.0) if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "total": self.total,
            "percentage": self.percentage,
            "execution_time": self.execution_time,
            "conditions_evaluated": self.conditions_evaluated,
            "cache_hit": self.cache_hit,
        }


@dataclass
class DebugResult:
    """Matched records together with the evaluation trace."""
    result: List[Any]
    trace: TraceNode
    stats: DebugStats
    verbose: bool = False
    show_timings: bool = False
    colorize: bool = False

    def render(self) -> str:
        from .formatter import render_debug_result

        return render_debug_result(self)

    def print(self, file: Optional[TextIO] = None) -> None:
        """Write the rendered tree and statistics to stdout (or ``file``)."""
        print(self.render(), file=file or sys.stdout)

    def __len__(self) -> int:
        return len(self.result)


class DebugMatcher(Matcher):
    """
    Matcher that records per-node statistics into a ``TraceNode`` tree.

    Call ``build_trace`` once with the root node before evaluating records.
    """

    def __init__(self, registry: Optional[OperatorRegistry] = None, show_timings: bool = False):
        super().__init__(registry)
        self.show_timings = show_timings
        self._node_traces: Dict[int, TraceNode] = {}
        self._operator_traces: Dict[int, List[TraceNode]] = {}

    # -------------------------------------------------------------------------
    # Trace construction
    # -------------------------------------------------------------------------

    def build_trace(self, node: ExpressionNode) -> TraceNode:
        """Create the trace tree for ``node`` and remember it for evaluation."""
        self._node_traces.clear()
        self._operator_traces.clear()
        return self._trace_node(node)

    def _trace_node(self, node: ExpressionNode) -> TraceNode:
        if isinstance(node, (AndNode, OrNode, NotNode)):
            key = {"and": "$and", "or": "$or", "not": "$not"}[node.kind]
            trace = TraceNode("logical", self.registry.label_for(key), operator=key)
            trace.children = [self._trace_node(child) for child in node.children()]
        elif isinstance(node, FieldNode):
            trace = self._trace_field(node)
        elif isinstance(node, AnyPropertyNode):
            trace = TraceNode("primitive", "ANY", operand=node.literal.raw)
        elif isinstance(node, PredicateNode):
            name = getattr(node.predicate, "__name__", type(node.predicate).__name__)
            trace = TraceNode("primitive", "function", operator="function", operand=name)
        else:
            trace = TraceNode("primitive", type(node).__name__)

        self._node_traces[id(node)] = trace
        return trace

    def _trace_field(self, node: FieldNode) -> TraceNode:
        condition = node.condition
        path = node.path

        if isinstance(condition, Literal):
            key = "$ne" if condition.negated else "$eq"
            return TraceNode(
                "operator", self.registry.label_for(key), path, key, condition.raw
            )

        if isinstance(condition, ArrayOr):
            return TraceNode("field", "OR", path, "$in", condition.to_expression())

        if isinstance(condition, Nested):
            trace = TraceNode("field", path, path)
            trace.children = [self._trace_node(condition.node)]
            return trace

        operator_traces = [
            TraceNode("operator", self.registry.label_for(key), path, key, raw)
            for key, _, raw in condition.operators
        ]
        if len(operator_traces) == 1:
            return operator_traces[0]

        self._operator_traces[id(condition)] = operator_traces
        trace = TraceNode("field", path, path)
        trace.children = operator_traces
        return trace

    # -------------------------------------------------------------------------
    # Evaluation hooks
    # -------------------------------------------------------------------------

    def _elapsed(self, start: Optional[float]) -> Optional[float]:
        if start is None:
            return None
        return (time.perf_counter() - start) * 1000

    def evaluate(self, record: Any, node: ExpressionNode, ctx: EvaluationContext) -> bool:
        trace = self._node_traces.get(id(node))
        if trace is None:
            return super().evaluate(record, node, ctx)

        start = time.perf_counter() if self.show_timings else None
        result = super().evaluate(record, node, ctx)
        trace.record(result, self._elapsed(start))
        return result

    def _eval_operator_map(
        self,
        value: Any,
        condition: OperatorMap,
        ctx: EvaluationContext,
        path: str,
    ) -> bool:
        traces = self._operator_traces.get(id(condition))
        if traces is None:
            return super()._eval_operator_map(value, condition, ctx, path)

        for (key, operand, _), trace in zip(condition.operators, traces):
            start = time.perf_counter() if self.show_timings else None
            result = self.apply_operator(key, value, operand, ctx, path)
            trace.record(result, self._elapsed(start))
            if not result:
                return False
        return True

    def conditions_evaluated(self, root: TraceNode) -> int:
        return sum(node.evaluated for node in root.walk())
