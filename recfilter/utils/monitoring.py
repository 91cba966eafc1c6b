"""
Performance monitoring for filter operations.
"""

import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterator, List, Optional

import numpy as np

from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class PerformanceMetrics:
    """Summary of recorded durations for one operation, in milliseconds."""
    count: int
    avg: float
    min: float
    max: float
    p95: float
    p99: float
    total: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "p95": self.p95,
            "p99": self.p99,
            "total": self.total,
        }


class PerformanceMonitor:
    """
    Records named operation durations and summarizes them.

    Only the most recent ``max_samples`` durations are kept per operation.

    Example:
        >>> monitor = PerformanceMonitor()
        >>> with monitor.measure("filter"):
        ...     pass
        >>> monitor.get_metrics("filter").count
        1
    """

    def __init__(
        self,
        enabled: bool = True,
        max_samples: int = 1000,
        on_metric: Optional[Callable[[str, float], None]] = None,
    ):
        if max_samples < 1:
            raise ValueError(f"max_samples must be >= 1, got {max_samples}")
        self.enabled = enabled
        self.max_samples = max_samples
        self.on_metric = on_metric
        self._samples: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def track(self, operation: str, duration_ms: float) -> None:
        """Record one duration."""
        if not self.enabled:
            return
        with self._lock:
            samples = self._samples.get(operation)
            if samples is None:
                samples = self._samples[operation] = deque(maxlen=self.max_samples)
            samples.append(duration_ms)

        logger.debug(f"{operation}: {duration_ms:.3f}ms")
        if self.on_metric is not None:
            self.on_metric(operation, duration_ms)

    def start(self, operation: str) -> Callable[[], float]:
        """
        Start timing an operation.

        Returns:
            A function that stops the timer, records and returns the duration
        """
        start = time.perf_counter()

        def stop() -> float:
            duration_ms = (time.perf_counter() - start) * 1000
            self.track(operation, duration_ms)
            return duration_ms

        return stop

    @contextmanager
    def measure(self, operation: str) -> Iterator[None]:
        stop = self.start(operation)
        try:
            yield
        finally:
            stop()

    def get_metrics(self, operation: str) -> Optional[PerformanceMetrics]:
        with self._lock:
            samples = self._samples.get(operation)
            if not samples:
                return None
            values = np.fromiter(samples, dtype=np.float64)

        return PerformanceMetrics(
            count=int(values.size),
            avg=float(values.mean()),
            min=float(values.min()),
            max=float(values.max()),
            p95=float(np.percentile(values, 95)),
            p99=float(np.percentile(values, 99)),
            total=float(values.sum()),
        )

    def get_all_metrics(self) -> Dict[str, PerformanceMetrics]:
        metrics = {}
        for operation in self.operations():
            summary = self.get_metrics(operation)
            if summary is not None:
                metrics[operation] = summary
        return metrics

    def operations(self) -> List[str]:
        with self._lock:
            return sorted(self._samples)

    def clear(self, operation: Optional[str] = None) -> None:
        """Forget samples for one operation, or for all."""
        with self._lock:
            if operation is None:
                self._samples.clear()
            else:
                self._samples.pop(operation, None)

    def summary(self) -> str:
        """Human-readable table of all operations."""
        lines = []
        for operation, m in self.get_all_metrics().items():
            lines.append(
                f"{operation}: count={m.count} avg={m.avg:.3f}ms "
                f"p95={m.p95:.3f}ms p99={m.p99:.3f}ms max={m.max:.3f}ms"
            )
        return "\n".join(lines) if lines else "no metrics recorded"
