"""Metrics collection for ingestion jobs."""

import time
from typing import Dict, Any
from collections import defaultdict


class MetricsCollector:
    """
    Collects timers and counters for one ingestion job.
    Implements IMetricsCollector protocol.
    """

    def __init__(self):
        self._start_time = time.monotonic()
        self._timers: Dict[str, float] = {}
        self._metrics: Dict[str, list] = defaultdict(list)
        self._counters: Dict[str, int] = defaultdict(int)

    def start_timer(self, name: str) -> None:
        """Start a named timer."""
        self._timers[name] = time.monotonic()

    def stop_timer(self, name: str) -> float:
        """
        Stop a named timer and return elapsed time.

        Args:
            name: Timer name

        Returns:
            Elapsed time in seconds

        Raises:
            KeyError: If timer was not started
        """
        if name not in self._timers:
            raise KeyError(f"Timer '{name}' was not started")

        elapsed = time.monotonic() - self._timers.pop(name)
        self.record_metric(f"{name}_duration", elapsed)
        return elapsed

    def record_metric(self, name: str, value: float) -> None:
        self._metrics[name].append(value)

    def increment_counter(self, name: str, amount: int = 1) -> None:
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary of all metrics.

        Returns:
            Dictionary with elapsed time, counters and per-metric aggregates
        """
        summary = {
            "total_elapsed": self.elapsed_time(),
            "counters": dict(self._counters),
            "metrics": {}
        }

        for name, values in self._metrics.items():
            if values:
                summary["metrics"][name] = {
                    "count": len(values),
                    "sum": sum(values),
                    "avg": sum(values) / len(values),
                    "min": min(values),
                    "max": max(values),
                }

        return summary

    def elapsed_time(self) -> float:
        """Get total elapsed time since initialization."""
        return time.monotonic() - self._start_time

    def format_summary(self) -> str:
        """One-line summary for job completion logs."""
        summary = self.get_summary()
        parts = [f"elapsed={summary['total_elapsed']:.1f}s"]
        parts.extend(f"{name}={value}" for name, value in sorted(summary["counters"].items()))
        for name, data in sorted(summary["metrics"].items()):
            parts.append(f"{name}_avg={data['avg']:.2f}s")
        return " ".join(parts)
