"""Metrics service for tracking query performance.

Singleton service counting recommend, predict and neighborhood queries and
their latency.
"""

import threading
from typing import Dict


class _OperationStats:
    __slots__ = ("count", "total_ms", "min_ms", "max_ms")

    def __init__(self):
        self.count = 0
        self.total_ms = 0.0
        self.min_ms = float("inf")
        self.max_ms = 0.0

    def as_dict(self) -> Dict:
        return {
            "count": self.count,
            "average_latency_ms": round(self.total_ms / self.count, 2) if self.count else 0.0,
            "min_latency_ms": round(self.min_ms, 2) if self.count else 0.0,
            "max_latency_ms": round(self.max_ms, 2),
        }


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe per-operation counters and latency tracking.
    """

    _instance = None
    _instance_lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._lock = threading.Lock()
        self._operations: Dict[str, _OperationStats] = {}
        self._initialized = True

    def record(self, operation: str, latency_ms: float) -> None:
        """Record one query of the given operation.

        Args:
            operation: Operation name, e.g. "recommend".
            latency_ms: Latency in milliseconds.
        """
        with self._lock:
            stats = self._operations.setdefault(operation, _OperationStats())
            stats.count += 1
            stats.total_ms += latency_ms
            stats.min_ms = min(stats.min_ms, latency_ms)
            stats.max_ms = max(stats.max_ms, latency_ms)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with the total query count and, per operation, the
            count and average, minimum and maximum latency in milliseconds.
        """
        with self._lock:
            return {
                "query_count": sum(stats.count for stats in self._operations.values()),
                "operations": {
                    name: stats.as_dict() for name, stats in sorted(self._operations.items())
                },
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._operations.clear()


# Global singleton instance
metrics_service = MetricsService()
