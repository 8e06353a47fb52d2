"""Metrics service for tracking recommendation latency.

Singleton service to track scoring calls and latency per recommendation type.
"""

import threading
from typing import Dict


class _LatencyStats:
    """Running count/total/min/max for one recommendation type."""

    def __init__(self):
        self.count = 0
        self.total_ms = 0.0
        self.min_ms = float('inf')
        self.max_ms = 0.0

    def add(self, latency_ms: float) -> None:
        self.count += 1
        self.total_ms += latency_ms
        self.min_ms = min(self.min_ms, latency_ms)
        self.max_ms = max(self.max_ms, latency_ms)

    def as_dict(self) -> Dict:
        avg = self.total_ms / self.count if self.count > 0 else 0.0
        return {
            "count": self.count,
            "average_latency_ms": round(avg, 2),
            "min_latency_ms": round(self.min_ms, 2) if self.min_ms != float('inf') else 0.0,
            "max_latency_ms": round(self.max_ms, 2),
        }


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counters and latency tracking, overall and per
    recommendation type.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._overall = _LatencyStats()
        self._by_type: Dict[str, _LatencyStats] = {}
        self._initialized = True

    def record_call(self, recommendation_type: str, latency_ms: float) -> None:
        """Record a scoring call with its latency.

        Args:
            recommendation_type: Kind of recommendation served (e.g. "hybrid")
            latency_ms: Latency in milliseconds
        """
        with self._lock:
            self._overall.add(latency_ms)
            self._by_type.setdefault(recommendation_type, _LatencyStats()).add(latency_ms)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with the overall stats (call count, average, min and
            max latency in milliseconds) plus the same stats under
            ``by_type`` for every recommendation type seen.
        """
        with self._lock:
            overall = self._overall.as_dict()
            return {
                "call_count": overall["count"],
                "average_latency_ms": overall["average_latency_ms"],
                "min_latency_ms": overall["min_latency_ms"],
                "max_latency_ms": overall["max_latency_ms"],
                "by_type": {name: stats.as_dict() for name, stats in sorted(self._by_type.items())},
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._overall = _LatencyStats()
            self._by_type = {}


# Global singleton instance
metrics_service = MetricsService()
