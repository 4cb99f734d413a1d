"""
HueSort Metrics Collection
Thread-safe in-process counters and stage timings for batch processing.
"""
import time
from collections import Counter, defaultdict
from contextlib import contextmanager
from threading import Lock
from typing import Any, Dict, Iterator, List, Optional


class MetricsCollector:
    """
    Counters and duration samples shared by every batch in the process.

    Counter names:
        batches_total, images_processed_total,
        images_failed_total_<ErrorType>, strategy_used_total_<strategy>
    Timings are stored per stage as ``<stage>_duration_ms``.
    """

    def __init__(self):
        self._lock = Lock()
        self._counters: Counter = Counter()
        self._durations: Dict[str, List[float]] = defaultdict(list)
        self._started_at = time.time()

    def _bump(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[name] += amount

    def increment_batch_count(self):
        self._bump("batches_total")

    def increment_processed_count(self):
        self._bump("images_processed_total")

    def increment_strategy_count(self, strategy: str):
        self._bump(f"strategy_used_total_{strategy}")

    def increment_failure_count(self, error_type: str):
        self._bump(f"images_failed_total_{error_type}")

    def record_timing(self, stage: str, duration_ms: float):
        """Add one duration sample for ``stage`` (sample, extract, batch...)."""
        with self._lock:
            self._durations[f"{stage}_duration_ms"].append(float(duration_ms))

    @contextmanager
    def timed(self, stage: str) -> Iterator[None]:
        """Record the wall time of the enclosed block under ``stage`` if it completes."""
        start = time.perf_counter()
        yield
        self.record_timing(stage, (time.perf_counter() - start) * 1000)

    def get_counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """count/mean/min/max/p50/p95 per recorded stage."""
        with self._lock:
            snapshot = {name: list(samples) for name, samples in self._durations.items() if samples}

        return {
            name: {
                "count": len(samples),
                "mean": sum(samples) / len(samples),
                "min": min(samples),
                "max": max(samples),
                "p50": percentile(samples, 50),
                "p95": percentile(samples, 95),
            }
            for name, samples in snapshot.items()
        }

    def get_failure_rate(self) -> float:
        """Failed images over all analyzed images; 0 before any image ran."""
        counters = self.get_counters()
        failed = sum(v for k, v in counters.items() if k.startswith("images_failed_total_"))
        total = failed + counters.get("images_processed_total", 0)
        return failed / total if total else 0.0

    def get_uptime_seconds(self) -> float:
        return time.time() - self._started_at

    def get_summary(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": self.get_uptime_seconds(),
            "counters": self.get_counters(),
            "failure_rate": self.get_failure_rate(),
            "timing_stats": self.get_timing_stats(),
        }

    def reset(self):
        """Clear all counters and samples (tests)."""
        with self._lock:
            self._counters.clear()
            self._durations.clear()
            self._started_at = time.time()


def percentile(samples: List[float], pct: float) -> float:
    """Linearly interpolated percentile of ``samples``; 0.0 when empty."""
    if not samples:
        return 0.0
    ordered = sorted(samples)
    rank = (len(ordered) - 1) * pct / 100.0
    lower = int(rank)
    upper = min(lower + 1, len(ordered) - 1)
    return ordered[lower] + (rank - lower) * (ordered[upper] - ordered[lower])


# Process-wide collector
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Return the process-wide collector, creating it on first use."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    if _metrics is not None:
        _metrics.reset()
