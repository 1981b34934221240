"""
Timing metrics for pipeline stages and requests.

Only durations and status are recorded; no dataset content is kept.
"""
import inspect
import logging
import threading
import time
from collections import defaultdict, deque
from functools import wraps
from typing import Any, Deque, Dict, Optional

logger = logging.getLogger(__name__)

MAX_SAMPLES_PER_METRIC = 1000

_metrics_lock = threading.Lock()
_metrics: Dict[str, Deque[Dict[str, Any]]] = defaultdict(lambda: deque(maxlen=MAX_SAMPLES_PER_METRIC))


def _percentile(sorted_values, fraction: float) -> float:
    return sorted_values[min(int(len(sorted_values) * fraction), len(sorted_values) - 1)]


class PerformanceMonitor:
    """Record and summarize timings by metric name."""

    @staticmethod
    def record_metric(name: str, value: float, metadata: Optional[Dict[str, Any]] = None):
        with _metrics_lock:
            _metrics[name].append({
                'value': value,
                'timestamp': time.time(),
                'metadata': metadata or {}
            })

    @staticmethod
    def _stats_locked(metric_name: str) -> Optional[Dict[str, float]]:
        samples = _metrics.get(metric_name)
        if not samples:
            return None
        values = sorted(sample['value'] for sample in samples)
        return {
            'count': len(values),
            'min': values[0],
            'max': values[-1],
            'mean': sum(values) / len(values),
            'p50': _percentile(values, 0.50),
            'p95': _percentile(values, 0.95),
            'p99': _percentile(values, 0.99),
        }

    @staticmethod
    def get_stats(metric_name: str) -> Optional[Dict[str, float]]:
        """
        Summary statistics for one metric.

        Returns:
            Dict with count, min, max, mean and p50/p95/p99, or None if no data
        """
        with _metrics_lock:
            return PerformanceMonitor._stats_locked(metric_name)

    @staticmethod
    def get_all_metrics() -> Dict[str, Dict[str, float]]:
        with _metrics_lock:
            return {name: PerformanceMonitor._stats_locked(name) for name in list(_metrics.keys())}

    @staticmethod
    def clear_metrics():
        """Clear all metrics (useful for testing)."""
        with _metrics_lock:
            _metrics.clear()


def track_performance(metric_name: str):
    """
    Decorator recording how long a sync or async function takes.

    Usage:
        @track_performance("visualization_pipeline")
        def run_visualization_pipeline(...):
            ...
    """
    def _record(start: float, status: str, error: Optional[Exception] = None) -> float:
        duration = time.time() - start
        metadata: Dict[str, Any] = {'status': status}
        if error is not None:
            metadata['error'] = str(error)
        PerformanceMonitor.record_metric(metric_name, duration, metadata)
        return duration

    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration = _record(start, 'error', e)
                logger.error(f"{metric_name} failed after {duration:.3f}s: {e}", exc_info=True)
                raise
            duration = _record(start, 'success')
            logger.debug(f"{metric_name} completed in {duration:.3f}s",
                         extra={'metric': metric_name, 'duration': duration})
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = _record(start, 'error', e)
                logger.error(f"{metric_name} failed after {duration:.3f}s: {e}", exc_info=True)
                raise
            duration = _record(start, 'success')
            logger.debug(f"{metric_name} completed in {duration:.3f}s",
                         extra={'metric': metric_name, 'duration': duration})
            return result

        return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper

    return decorator
