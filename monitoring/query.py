"""Read-only views over a :class:`MetricsRegistry`."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import structlog

from monitoring.metrics import OperationMetrics
from monitoring.registry import KEY_SEPARATOR, Layer, MetricsRegistry, layer_name

logger = structlog.get_logger(__name__)

METHOD_NOT_FOUND = "Method not found"


def format_method_metrics(method: str, metrics: OperationMetrics) -> Dict[str, Any]:
    """Flatten one operation's statistics into a JSON-friendly dict."""
    avg = metrics.get_average_execution_time()
    return {
        "method": method,
        "total_calls": metrics.total_calls,
        "successful_calls": metrics.successful_calls,
        "failed_calls": metrics.failed_calls,
        "failure_rate": round(metrics.get_failure_rate(), 2),
        "avg_execution_time": avg,
        "min_execution_time": metrics.get_min_execution_time(),
        "max_execution_time": metrics.get_max_execution_time(),
        "p50": metrics.get_percentile(50),
        "p95": metrics.get_percentile(95),
        "p99": metrics.get_percentile(99),
        "std_dev": round(metrics.get_standard_deviation(), 2),
        "unit": "ms",
        "performance_level": metrics.get_performance_level().value,
    }


def _by_average(items: Iterable[Tuple[str, OperationMetrics]]) -> List[Dict[str, Any]]:
    """Format and order by average descending, then key ascending."""
    formatted = [format_method_metrics(key, metrics) for key, metrics in items]
    formatted.sort(key=lambda m: (-m["avg_execution_time"], m["method"]))
    return formatted


class MetricsQueryService:
    """Formatting, filtering and sorting on top of the registry.

    Never mutates statistics; reset and export are passed straight through.
    """

    def __init__(self, registry: MetricsRegistry) -> None:
        self.registry = registry

    def get_all_metrics_formatted(self) -> Dict[str, Any]:
        snapshot = self.registry.get_all_metrics()
        return {
            "total_methods": len(snapshot),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "methods": _by_average(snapshot.items()),
        }

    def get_method_metrics_formatted(self, key: str) -> Dict[str, Any]:
        metrics = self.registry.get_metrics(key)
        if metrics is None:
            logger.debug("method_metrics_not_found", method=key)
            return {"error": METHOD_NOT_FOUND, "method": key}
        return format_method_metrics(key, metrics)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Aggregate counters across all operations.

        ``overall_average_execution_time`` is the plain mean of every
        operation's own average. It is not weighted by call volume, so a
        rarely called slow operation pulls it up as much as a hot one.
        """
        snapshot = list(self.registry.get_all_metrics().values())
        averages = [m.get_average_execution_time() for m in snapshot]
        overall = sum(averages) / len(averages) if averages else 0.0
        return {
            "total_methods_monitored": len(snapshot),
            "total_executions": sum(m.total_calls for m in snapshot),
            "total_failures": sum(m.failed_calls for m in snapshot),
            "overall_average_execution_time": round(overall, 2),
        }

    def get_slow_methods(self, threshold_ms: int) -> Dict[str, Any]:
        """Operations whose average is strictly above ``threshold_ms``.

        A threshold of 0 or less matches every operation, including those
        whose truncated average is 0 ms.
        """
        snapshot = self.registry.get_all_metrics()
        slow = _by_average(
            (key, m) for key, m in snapshot.items()
            if threshold_ms <= 0 or m.get_average_execution_time() > threshold_ms
        )
        return {
            "threshold": f"{threshold_ms} ms",
            "count": len(slow),
            "methods": slow,
        }

    def get_top_slow_methods(self, limit: int) -> Dict[str, Any]:
        ranked = _by_average(self.registry.get_all_metrics().items())
        return {
            "limit": limit,
            "methods": ranked[:max(limit, 0)],
        }

    def get_metrics_by_layer(self, layer: Union[Layer, str]) -> Dict[str, Any]:
        name = layer_name(layer)
        prefix = f"{name}{KEY_SEPARATOR}"
        methods = _by_average(
            (key, m) for key, m in self.registry.get_all_metrics().items()
            if key.startswith(prefix)
        )
        return {
            "layer": name,
            "count": len(methods),
            "methods": methods,
        }

    def get_failure_statistics(self) -> Dict[str, Any]:
        snapshot = self.registry.get_all_metrics()

        methods = [
            {
                "method": key,
                "total_calls": m.total_calls,
                "failed_calls": m.failed_calls,
                "successful_calls": m.successful_calls,
                "failure_rate": round(m.get_failure_rate(), 2),
            }
            for key, m in snapshot.items()
            if m.failed_calls > 0
        ]
        methods.sort(key=lambda m: (-m["failed_calls"], m["method"]))

        total_calls = sum(m.total_calls for m in snapshot.values())
        total_failures = sum(m.failed_calls for m in snapshot.values())
        overall_rate = total_failures / total_calls * 100 if total_calls else 0.0

        return {
            "total_failures": total_failures,
            "total_calls": total_calls,
            "overall_failure_rate": round(overall_rate, 2),
            "methods_with_failures": len(methods),
            "methods": methods,
        }

    def reset_metrics(self) -> None:
        self.registry.reset_metrics()

    def export_performance_summary(self) -> Optional[str]:
        path = self.registry.export_performance_summary()
        return str(path) if path is not None else None
