"""Registry of per-operation metrics keyed by ``LAYER::operation``."""

from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

import structlog

from exceptions import UnknownLayerError
from monitoring.export import write_performance_summary
from monitoring.metrics import DEFAULT_RESERVOIR_CAPACITY, OperationMetrics

logger = structlog.get_logger(__name__)

KEY_SEPARATOR = "::"


class Layer(str, Enum):
    """Application tiers whose calls are monitored."""

    SERVICE = "SERVICE"
    REPOSITORY = "REPOSITORY"

    @classmethod
    def parse(cls, value: Union["Layer", str]) -> "Layer":
        if isinstance(value, cls):
            return value
        try:
            return cls(layer_name(value))
        except ValueError as exc:
            raise UnknownLayerError(
                f"Unknown layer {value!r}; expected one of {[m.value for m in cls]}"
            ) from exc


def layer_name(layer: Union[Layer, str]) -> str:
    """Canonical upper-case name for ``layer``; unknown names pass through."""
    if isinstance(layer, Layer):
        return layer.value
    return str(layer).strip().upper()


def operation_key(layer: Union[Layer, str], operation_name: str) -> str:
    """Build the composite ``LAYER::operation`` key."""
    return f"{layer_name(layer)}{KEY_SEPARATOR}{operation_name}"


class MetricsRegistry:
    """Owns the mapping from operation key to :class:`OperationMetrics`.

    One instance is created by the composition root and shared by the
    interceptor and the query service.
    """

    def __init__(
        self,
        *,
        reservoir_capacity: int = DEFAULT_RESERVOIR_CAPACITY,
        export_dir: Union[str, Path] = "logs",
    ) -> None:
        if reservoir_capacity < 1:
            raise ValueError("Reservoir capacity must be at least 1")
        self.reservoir_capacity = reservoir_capacity
        self.export_dir = Path(export_dir)
        self._metrics: Dict[str, OperationMetrics] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, key: str) -> OperationMetrics:
        metrics = self._metrics.get(key)
        if metrics is None:
            with self._lock:
                metrics = self._metrics.get(key)
                if metrics is None:
                    metrics = OperationMetrics(key, capacity=self.reservoir_capacity)
                    self._metrics[key] = metrics
                    logger.debug("operation_registered", method=key)
        return metrics

    def record_execution(
        self,
        layer: Union[Layer, str],
        operation_name: str,
        duration_ms: int,
        success: bool,
    ) -> None:
        """Record one call of ``operation_name`` in ``layer``."""
        key = operation_key(layer, operation_name)
        self._get_or_create(key).record_execution(duration_ms, success)

    def get_metrics(self, key: str) -> Optional[OperationMetrics]:
        return self._metrics.get(key)

    def get_all_metrics(self) -> Dict[str, OperationMetrics]:
        """Return a snapshot copy of the registry mapping."""
        with self._lock:
            return dict(self._metrics)

    def reset_metrics(self) -> None:
        """Drop every operation.

        A call recorded concurrently with the reset may land on an entry that
        is discarded.
        """
        with self._lock:
            self._metrics = {}
        logger.info("metrics_reset", message="All performance metrics have been reset")

    def export_performance_summary(self) -> Optional[Path]:
        """Write a plain-text summary under ``export_dir``.

        Returns the written path, or ``None`` if the export failed. Failures
        are logged and never raised.
        """
        snapshot = self.get_all_metrics()
        try:
            path = write_performance_summary(snapshot, self.export_dir)
        except Exception as exc:
            logger.error(
                "performance_summary_export_failed",
                export_dir=str(self.export_dir),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

        logger.info(
            "performance_summary_exported",
            path=str(path.resolve()),
            methods=len(snapshot),
        )
        return path

    def __len__(self) -> int:
        return len(self._metrics)

    def __contains__(self, key: object) -> bool:
        return key in self._metrics
