"""Call interception: time a body, record the outcome, re-raise errors."""

from __future__ import annotations

import functools
import inspect
import time
import tracemalloc
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import structlog

from monitoring.metrics import classify_performance
from monitoring.registry import Layer, MetricsRegistry, operation_key

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_SLOW_THRESHOLD_MS = 1000


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _traced_bytes() -> Optional[int]:
    """Current traced allocation size, or ``None`` when tracemalloc is off."""
    if not tracemalloc.is_tracing():
        return None
    return tracemalloc.get_traced_memory()[0]


def _memory_used_kb(start_bytes: Optional[int]) -> Optional[int]:
    end_bytes = _traced_bytes()
    if start_bytes is None or end_bytes is None:
        return None
    return (end_bytes - start_bytes) // 1024


class PerformanceMonitor:
    """Wraps service and repository calls and reports them to a registry."""

    def __init__(
        self,
        registry: MetricsRegistry,
        *,
        slow_threshold_ms: int = DEFAULT_SLOW_THRESHOLD_MS,
    ) -> None:
        self.registry = registry
        self.slow_threshold_ms = slow_threshold_ms

    def wrap(self, layer: Union[Layer, str], operation_name: str, body: Callable[[], T]) -> T:
        """
        Execute ``body`` and record its duration and outcome.

        Any exception raised by ``body`` is recorded as a failure and then
        re-raised unchanged.

        Raises:
            UnknownLayerError: If ``layer`` is not a monitored layer. Raised
                before ``body`` runs.
        """
        resolved = Layer.parse(layer)
        start_bytes = _traced_bytes()
        start = time.perf_counter()
        success = False
        try:
            result = body()
            success = True
            return result
        finally:
            self._report(
                resolved, operation_name, _elapsed_ms(start), success,
                memory_kb=_memory_used_kb(start_bytes),
            )

    async def wrap_async(
        self,
        layer: Union[Layer, str],
        operation_name: str,
        body: Callable[[], Awaitable[T]],
    ) -> T:
        """Async counterpart of :meth:`wrap`; measures the awaited time."""
        resolved = Layer.parse(layer)
        start_bytes = _traced_bytes()
        start = time.perf_counter()
        success = False
        try:
            result = await body()
            success = True
            return result
        finally:
            self._report(
                resolved, operation_name, _elapsed_ms(start), success,
                memory_kb=_memory_used_kb(start_bytes),
            )

    def monitored(self, layer: Union[Layer, str], name: Optional[str] = None):
        """
        Decorator form of :meth:`wrap`.

        Args:
            layer: Layer the decorated callable belongs to
            name: Operation name (defaults to the function's qualified name)
        """
        resolved = Layer.parse(layer)

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            operation_name = name or func.__qualname__

            if inspect.iscoroutinefunction(func):
                @functools.wraps(func)
                async def async_wrapper(*args, **kwargs):
                    return await self.wrap_async(
                        resolved, operation_name, lambda: func(*args, **kwargs)
                    )
                return async_wrapper
            else:
                @functools.wraps(func)
                def sync_wrapper(*args, **kwargs):
                    return self.wrap(resolved, operation_name, lambda: func(*args, **kwargs))
                return sync_wrapper

        return decorator

    def _report(
        self,
        layer: Layer,
        operation_name: str,
        duration_ms: int,
        success: bool,
        *,
        memory_kb: Optional[int] = None,
    ) -> None:
        key = operation_key(layer, operation_name)
        try:
            self.registry.record_execution(layer, operation_name, duration_ms, success)
        except Exception as exc:
            # The wrapped call's outcome wins over recording errors.
            logger.error("metrics_record_failed", method=key, error=str(exc))
            return

        event = {
            "method": key,
            "duration_ms": duration_ms,
            "performance_level": classify_performance(duration_ms).value,
            "status": "SUCCESS" if success else "FAILED",
        }
        if memory_kb is not None:
            event["memory_kb"] = memory_kb
        logger.debug("operation_executed", **event)

        if duration_ms > self.slow_threshold_ms:
            logger.warning(
                "slow_operation_detected",
                layer=layer.value,
                operation=operation_name,
                duration_ms=duration_ms,
                threshold_ms=self.slow_threshold_ms,
            )
