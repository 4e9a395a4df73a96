"""Execution-time monitoring for service and repository operations."""

from .metrics import OperationMetrics, PerformanceLevel, classify_performance
from .registry import Layer, MetricsRegistry, operation_key
from .interceptor import PerformanceMonitor
from .query import MetricsQueryService
from .telemetry import configure_logging

__all__ = [
    "OperationMetrics",
    "PerformanceLevel",
    "classify_performance",
    "Layer",
    "MetricsRegistry",
    "operation_key",
    "PerformanceMonitor",
    "MetricsQueryService",
    "configure_logging",
]
