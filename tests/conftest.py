import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))  # noqa: E402

from monitoring import MetricsQueryService, MetricsRegistry, PerformanceMonitor  # noqa: E402


@pytest.fixture
def registry(tmp_path):
    return MetricsRegistry(reservoir_capacity=1000, export_dir=tmp_path / "logs")


@pytest.fixture
def monitor(registry):
    return PerformanceMonitor(registry, slow_threshold_ms=1000)


@pytest.fixture
def queries(registry):
    return MetricsQueryService(registry)
