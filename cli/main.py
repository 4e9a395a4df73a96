from __future__ import annotations

import json
import random
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from config import MonitoringSettings, get_settings
from monitoring import (
    Layer,
    MetricsQueryService,
    MetricsRegistry,
    PerformanceMonitor,
    configure_logging,
)

# (layer, operation, typical latency in seconds, failure probability)
SAMPLE_OPERATIONS: List[Tuple[Layer, str, float, float]] = [
    (Layer.SERVICE, "createPost", 0.040, 0.05),
    (Layer.SERVICE, "getPostById", 0.010, 0.0),
    (Layer.SERVICE, "createUser", 0.025, 0.10),
    (Layer.SERVICE, "addComment", 0.015, 0.02),
    (Layer.REPOSITORY, "findById", 0.005, 0.0),
    (Layer.REPOSITORY, "save", 0.020, 0.05),
    (Layer.REPOSITORY, "findAllByTag", 0.060, 0.0),
]


class SimulatedFailure(RuntimeError):
    """Raised by the sample workload to exercise failure accounting."""


def build_components(
    settings: Optional[MonitoringSettings] = None,
) -> Tuple[MetricsRegistry, PerformanceMonitor, MetricsQueryService]:
    """Wire one registry into the monitor and the query service."""
    settings = settings or get_settings()
    registry = MetricsRegistry(
        reservoir_capacity=settings.reservoir_capacity,
        export_dir=settings.export_dir,
    )
    monitor = PerformanceMonitor(registry, slow_threshold_ms=settings.slow_threshold_ms)
    return registry, monitor, MetricsQueryService(registry)


def _simulated_call(latency: float, failure_rate: float) -> str:
    time.sleep(random.uniform(latency * 0.5, latency * 1.5))
    if random.random() < failure_rate:
        raise SimulatedFailure("simulated failure")
    return "ok"


def run_workload(monitor: PerformanceMonitor, *, calls: int = 200, workers: int = 8) -> int:
    """Drive ``calls`` sample operations through ``monitor``; return failures seen."""

    def one_call(i: int) -> bool:
        layer, name, latency, failure_rate = SAMPLE_OPERATIONS[i % len(SAMPLE_OPERATIONS)]
        try:
            monitor.wrap(layer, name, lambda: _simulated_call(latency, failure_rate))
        except SimulatedFailure:
            return False
        return True

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(one_call, range(calls)))
    return results.count(False)


def main() -> None:
    """Run a sample workload and print the collected metrics."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    _, monitor, queries = build_components(settings)

    print("📊 Performance Monitor demo")
    print("=" * 50)

    failures = run_workload(monitor)
    print(f"Workload finished with {failures} simulated failures.\n")

    print(json.dumps(queries.get_metrics_summary(), indent=2))
    print("\n--- TOP 3 SLOWEST OPERATIONS ---")
    for entry in queries.get_top_slow_methods(3)["methods"]:
        print(
            f"  {entry['method']}: avg={entry['avg_execution_time']} ms "
            f"p95={entry['p95']} ms [{entry['performance_level']}]"
        )

    path = queries.export_performance_summary()
    if path:
        print(f"\nSummary exported to {path}")
    else:
        print("\nExport failed, see logs.")


if __name__ == "__main__":
    main()
