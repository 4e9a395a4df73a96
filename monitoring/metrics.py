"""Per-operation execution statistics.

Counters (total, successful, failed, duration sum, min, max) are exact over
the whole lifetime of an operation. Percentiles and standard deviation are
computed from a bounded reservoir holding only the most recent samples, so
they describe recent behaviour rather than the full history.
"""

from __future__ import annotations

import math
import threading
from collections import deque
from enum import Enum
from typing import Deque, List

import numpy as np

DEFAULT_RESERVOIR_CAPACITY = 1000


class PerformanceLevel(str, Enum):
    """Coarse classification of an average execution time."""

    FAST = "FAST"
    NORMAL = "NORMAL"
    SLOW = "SLOW"
    CRITICAL = "CRITICAL"


def classify_performance(execution_time_ms: float) -> PerformanceLevel:
    """Map milliseconds to a performance level."""
    if execution_time_ms < 100:
        return PerformanceLevel.FAST
    if execution_time_ms < 500:
        return PerformanceLevel.NORMAL
    if execution_time_ms < 1000:
        return PerformanceLevel.SLOW
    return PerformanceLevel.CRITICAL


class OperationMetrics:
    """Thread-safe statistics for a single monitored operation."""

    def __init__(self, method_name: str, *, capacity: int = DEFAULT_RESERVOIR_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Reservoir capacity must be at least 1")
        self.method_name = method_name
        self.capacity = capacity

        self._total_calls = 0
        self._successful_calls = 0
        self._failed_calls = 0
        self._total_execution_time = 0
        self._min_execution_time: int | None = None
        self._max_execution_time: int | None = None
        self._counter_lock = threading.Lock()

        # Oldest sample is evicted once the deque is full.
        self._samples: Deque[int] = deque(maxlen=capacity)
        self._samples_lock = threading.Lock()

    def record_execution(self, duration_ms: int, success: bool) -> None:
        """Record one finished call."""
        duration_ms = int(duration_ms)

        with self._counter_lock:
            self._total_calls += 1
            if success:
                self._successful_calls += 1
            else:
                self._failed_calls += 1
            self._total_execution_time += duration_ms
            if self._min_execution_time is None or duration_ms < self._min_execution_time:
                self._min_execution_time = duration_ms
            if self._max_execution_time is None or duration_ms > self._max_execution_time:
                self._max_execution_time = duration_ms

        with self._samples_lock:
            self._samples.append(duration_ms)

    def get_method_name(self) -> str:
        return self.method_name

    @property
    def total_calls(self) -> int:
        return self._total_calls

    @property
    def successful_calls(self) -> int:
        return self._successful_calls

    @property
    def failed_calls(self) -> int:
        return self._failed_calls

    @property
    def total_execution_time(self) -> int:
        return self._total_execution_time

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def samples(self) -> List[int]:
        """Return a copy of the reservoir, oldest sample first."""
        with self._samples_lock:
            return list(self._samples)

    def get_average_execution_time(self) -> int:
        """Lifetime average in whole milliseconds (truncated)."""
        with self._counter_lock:
            total, calls = self._total_execution_time, self._total_calls
        if calls == 0:
            return 0
        return total // calls

    def get_min_execution_time(self) -> int:
        return self._min_execution_time if self._min_execution_time is not None else 0

    def get_max_execution_time(self) -> int:
        return self._max_execution_time if self._max_execution_time is not None else 0

    def get_failure_rate(self) -> float:
        """Failed calls as a percentage of all calls."""
        with self._counter_lock:
            failed, calls = self._failed_calls, self._total_calls
        if calls == 0:
            return 0.0
        return failed / calls * 100

    def get_percentile(self, percentile: float) -> int:
        """Nearest-rank percentile over the current reservoir.

        ``get_percentile(100)`` is the largest sample still in the reservoir,
        which may be lower than :meth:`get_max_execution_time` once older
        samples have been evicted.
        """
        ordered = sorted(self.samples())
        if not ordered:
            return 0
        n = len(ordered)
        index = math.ceil(percentile * n / 100) - 1
        index = max(0, min(index, n - 1))
        return ordered[index]

    def get_standard_deviation(self) -> float:
        """Population standard deviation of the reservoir samples.

        The mean is taken over the same reservoir snapshot, so the result
        always describes one consistent window. Returns 0 with fewer than
        two samples.
        """
        snapshot = self.samples()
        if len(snapshot) < 2:
            return 0.0
        return float(np.std(snapshot))

    def get_performance_level(self) -> PerformanceLevel:
        return classify_performance(self.get_average_execution_time())

    def __repr__(self) -> str:
        return (
            f"OperationMetrics(method_name={self.method_name!r}, "
            f"total_calls={self._total_calls}, failed_calls={self._failed_calls})"
        )
