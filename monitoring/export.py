"""Plain-text performance summary export."""

from __future__ import annotations

import contextlib
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from exceptions import ExportError
from monitoring.metrics import OperationMetrics

RULE_WIDTH = 80
EXPORT_SUFFIX = "-export.log"


def export_filename(now: Optional[datetime] = None) -> str:
    """Return ``<YYYYmmdd-HHMMSS>-export.log`` for ``now``."""
    now = now or datetime.now()
    return f"{now.strftime('%Y%m%d-%H%M%S')}{EXPORT_SUFFIX}"


def render_operation_block(metrics: OperationMetrics) -> str:
    lines = [
        f"Method: {metrics.method_name}",
        f"  Total Calls: {metrics.total_calls}",
        f"  Successful: {metrics.successful_calls}",
        f"  Failed: {metrics.failed_calls}",
        f"  Failure Rate: {metrics.get_failure_rate():.2f}%",
        f"  Avg Execution Time: {metrics.get_average_execution_time()} ms",
        f"  Min Execution Time: {metrics.get_min_execution_time()} ms",
        f"  Max Execution Time: {metrics.get_max_execution_time()} ms",
        f"  P50 (Median): {metrics.get_percentile(50)} ms",
        f"  P95: {metrics.get_percentile(95)} ms",
        f"  P99: {metrics.get_percentile(99)} ms",
        f"  Std Dev: {metrics.get_standard_deviation():.2f} ms",
        f"  Status: {metrics.get_performance_level().value}",
        "-" * RULE_WIDTH,
    ]
    return "\n".join(lines) + "\n"


def render_performance_summary(
    snapshot: Mapping[str, OperationMetrics],
    *,
    generated_at: Optional[datetime] = None,
) -> str:
    generated_at = generated_at or datetime.now()
    parts = [
        "=" * RULE_WIDTH + "\n",
        "PERFORMANCE METRICS SUMMARY\n",
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}\n",
        f"Methods Monitored: {len(snapshot)}\n",
        "=" * RULE_WIDTH + "\n",
    ]
    for key in sorted(snapshot):
        parts.append(render_operation_block(snapshot[key]))
    return "".join(parts)


def write_performance_summary(
    snapshot: Mapping[str, OperationMetrics],
    export_dir: Path,
    *,
    now: Optional[datetime] = None,
) -> Path:
    """Write the summary atomically and return its path.

    The content goes to a temporary file in ``export_dir`` that is renamed
    into place, so a failed write never leaves a partial artifact behind.

    Raises:
        ExportError: If the directory or file cannot be written, or the
            content cannot be encoded.
    """
    now = now or datetime.now()
    content = render_performance_summary(snapshot, generated_at=now)
    target = Path(export_dir) / export_filename(now)

    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=target.parent,
            prefix=".export-",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(content)
        os.replace(tmp_name, target)
    except BaseException as exc:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
        # Unencodable operation names surface as UnicodeEncodeError (a ValueError).
        if isinstance(exc, (OSError, ValueError)):
            raise ExportError(
                f"Failed to export performance summary to {target}: {exc}"
            ) from exc
        raise

    return target
