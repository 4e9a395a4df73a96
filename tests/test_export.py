from datetime import datetime
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from exceptions import ExportError
from monitoring.export import (
    export_filename,
    render_performance_summary,
    write_performance_summary,
)
from monitoring.registry import MetricsRegistry


def test_export_filename_format():
    name = export_filename(datetime(2024, 3, 5, 14, 7, 9))
    assert name == "20240305-140709-export.log"


def test_export_creates_logs_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    registry = MetricsRegistry()
    registry.record_execution("SERVICE", "createPost", 120, True)
    registry.record_execution("SERVICE", "createPost", 80, False)

    path = registry.export_performance_summary()

    assert path is not None
    assert path.resolve().parent == (tmp_path / "logs").resolve()
    assert path.name.endswith("-export.log")
    content = path.read_text(encoding="utf-8")
    assert "PERFORMANCE METRICS SUMMARY" in content
    assert "Method: SERVICE::createPost" in content
    assert "Total Calls: 2" in content
    assert "Failed: 1" in content
    assert "Avg Execution Time: 100 ms" in content
    assert "Status: NORMAL" in content


def test_export_empty_registry(registry):
    path = registry.export_performance_summary()

    assert path is not None
    assert "Methods Monitored: 0" in path.read_text(encoding="utf-8")


def test_export_logs_success(registry):
    registry.record_execution("REPOSITORY", "save", 10, True)

    with capture_logs() as logs:
        path = registry.export_performance_summary()

    events = [e for e in logs if e["event"] == "performance_summary_exported"]
    assert events and events[0]["path"] == str(path.resolve())


def test_export_failure_is_logged_not_raised(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied")
    registry = MetricsRegistry(export_dir=blocker)
    registry.record_execution("SERVICE", "createPost", 10, True)

    with capture_logs() as logs:
        result = registry.export_performance_summary()

    assert result is None
    assert any(e["event"] == "performance_summary_export_failed" for e in logs)
    assert blocker.read_text() == "occupied"


def test_writer_raises_export_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")

    with pytest.raises(ExportError):
        write_performance_summary({}, blocker)


def test_writer_leaves_no_temp_files(tmp_path):
    path = write_performance_summary({}, tmp_path, now=datetime(2024, 1, 1, 0, 0, 0))

    assert sorted(p.name for p in tmp_path.iterdir()) == [path.name]


def test_blocks_are_ordered_by_key(registry):
    registry.record_execution("SERVICE", "zeta", 1, True)
    registry.record_execution("REPOSITORY", "alpha", 1, True)

    content = render_performance_summary(registry.get_all_metrics())

    assert content.index("REPOSITORY::alpha") < content.index("SERVICE::zeta")


def test_unencodable_operation_name_is_logged_not_raised(registry):
    registry.record_execution("SERVICE", "bad\udc80name", 10, True)

    with capture_logs() as logs:
        result = registry.export_performance_summary()

    assert result is None
    failures = [e for e in logs if e["event"] == "performance_summary_export_failed"]
    assert failures and failures[0]["error_type"] == "ExportError"
    assert list(registry.export_dir.iterdir()) == []


def test_writer_removes_temp_file_on_encode_error(tmp_path):
    registry = MetricsRegistry(export_dir=tmp_path)
    registry.record_execution("REPOSITORY", "find\udc80", 5, False)

    with pytest.raises(ExportError):
        write_performance_summary(registry.get_all_metrics(), tmp_path)

    assert list(tmp_path.iterdir()) == []


def test_unexpected_writer_error_is_logged_not_raised(registry):
    registry.record_execution("SERVICE", "createPost", 10, True)

    with patch(
        "monitoring.registry.write_performance_summary",
        side_effect=RuntimeError("renderer exploded"),
    ):
        with capture_logs() as logs:
            assert registry.export_performance_summary() is None

    failures = [e for e in logs if e["event"] == "performance_summary_export_failed"]
    assert failures[0]["error_type"] == "RuntimeError"
