"""Environment-aware settings for the performance monitor."""

from __future__ import annotations

from .settings import MonitoringSettings


def get_settings() -> MonitoringSettings:
    """Return settings read from ``PERF_MONITOR_*`` environment variables."""

    return MonitoringSettings()


__all__ = ["MonitoringSettings", "get_settings"]
