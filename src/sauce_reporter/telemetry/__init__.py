"""Telemetry integrations for sauce-reporter."""

from sauce_reporter.telemetry.sentry_integration import (
    capture_report_failure,
    init_sentry,
    is_sentry_enabled,
)

__all__ = [
    "capture_report_failure",
    "init_sentry",
    "is_sentry_enabled",
]
