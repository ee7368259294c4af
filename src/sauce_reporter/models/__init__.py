"""Data models for sauce-reporter."""

from sauce_reporter.models.sauce_report import Attachment, Status, Suite, Test, TestRun
from sauce_reporter.models.session import Session
from sauce_reporter.models.test_result import (
    BrowserInfo,
    OSInfo,
    Screenshot,
    TestResult,
    Video,
    load_results,
)

__all__ = [
    "Attachment",
    "BrowserInfo",
    "OSInfo",
    "Screenshot",
    "Session",
    "Status",
    "Suite",
    "Test",
    "TestResult",
    "TestRun",
    "Video",
    "load_results",
]
