"""Reporters for uploading test results."""

from __future__ import annotations

from sauce_reporter.reporters.sauce import FlushOutcome, FlushResult, SauceReporter

__all__ = [
    "FlushOutcome",
    "FlushResult",
    "SauceReporter",
]
