"""Shared fixtures for sauce-reporter tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from sauce_reporter.models.test_result import BrowserInfo, OSInfo, TestResult
from sauce_reporter.telemetry import sentry_integration

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)

SAUCE_ENV_VARS = (
    "SAUCE_USERNAME",
    "SAUCE_ACCESS_KEY",
    "SAUCE_BUILD",
    "SAUCE_TAGS",
    "SAUCE_REGION",
    "SAUCE_REPORTER_SENTRY_ENABLED",
    "SAUCE_REPORTER_SENTRY_DSN",
    "SAUCE_REPORTER_SENTRY_TRACES_SAMPLE_RATE",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep the developer's Sauce credentials and Sentry state out of tests."""
    for name in SAUCE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    sentry_integration._initialized["value"] = False
    yield
    sentry_integration._initialized["value"] = False


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def chrome() -> BrowserInfo:
    return BrowserInfo(
        name="Chrome",
        version="124.0.6367.60",
        os=OSInfo(name="Linux", version="0.0"),
        pretty_user_agent="Chrome 124.0.6367.60 / Linux 0.0",
    )


@pytest.fixture
def make_test(chrome: BrowserInfo) -> Callable[..., TestResult]:
    """Factory for test results; offsets are seconds after ``BASE_TIME``."""

    def _make(
        name: str = "renders the page",
        *,
        fixture_name: str = "Home page",
        spec_path: str = "tests/home.js",
        start: float = 0,
        end: float = 1,
        **kwargs: Any,
    ) -> TestResult:
        kwargs.setdefault("browser", chrome)
        return TestResult(
            name=name,
            fixture_name=fixture_name,
            spec_path=spec_path,
            start_time=BASE_TIME + timedelta(seconds=start),
            end_time=BASE_TIME + timedelta(seconds=end),
            **kwargs,
        )

    return _make
