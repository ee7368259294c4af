"""Session model holding the results of one spec file run in one browser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sauce_reporter.models.test_result import BrowserInfo, TestResult


def _as_utc(value: datetime) -> datetime:
    """Return *value* with naive datetimes taken to be UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


@dataclass
class Session:
    """Aggregated results of a spec file run.

    Aggregate state is updated as each test arrives so earlier entries
    never need to be scanned again.
    """

    browser: BrowserInfo
    """Browser the session ran in (taken from the first test)."""

    spec_path: str
    """Spec file the session ran (taken from the first test)."""

    tests: list[TestResult] = field(default_factory=list)
    """Test results in arrival order."""

    passed: bool = True
    """True while every added test has zero errors."""

    start_time: datetime | None = None
    """Earliest test start time seen so far (UTC aware)."""

    end_time: datetime | None = None
    """Latest test end time seen so far (UTC aware)."""

    def add_test(self, test: TestResult) -> None:
        """Append *test* and fold it into the aggregate state."""
        self.passed = self.passed and test.passed

        if test.start_time is not None:
            start = _as_utc(test.start_time)
            if self.start_time is None or start < self.start_time:
                self.start_time = start

        if test.end_time is not None:
            end = _as_utc(test.end_time)
            if self.end_time is None or end > self.end_time:
                self.end_time = end

        self.tests.append(test)
