"""Sauce test report, the ``sauce-test-report.json`` document.

A report is a tree: a ``TestRun`` holds suites, suites hold nested suites
and tests, and every node can carry attachments.  Keys are serialized in
camelCase to match what the Sauce Labs results viewer reads.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Status(Enum):
    """Outcome of a test, suite, or whole run."""

    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"

    def merge(self, other: Status) -> Status:
        """Roll *other* into this status; once failed, always failed."""
        if Status.FAILED in (self, other):
            return Status.FAILED
        return self


def format_timestamp(value: datetime) -> str:
    """Format *value* as UTC ISO-8601 with millisecond precision.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Attachment:
    """Reference to a file uploaded alongside the report."""

    name: str
    path: str
    content_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "contentType": self.content_type}


@dataclass
class Test:
    """A single test leaf in the report tree."""

    __test__ = False

    name: str
    status: Status = Status.PASSED
    duration: int | None = None
    """Duration in milliseconds."""
    output: str = ""
    start_time: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    attachments: list[Attachment] = field(default_factory=list)

    def attach(self, name: str, path: str, content_type: str = "") -> Attachment:
        attachment = Attachment(name=name, path=path, content_type=content_type)
        self.attachments.append(attachment)
        return attachment

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "output": self.output,
            "metadata": self.metadata,
            "attachments": [a.to_dict() for a in self.attachments],
        }
        if self.duration is not None:
            data["duration"] = self.duration
        if self.start_time is not None:
            data["startTime"] = format_timestamp(self.start_time)
        return data


@dataclass
class Suite:
    """A named group of tests and nested suites."""

    name: str
    status: Status = Status.PASSED
    metadata: dict[str, Any] = field(default_factory=dict)
    suites: list[Suite] = field(default_factory=list)
    tests: list[Test] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    def with_suite(self, name: str) -> Suite:
        """Return the child suite called *name*, creating it if needed."""
        return _find_or_create_suite(self.suites, name)

    def with_test(
        self,
        name: str,
        *,
        status: Status = Status.PASSED,
        duration: int | None = None,
        output: str = "",
        start_time: datetime | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Test:
        test = Test(
            name=name,
            status=status,
            duration=duration,
            output=output,
            start_time=start_time,
            metadata=metadata or {},
        )
        self.tests.append(test)
        return test

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "metadata": self.metadata,
            "suites": [s.to_dict() for s in self.suites],
            "attachments": [a.to_dict() for a in self.attachments],
            "tests": [t.to_dict() for t in self.tests],
        }


@dataclass
class TestRun:
    """Root of a Sauce test report."""

    __test__ = False

    status: Status = Status.PASSED
    suites: list[Suite] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_suite(self, name: str) -> Suite:
        """Return the top-level suite called *name*, creating it if needed."""
        return _find_or_create_suite(self.suites, name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "attachments": [a.to_dict() for a in self.attachments],
            "suites": [s.to_dict() for s in self.suites],
            "metadata": self.metadata,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _find_or_create_suite(suites: list[Suite], name: str) -> Suite:
    for suite in suites:
        if suite.name == name:
            return suite
    suite = Suite(name=name)
    suites.append(suite)
    return suite
