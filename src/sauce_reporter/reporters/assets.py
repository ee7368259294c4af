"""Report and attachment files uploaded with each Sauce Labs job."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sauce_reporter.models.sauce_report import Status, TestRun

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sauce_reporter.models.session import Session
    from sauce_reporter.models.test_result import TestResult

logger = logging.getLogger(__name__)

CONSOLE_LOG_FILENAME = "console.log"
TEST_REPORT_FILENAME = "sauce-test-report.json"

_PASSED_GLYPH = "✓"
_FAILED_GLYPH = "✖"
_MESSAGE_INDENT = " " * 8


@dataclass(frozen=True)
class UploadAsset:
    """A named file in an asset upload batch."""

    filename: str
    data: bytes | str


def screenshot_name(test_name: str, screenshot_path: str) -> str:
    """Name a screenshot after its test.

    A test can take several screenshots, so the file's base name is kept
    as a suffix to avoid collisions.
    """
    return f"{test_name} - {Path(screenshot_path).name}"


def _message_block(title: str, messages: Iterable[str]) -> list[str]:
    lines = ["", f"    {title}:"]
    for message in messages:
        if message:
            lines.extend(f"{_MESSAGE_INDENT}{line}" for line in message.split("\n"))
    return lines


def build_console_log(session: Session) -> UploadAsset:
    """Render a plain-text summary of the session's results."""
    lines = [f"Running tests in: {session.browser.pretty_user_agent}", "", "", "Results:"]

    for test in session.tests:
        glyph = _PASSED_GLYPH if test.passed else _FAILED_GLYPH
        lines.append(f"  {glyph} {test.fixture_name} - {test.name}")

        if test.errs:
            lines.extend(_message_block("Errors", test.errs))
        if test.warnings:
            lines.extend(_message_block("Warnings", test.warnings))
        if test.errs or test.warnings:
            lines.append("")

    return UploadAsset(filename=CONSOLE_LOG_FILENAME, data="\n".join(lines) + "\n")


def _duration_ms(test: TestResult) -> int | None:
    if test.start_time is None or test.end_time is None:
        return None
    return round((test.end_time - test.start_time).total_seconds() * 1000)


def build_test_report(session: Session) -> TestRun:
    """Fold the session's tests into a spec -> fixture -> test report tree.

    Suite statuses roll up with ``Status.merge`` as each test is added,
    so a suite turns failed as soon as one of its tests fails and stays
    that way.
    """
    test_run = TestRun(status=Status.PASSED if session.passed else Status.FAILED)

    for test in session.tests:
        suite = test_run.with_suite(test.spec_path)
        fixture = suite.with_suite(test.fixture_name)

        status = Status.PASSED if test.passed else Status.FAILED
        suite.status = suite.status.merge(status)
        fixture.status = fixture.status.merge(status)

        node = fixture.with_test(
            test.name,
            status=status,
            duration=_duration_ms(test),
            start_time=test.start_time,
            metadata={"browser": test.browser.name},
        )

        if test.video is not None:
            node.attach(name=test.name, path=f"{test.name}.mp4", content_type="video/mp4")
        for screenshot in test.screenshots:
            filename = screenshot_name(test.name, screenshot.screenshot_path)
            node.attach(name=filename, path=filename, content_type="image/png")

    return test_run


def build_test_report_asset(session: Session) -> UploadAsset:
    return UploadAsset(filename=TEST_REPORT_FILENAME, data=build_test_report(session).to_json())


def _maybe_read_file(path: str) -> bytes | None:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        logger.warning("Failed to read contents of %s: %s", path, exc)
        return None


def collect_videos(tests: Iterable[TestResult]) -> list[UploadAsset]:
    """Read each test's video; unreadable files are skipped."""
    assets: list[UploadAsset] = []
    for test in tests:
        if test.video is None:
            continue
        data = _maybe_read_file(test.video.video_path)
        if data:
            assets.append(UploadAsset(filename=f"{test.name}.mp4", data=data))
    return assets


def collect_screenshots(tests: Iterable[TestResult]) -> list[UploadAsset]:
    """Read each test's screenshots; unreadable files are skipped."""
    assets: list[UploadAsset] = []
    for test in tests:
        for screenshot in test.screenshots:
            data = _maybe_read_file(screenshot.screenshot_path)
            if data:
                filename = screenshot_name(test.name, screenshot.screenshot_path)
                assets.append(UploadAsset(filename=filename, data=data))
    return assets


def build_assets(session: Session) -> list[UploadAsset]:
    """Build the full upload batch for *session*."""
    return [
        build_console_log(session),
        build_test_report_asset(session),
        *collect_videos(session.tests),
        *collect_screenshots(session.tests),
    ]
