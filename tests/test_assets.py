"""Tests for console log, test report and attachment construction."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from sauce_reporter.models.sauce_report import Status
from sauce_reporter.models.session import Session
from sauce_reporter.models.test_result import Screenshot, TestResult, Video
from sauce_reporter.reporters.assets import (
    CONSOLE_LOG_FILENAME,
    TEST_REPORT_FILENAME,
    build_assets,
    build_console_log,
    build_test_report,
    collect_screenshots,
    collect_videos,
    screenshot_name,
)


def _session(tests: list[TestResult]) -> Session:
    session = Session(browser=tests[0].browser, spec_path=tests[0].spec_path)
    for test in tests:
        session.add_test(test)
    return session


@pytest.fixture
def three_tests(make_test: Callable[..., TestResult]) -> list[TestResult]:
    return [
        make_test("T1", fixture_name="F", spec_path="spec.js"),
        make_test("T2", fixture_name="F", spec_path="spec.js", errs=("boom",)),
        make_test("T3", fixture_name="F", spec_path="spec.js"),
    ]


# ── console log ──────────────────────────────────────────────────


def test_console_log_example(three_tests: list[TestResult]) -> None:
    asset = build_console_log(_session(three_tests))

    assert asset.filename == CONSOLE_LOG_FILENAME
    assert asset.data == (
        "Running tests in: Chrome 124.0.6367.60 / Linux 0.0\n"
        "\n"
        "\n"
        "Results:\n"
        "  ✓ F - T1\n"
        "  ✖ F - T2\n"
        "\n"
        "    Errors:\n"
        "        boom\n"
        "\n"
        "  ✓ F - T3\n"
    )


def test_console_log_indents_multiline_messages_and_warnings(
    make_test: Callable[..., TestResult],
) -> None:
    test = make_test(
        "T",
        fixture_name="F",
        errs=("first line\nsecond line", ""),
        warnings=("slow selector",),
    )

    data = build_console_log(_session([test])).data

    assert isinstance(data, str)
    assert "        first line\n        second line\n" in data
    assert "\n    Warnings:\n        slow selector\n\n" in data
    # Empty messages produce no lines
    assert "        \n" not in data


# ── structured report ────────────────────────────────────────────


def test_report_rolls_up_failure_to_fixture_and_spec(three_tests: list[TestResult]) -> None:
    run = build_test_report(_session(three_tests))

    assert run.status is Status.FAILED
    [spec] = run.suites
    [fixture] = spec.suites
    assert spec.name == "spec.js"
    assert fixture.name == "F"
    assert spec.status is Status.FAILED
    assert fixture.status is Status.FAILED
    assert [t.status for t in fixture.tests] == [Status.PASSED, Status.FAILED, Status.PASSED]


def test_report_all_passing_is_passed(make_test: Callable[..., TestResult]) -> None:
    run = build_test_report(_session([make_test("a"), make_test("b")]))

    assert run.status is Status.PASSED
    assert run.suites[0].status is Status.PASSED
    assert run.suites[0].suites[0].status is Status.PASSED


def test_report_failure_does_not_leak_to_other_fixtures(
    make_test: Callable[..., TestResult],
) -> None:
    run = build_test_report(
        _session(
            [
                make_test("bad", fixture_name="A", errs=("boom",)),
                make_test("good", fixture_name="B"),
            ]
        )
    )

    fixtures = {suite.name: suite.status for suite in run.suites[0].suites}
    assert fixtures == {"A": Status.FAILED, "B": Status.PASSED}
    assert run.suites[0].status is Status.FAILED


def test_report_test_leaf_fields(make_test: Callable[..., TestResult]) -> None:
    test = make_test(
        "checkout",
        start=0,
        end=2.5,
        video=Video(video_path="/videos/checkout.mp4"),
        screenshots=(
            Screenshot(screenshot_path="/shots/1.png"),
            Screenshot(screenshot_path="/shots/errors/2.png"),
        ),
    )

    leaf = build_test_report(_session([test])).suites[0].suites[0].tests[0]

    assert leaf.duration == 2500
    assert leaf.start_time == test.start_time
    assert leaf.metadata == {"browser": "Chrome"}
    assert [(a.name, a.path, a.content_type) for a in leaf.attachments] == [
        ("checkout", "checkout.mp4", "video/mp4"),
        ("checkout - 1.png", "checkout - 1.png", "image/png"),
        ("checkout - 2.png", "checkout - 2.png", "image/png"),
    ]


def test_report_groups_by_spec_then_fixture_in_arrival_order(
    make_test: Callable[..., TestResult],
) -> None:
    run = build_test_report(
        _session(
            [
                make_test("1", spec_path="b.js", fixture_name="X"),
                make_test("2", spec_path="a.js", fixture_name="Y"),
                make_test("3", spec_path="b.js", fixture_name="X"),
            ]
        )
    )

    assert [s.name for s in run.suites] == ["b.js", "a.js"]
    assert [t.name for t in run.suites[0].suites[0].tests] == ["1", "3"]


# ── attachments ──────────────────────────────────────────────────


def test_screenshot_name_uses_base_name() -> None:
    assert screenshot_name("T", "/tmp/run/screens/3.png") == "T - 3.png"


def test_collect_videos_and_screenshots_read_files(
    make_test: Callable[..., TestResult], tmp_path: Path
) -> None:
    video = tmp_path / "v.mp4"
    video.write_bytes(b"video-bytes")
    shot = tmp_path / "s.png"
    shot.write_bytes(b"png-bytes")
    test = make_test(
        "T",
        video=Video(video_path=str(video)),
        screenshots=(Screenshot(screenshot_path=str(shot)),),
    )

    videos = collect_videos([test])
    screenshots = collect_screenshots([test])

    assert [(a.filename, a.data) for a in videos] == [("T.mp4", b"video-bytes")]
    assert [(a.filename, a.data) for a in screenshots] == [("T - s.png", b"png-bytes")]


def test_missing_screenshot_is_dropped_and_logged(
    make_test: Callable[..., TestResult],
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    present = tmp_path / "ok.png"
    present.write_bytes(b"png")
    test = make_test(
        "T",
        screenshots=(
            Screenshot(screenshot_path=str(tmp_path / "missing.png")),
            Screenshot(screenshot_path=str(present)),
        ),
        video=Video(video_path=str(tmp_path / "missing.mp4")),
    )

    with caplog.at_level(logging.WARNING):
        assets = build_assets(_session([test]))

    assert [a.filename for a in assets] == [
        CONSOLE_LOG_FILENAME,
        TEST_REPORT_FILENAME,
        "T - ok.png",
    ]
    assert "missing.png" in caplog.text
    assert "missing.mp4" in caplog.text


def test_build_assets_serializes_report(three_tests: list[TestResult]) -> None:
    assets = build_assets(_session(three_tests))
    report = next(a for a in assets if a.filename == TEST_REPORT_FILENAME)

    assert isinstance(report.data, str)
    data = json.loads(report.data)
    assert data["suites"][0]["name"] == "spec.js"
    assert data["suites"][0]["suites"][0]["status"] == "failed"
