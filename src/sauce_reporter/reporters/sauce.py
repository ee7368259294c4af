"""Sauce Labs reporter that uploads one job per spec file run.

The reporter receives test results one at a time.  The first result
opens a ``Session``; ``flush()`` turns the session into a Sauce Labs job
with a console log, a structured test report, and the tests' videos and
screenshots, then clears it so the next result starts a fresh session.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from sauce_reporter import __version__
from sauce_reporter.config import SauceConfig
from sauce_reporter.models.sauce_report import format_timestamp
from sauce_reporter.models.session import Session
from sauce_reporter.reporters.assets import build_assets
from sauce_reporter.telemetry import capture_report_failure
from sauce_reporter.utils.sauce_client import (
    SauceClientError,
    SauceRuntimeConfig,
    build_job_url,
    create_job,
    require_region,
    upload_job_assets,
)

if TYPE_CHECKING:
    from sauce_reporter.models.test_result import TestResult
    from sauce_reporter.reporters.assets import UploadAsset

logger = logging.getLogger(__name__)

FRAMEWORK = "testcafe"
# The host runner does not expose its version to reporters.
FRAMEWORK_VERSION = "0.0.0"

_BUILD_ID_BYTES = 6
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def random_build_id() -> str:
    """Return a random 6-byte build identifier rendered in base-36."""
    return _to_base36(int.from_bytes(secrets.token_bytes(_BUILD_ID_BYTES), "little"))


class FlushOutcome(Enum):
    """How a flush ended."""

    UPLOADED = "uploaded"
    EMPTY = "empty"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FlushResult:
    """Outcome of a flush, distinguishing "nothing to do" from failure."""

    outcome: FlushOutcome
    url: str | None = None
    error: BaseException | None = None


class SauceReporter:
    """Collect test results and upload them to Sauce Labs.

    Not thread-safe: results are expected to arrive sequentially from the
    host test runner, and ``add_test`` must not be called while a
    ``flush`` of the same reporter is still pending.
    """

    def __init__(self, config: SauceConfig | None = None) -> None:
        """Initialize the reporter.

        Args:
            config: Reporter configuration. Read from the environment
                when omitted.
        """
        self._config = config if config is not None else SauceConfig.from_env()
        self.build = self._config.build or random_build_id()
        self._api = SauceRuntimeConfig(
            username=self._config.username,
            access_key=self._config.access_key,
            region=self._config.region,
            user_agent=f"sauce-reporter/{__version__}",
        )
        self.session: Session | None = None

    @property
    def region(self) -> str:
        return self._config.region

    def is_account_set(self) -> bool:
        return self._config.is_account_set

    def add_test(self, test: TestResult) -> None:
        """Add a finished test, opening a session on the first one."""
        if self.session is None:
            logger.debug("Starting session for %s", test.spec_path)
            self.session = Session(browser=test.browser, spec_path=test.spec_path)

        self.session.add_test(test)

    async def flush(self) -> str | None:
        """Report the current session and clear it.

        Never raises: failures are logged and yield ``None``, as does a
        flush with no session.  Use ``flush_result`` to tell them apart.

        Returns:
            URL of the uploaded job, or ``None``.
        """
        result = await self.flush_result()
        return result.url

    async def flush_result(self) -> FlushResult:
        """Report the current session and clear it, returning a tagged result."""
        session = self.session
        if session is None:
            return FlushResult(FlushOutcome.EMPTY)

        try:
            url = await self.report_session(session)
        except Exception as exc:
            logger.error("Sauce Labs Report Failed: %s", exc)
            capture_report_failure(exc)
            return FlushResult(FlushOutcome.FAILED, error=exc)
        finally:
            self.session = None

        if url is None:
            return FlushResult(FlushOutcome.SKIPPED)
        return FlushResult(FlushOutcome.UPLOADED, url=url)

    async def report_session(self, session: Session) -> str | None:
        """Create a job for *session* and upload its assets.

        Returns ``None`` without contacting Sauce Labs when no account is
        configured.

        Raises:
            SauceClientError: If the region is unknown or the job cannot be
                created.
        """
        if not self.is_account_set():
            logger.debug("Sauce Labs credentials not set; skipping report upload")
            return None

        # The region must resolve before a job exists.
        require_region(self.region)
        job_id = await self.create_job(self.build_job_payload(session))
        await self.upload_assets(job_id, build_assets(session))

        url = build_job_url(self.region, job_id)
        logger.info("Sauce Labs report uploaded: %s", url)
        return url

    def build_job_payload(self, session: Session) -> dict[str, Any]:
        """Build the job-creation request body for *session*."""
        payload: dict[str, Any] = {
            "name": session.spec_path,
            "user": self._config.username,
            "startTime": format_timestamp(session.start_time) if session.start_time else None,
            "endTime": format_timestamp(session.end_time) if session.end_time else None,
            "framework": FRAMEWORK,
            "frameworkVersion": FRAMEWORK_VERSION,
            "status": "complete",
            "suite": session.spec_path,
            "passed": session.passed,
            "build": self.build,
            "browserName": session.browser.name,
            "browserVersion": session.browser.version,
            "platformName": session.browser.platform_name,
        }
        if self._config.tags:
            payload["tags"] = list(self._config.tags)
        return payload

    async def create_job(self, payload: dict[str, Any]) -> str:
        return await asyncio.to_thread(create_job, self._api, payload)

    async def upload_assets(self, job_id: str, assets: list[UploadAsset]) -> None:
        """Upload *assets* to *job_id*, logging failures instead of raising."""
        try:
            response = await asyncio.to_thread(upload_job_assets, self._api, job_id, assets)
        except SauceClientError as exc:
            logger.error("Upload failed: %s", exc)
            return

        for error in response.get("errors") or []:
            logger.error("%s", error)
