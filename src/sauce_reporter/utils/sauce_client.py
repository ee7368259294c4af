"""Sauce Labs API helpers for job creation and asset uploads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import requests

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sauce_reporter.reporters.assets import UploadAsset

_JOBS_PATH = "/v2/testcomposer/jobs"
_ASSETS_PATH = "/v1/testcomposer/jobs/{job_id}/assets"
_HTTP_SUCCESS_MIN = 200
_HTTP_SUCCESS_MAX = 300
_MAX_ERROR_BODY = 300

DEFAULT_REGION = "us-west-1"

# Region -> host of the browsable results app.
JOB_DOMAINS: dict[str, str] = {
    "us-west-1": "app.saucelabs.com",
    "eu-central-1": "app.eu-central-1.saucelabs.com",
    "staging": "app.staging.saucelabs.net",
}


class SauceClientError(RuntimeError):
    """Raised when a Sauce Labs API request fails."""


@dataclass
class SauceRuntimeConfig:
    """Credentials and routing used for Sauce Labs API calls."""

    username: str = ""
    access_key: str = ""
    region: str = DEFAULT_REGION
    user_agent: str = ""

    @property
    def tld(self) -> str:
        return region_tld(self.region)


def region_tld(region: str) -> str:
    """Top-level domain of the API host; only staging lives under `.net`."""
    return "net" if region == "staging" else "com"


def require_region(region: str) -> None:
    """Raise ``SauceClientError`` unless *region* is a known data center."""
    if region not in JOB_DOMAINS:
        known = ", ".join(sorted(JOB_DOMAINS))
        raise SauceClientError(f"Unknown Sauce Labs region '{region}' (expected one of: {known})")


def build_api_url(region: str) -> str:
    """Build the REST API base URL for *region*."""
    require_region(region)
    return f"https://api.{region}.saucelabs.{region_tld(region)}"


def build_job_url(region: str, job_id: str) -> str:
    """Build the browsable results page URL for *job_id*."""
    require_region(region)
    return f"https://{JOB_DOMAINS[region]}/tests/{job_id}"


def _headers(config: SauceRuntimeConfig) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if config.user_agent:
        headers["User-Agent"] = config.user_agent
    return headers


def _raise_for_status(response: Any, action: str) -> None:
    if response.status_code < _HTTP_SUCCESS_MIN or response.status_code >= _HTTP_SUCCESS_MAX:
        message = response.text.strip()[:_MAX_ERROR_BODY]
        raise SauceClientError(f"{action} failed (HTTP {response.status_code}): {message}")


def _json_body(response: Any) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}

    return body if isinstance(body, dict) else {}


def create_job(
    config: SauceRuntimeConfig,
    payload: Mapping[str, Any],
    *,
    timeout_seconds: float = 30.0,
) -> str:
    """Create a job for an externally executed test run and return its ID."""
    if not config.username or not config.access_key:
        raise SauceClientError("Sauce Labs username and access key are required to create a job.")

    try:
        response = requests.post(
            f"{build_api_url(config.region)}{_JOBS_PATH}",
            auth=(config.username, config.access_key),
            headers=_headers(config),
            json=dict(payload),
            timeout=timeout_seconds,
        )
    except requests.RequestException as exc:
        raise SauceClientError(f"Job creation failed: {exc}") from exc

    _raise_for_status(response, "Job creation")

    job_id = _json_body(response).get("ID")
    if not job_id:
        raise SauceClientError("Job creation response did not include a job ID.")
    return str(job_id)


def upload_job_assets(
    config: SauceRuntimeConfig,
    job_id: str,
    assets: Iterable[UploadAsset],
    *,
    timeout_seconds: float = 120.0,
) -> dict[str, Any]:
    """Upload *assets* to an existing job as one multipart request.

    Returns the decoded response body; per-file failures are listed
    under its ``errors`` key.
    """
    files = [("file", (asset.filename, asset.data)) for asset in assets]

    try:
        response = requests.put(
            f"{build_api_url(config.region)}{_ASSETS_PATH.format(job_id=job_id)}",
            auth=(config.username, config.access_key),
            headers=_headers(config),
            files=files,
            timeout=timeout_seconds,
        )
    except requests.RequestException as exc:
        raise SauceClientError(f"Asset upload failed: {exc}") from exc

    _raise_for_status(response, "Asset upload")
    return _json_body(response)
