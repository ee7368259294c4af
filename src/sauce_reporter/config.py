"""Configuration parsing from ``.sauce.yml`` and the environment."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sauce_reporter.utils.sauce_client import DEFAULT_REGION, JOB_DOMAINS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".sauce.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_TRUTHY = {True, "true", "1", "yes"}


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _parse_tags(raw: Any) -> list[str] | None:
    """Accept a YAML list or a comma separated string; empty means unset."""
    if raw is None:
        return None
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    tags = [str(item).strip() for item in items if str(item).strip()]
    return tags or None


@dataclass
class SentryConfig:
    """Sentry error monitoring configuration."""

    enabled: bool = False
    """Opt-in flag. No Sentry data sent unless True."""

    dsn: str = ""
    """Sentry DSN (Data Source Name)."""

    traces_sample_rate: float = 0.0
    """Fraction of transactions sent for tracing (0.0-1.0). 0 = disabled."""

    environment: str = ""
    """Override environment tag (``local`` if empty)."""


@dataclass
class SauceConfig:
    """Complete reporter configuration."""

    username: str = ""
    """Sauce Labs username (``SAUCE_USERNAME``)."""

    access_key: str = ""
    """Sauce Labs access key (``SAUCE_ACCESS_KEY``)."""

    build: str = ""
    """Build identifier; a random one is generated per reporter when empty."""

    tags: list[str] | None = None
    """Tags attached to every job."""

    region: str = DEFAULT_REGION
    """Data center region: us-west-1, eu-central-1 or staging."""

    sentry: SentryConfig = field(default_factory=SentryConfig)
    """Sentry observability configuration."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for debugging."""

    @property
    def is_account_set(self) -> bool:
        """Return True when both username and access key are present."""
        return bool(self.username and self.access_key)

    @classmethod
    def from_env(cls) -> SauceConfig:
        """Build a configuration from environment variables only."""
        return _parse_config({})


def _setting(
    section: dict[str, Any], key: str, env_var: str | None, default: str | None = ""
) -> Any:
    """Return *key* from *section*, falling back to *env_var* when absent or null."""
    value = section.get(key)
    if value is None and env_var is not None:
        value = os.environ.get(env_var)
    return default if value is None else value


def _parse_sentry_config(raw: dict[str, Any]) -> SentryConfig:
    """Parse Sentry configuration from raw YAML."""
    sentry_raw = raw.get("sentry", {})
    if not isinstance(sentry_raw, dict):
        sentry_raw = {}

    enabled_raw = _setting(sentry_raw, "enabled", "SAUCE_REPORTER_SENTRY_ENABLED")

    return SentryConfig(
        enabled=enabled_raw in _TRUTHY,
        dsn=str(_setting(sentry_raw, "dsn", "SAUCE_REPORTER_SENTRY_DSN")),
        traces_sample_rate=float(
            _setting(
                sentry_raw,
                "traces_sample_rate",
                "SAUCE_REPORTER_SENTRY_TRACES_SAMPLE_RATE",
                "0.0",
            )
        ),
        environment=str(_setting(sentry_raw, "environment", None)),
    )


def _parse_config(raw: dict[str, Any]) -> SauceConfig:
    sauce_raw = raw.get("sauce", {})
    if not isinstance(sauce_raw, dict):
        sauce_raw = {}

    return SauceConfig(
        username=str(_setting(sauce_raw, "username", "SAUCE_USERNAME")),
        access_key=str(_setting(sauce_raw, "access_key", "SAUCE_ACCESS_KEY")),
        build=str(_setting(sauce_raw, "build", "SAUCE_BUILD")),
        tags=_parse_tags(_setting(sauce_raw, "tags", "SAUCE_TAGS", None)),
        region=str(_setting(sauce_raw, "region", "SAUCE_REGION") or DEFAULT_REGION),
        sentry=_parse_sentry_config(raw),
        raw=raw,
    )


def load_config(root: str | Path) -> SauceConfig:
    """Load and parse the reporter configuration.

    Values in ``.sauce.yml`` win over environment variables; the file is
    optional.
    """
    config_path = Path(root).resolve() / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.is_file():
        parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        else:
            logger.warning("Ignoring %s: top level must be a mapping", config_path)

    return _parse_config(raw)


def _validate_sentry_config(sentry: SentryConfig) -> list[str]:
    """Validate Sentry configuration."""
    errors: list[str] = []

    if sentry.enabled and not sentry.dsn:
        errors.append("sentry.dsn is required when sentry.enabled is true")

    if not 0.0 <= sentry.traces_sample_rate <= 1.0:
        errors.append(
            f"sentry.traces_sample_rate must be between 0.0 and 1.0 "
            f"(got: {sentry.traces_sample_rate})"
        )

    return errors


def validate_config(config: SauceConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.  Missing
    credentials are not an error: the reporter then skips uploads.
    """
    errors: list[str] = []

    if config.region not in JOB_DOMAINS:
        errors.append(
            f"sauce.region must be one of: {', '.join(JOB_DOMAINS)} (got: {config.region})"
        )

    if bool(config.username) != bool(config.access_key):
        errors.append("sauce.username and sauce.access_key must be set together")

    errors.extend(_validate_sentry_config(config.sentry))
    return errors
