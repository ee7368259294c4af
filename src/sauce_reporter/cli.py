"""sauce-reporter command line interface."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from sauce_reporter import __version__
from sauce_reporter.config import SauceConfig, SentryConfig, load_config, validate_config
from sauce_reporter.models.test_result import TestResult, load_results
from sauce_reporter.reporters.sauce import FlushOutcome, FlushResult, SauceReporter
from sauce_reporter.reporters.terminal import console, reporter
from sauce_reporter.telemetry import init_sentry

if TYPE_CHECKING:
    from sauce_reporter.models.session import Session

logger = logging.getLogger(__name__)

_MIN_MASKED_VALUE_LENGTH = 8
_SENSITIVE_KEYS = {"access_key", "dsn"}


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive values in configuration dict."""
    result = copy.deepcopy(config_dict)

    def _mask_dict(data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key in _SENSITIVE_KEYS and isinstance(value, str) and value:
                if len(value) > _MIN_MASKED_VALUE_LENGTH:
                    data[key] = f"{value[:4]}...{value[-4:]}"
                else:
                    data[key] = "***"
            elif isinstance(value, dict):
                _mask_dict(value)

    _mask_dict(result)
    return result


def _config_to_dict(config: SauceConfig) -> dict[str, Any]:
    result = asdict(config)
    result.pop("raw", None)
    return result


def _init_sentry_from_env() -> None:
    """Initialize Sentry before any configuration file is read."""
    enabled_raw = os.environ.get("SAUCE_REPORTER_SENTRY_ENABLED", "").strip().lower()
    if enabled_raw not in {"1", "true", "yes"}:
        return

    dsn = os.environ.get("SAUCE_REPORTER_SENTRY_DSN", "").strip()
    if not dsn:
        return

    init_sentry(SentryConfig(enabled=True, dsn=dsn))


def group_into_sessions(tests: list[TestResult]) -> list[list[TestResult]]:
    """Split *tests* into one group per spec file and browser.

    Groups keep the order in which they were first seen, and tests keep
    their order within a group.
    """
    groups: dict[tuple[str, str, str, str], list[TestResult]] = {}
    for test in tests:
        browser = test.browser
        key = (test.spec_path, browser.name, browser.version, browser.pretty_user_agent)
        groups.setdefault(key, []).append(test)
    return list(groups.values())


async def _upload_groups(
    sauce: SauceReporter, groups: list[list[TestResult]]
) -> list[tuple[Session, FlushResult]]:
    rows: list[tuple[Session, FlushResult]] = []
    for group in groups:
        for test in group:
            sauce.add_test(test)
        session = sauce.session
        result = await sauce.flush_result()
        if session is not None:
            rows.append((session, result))
    return rows


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="sauce-reporter")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """sauce-reporter: upload browser test results to Sauce Labs."""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    _init_sentry_from_env()


@cli.command("upload")
@click.argument(
    "results",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Directory holding .sauce.yml.",
)
@click.option("--build", default=None, help="Build identifier (generated when omitted).")
@click.option("--tag", "tags", multiple=True, help="Tag to attach to every job (repeatable).")
@click.option("--region", default=None, help="Sauce Labs region (us-west-1, eu-central-1).")
@click.option("--json-output", "as_json", is_flag=True, help="Print results as JSON.")
def upload(
    results: tuple[Path, ...],
    path: str,
    build: str | None,
    tags: tuple[str, ...],
    region: str | None,
    *,
    as_json: bool,
) -> None:
    """Upload recorded test results, one Sauce Labs job per spec and browser.

    Example:
      sauce-reporter upload results/chrome.json results/firefox.json
    """
    try:
        config = load_config(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    if build:
        config.build = build
    if tags:
        config.tags = list(tags)
    if region:
        config.region = region

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    init_sentry(config.sentry)

    tests: list[TestResult] = []
    for results_path in results:
        try:
            tests.extend(load_results(results_path))
        except ValueError as exc:
            reporter.print_error(f"Failed to read {results_path}: {exc}")
            raise click.Abort from exc

    if not tests:
        reporter.print_warning("No test results found.")
        return

    if not config.is_account_set:
        reporter.print_warning(
            "SAUCE_USERNAME and SAUCE_ACCESS_KEY are not set; nothing will be uploaded."
        )

    groups = group_into_sessions(tests)
    logger.debug("Uploading %d test(s) as %d session(s)", len(tests), len(groups))

    sauce = SauceReporter(config)
    rows = asyncio.run(_upload_groups(sauce, groups))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "build": sauce.build,
                    "jobs": [
                        {
                            "spec": session.spec_path,
                            "browser": session.browser.name,
                            "tests": len(session.tests),
                            "passed": session.passed,
                            "outcome": result.outcome.value,
                            "url": result.url,
                            "error": str(result.error) if result.error else None,
                        }
                        for session, result in rows
                    ],
                },
                indent=2,
            )
        )
    else:
        reporter.print_upload_summary(rows)
        reporter.print_info(f"Build: {sauce.build}")

    if any(result.outcome is FlushOutcome.FAILED for _, result in rows):
        raise SystemExit(1)


@cli.group("config")
def config_group() -> None:
    """Inspect `.sauce.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Directory holding .sauce.yml.",
)
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON instead of YAML.")
@click.option("--no-mask", is_flag=True, help="Show sensitive values unmasked.")
def config_show(path: str, *, as_json: bool, no_mask: bool) -> None:
    """Display resolved configuration with the access key masked.

    Example:
      sauce-reporter config show --json-output
    """
    try:
        config = load_config(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    config_dict = _config_to_dict(config)
    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))

    for error in validate_config(config):
        reporter.print_warning(error)