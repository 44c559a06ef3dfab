"""Cyclopts CLI entrypoint for building blaze sites and checking their budgets.

The ``blaze`` console script defined here renders a content directory into a
static, offline-capable site and verifies the emitted assets against their
size budgets. Options can also be supplied through ``BLAZE_*`` environment
variables, which keeps CI configuration short.

Examples
--------
Build the site described by ``site.yaml``:

>>> from blaze_pages.cli import main
>>> main()  # doctest: +SKIP

Build into a scratch directory and check it:

>>> from blaze_pages.cli import app
>>> app(["build", "--output-dir", "/tmp/site"])  # doctest: +SKIP
>>> app(["budgets", "--dist", "/tmp/site"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
import structlog
from cyclopts import App, Parameter

from .budgets import check_budgets
from .builder import SiteBuilder
from .config import LoggingConfig, SiteConfigError, load_site_config
from .errors import BuildError

DEFAULT_CONFIG = Path("site.yaml")
DEFAULT_DIST = Path("dist")
CONFIG_ERRORS = (FileNotFoundError, TypeError, SiteConfigError)

app = App(name="blaze", config=cyclopts.config.Env("BLAZE_", command=False))  # type: ignore[unknown-argument]

log = structlog.get_logger()


def configure_logging(settings: LoggingConfig, level: str | None = None) -> None:
    """Configure structlog once per invocation, writing to stderr."""
    log_level = logging.getLevelNamesMapping()[(level or settings.level).upper()]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout carries the list of written paths
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:
            return str(path)
    return str(path)


@app.command(help="Build the static site from markdown sources.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="BLAZE_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="BLAZE_OUTPUT_DIR"),
    ] = None,
    log_level: typ.Annotated[
        str | None,
        Parameter(help="Override the configured log level", env_var="BLAZE_LOG_LEVEL"),
    ] = None,
) -> None:
    """Build the site described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``BLAZE_CONFIG``).
    output_dir : Path or None, optional
        Override for the configured output directory.
    log_level : str or None, optional
        Override for the configured log level.

    Raises
    ------
    SystemExit
        With status 1 when the configuration is invalid or the build fails.
    """
    try:
        site_config = load_site_config(config)
    except CONFIG_ERRORS as exc:
        configure_logging(LoggingConfig(), log_level)
        log.error("config_invalid", config=str(config), error=str(exc))
        raise SystemExit(1) from exc

    configure_logging(site_config.logging, log_level)
    try:
        result = SiteBuilder(site_config, output_dir=output_dir).run()
    except (BuildError, FileNotFoundError) as exc:
        log.error("build_failed", error=str(exc))
        raise SystemExit(1) from exc

    for path in result.written:
        print(f"wrote {_format_path(path)}")


@app.command(help="Check emitted assets against their size budgets.")
def budgets(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="BLAZE_CONFIG")
    ] = DEFAULT_CONFIG,
    dist: typ.Annotated[
        Path | None,
        Parameter(help="Built site to check", env_var="BLAZE_DIST"),
    ] = None,
) -> None:
    """Print one line per budget and exit non-zero on any failure.

    When ``dist`` is omitted, the output directory of ``config`` is checked,
    falling back to ``dist`` when no configuration file exists.
    """
    settings = LoggingConfig()
    if dist is None:
        if config.exists():
            try:
                site_config = load_site_config(config)
            except CONFIG_ERRORS as exc:
                configure_logging(settings)
                log.error("config_invalid", config=str(config), error=str(exc))
                raise SystemExit(1) from exc
            settings = site_config.logging
            dist = site_config.output_dir
        else:
            dist = DEFAULT_DIST
    configure_logging(settings)

    try:
        report = check_budgets(dist)
    except FileNotFoundError as exc:
        log.error("budgets_unavailable", dist=str(dist), error=str(exc))
        raise SystemExit(1) from exc

    for line in report.lines:
        print(line)
    if not report.ok:
        for failure in report.failures:
            log.error("budget_failed", failure=failure)
        raise SystemExit(1)
    print("All performance budgets passed.")


def main() -> None:
    """Run the cyclopts application."""
    app()


if __name__ == "__main__":
    main()
