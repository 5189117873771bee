"""Command-line interface for suitecraft."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from suitecraft.config import RunnerSettings
from suitecraft.reports.console import ConsoleReporter
from suitecraft.testing.runner import SuiteRunner
from suitecraft.version import __version__


@click.group()
@click.version_option(__version__, prog_name="suitecraft")
def main() -> None:
    """Assemble and run declarative test suites."""


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=True, dir_okay=True, path_type=Path))
@click.option("--concurrency", type=int, help="Units run at once within a suite (0 = default cap)")
@click.option("--maxfail", type=int, help="Stop after N failed or errored units")
@click.option("--timeout", type=float, help="Default per-test timeout in seconds")
@click.option("--trace/--no-trace", default=None, help="Export OpenTelemetry spans to a JSONL file")
@click.option("--trace-output", type=click.Path(dir_okay=False, path_type=Path), help="Span output file")
@click.option("-v", "--verbose", "verbose", count=True, help="Print one line per test (-vv adds locals)")
@click.option("-q", "--quiet", is_flag=True, help="Only print failures and the summary")
def run(
    path: Path,
    concurrency: int | None,
    maxfail: int | None,
    timeout: float | None,
    trace: bool | None,
    trace_output: Path | None,
    verbose: int,
    quiet: bool,
) -> None:
    """Run every @suite class found in suite_*.py files under PATH.

    \b
    Examples:
    suitecraft run
    suitecraft run e2e/ --concurrency 4 --maxfail 1
    suitecraft run suite_checkout.py -v --trace
    """
    overrides: dict[str, object] = {
        "concurrency": concurrency,
        "maxfail": maxfail,
        "timeout": timeout,
        "tracing": trace,
        "trace_output": trace_output,
    }
    if quiet:
        overrides["verbosity"] = -1
    elif verbose:
        overrides["verbosity"] = verbose

    try:
        settings = RunnerSettings(**{key: value for key, value in overrides.items() if value is not None})
    except ValidationError as exc:
        raise click.BadParameter(str(exc)) from exc

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    # Suite files may import helpers sitting next to them.
    root = str((path.parent if path.is_file() else path).resolve())
    if root not in sys.path:
        sys.path.insert(0, root)

    runner = SuiteRunner(settings, reporters=[ConsoleReporter(verbosity=settings.verbosity)])
    result = asyncio.run(runner.run(path=path))
    if not result.ok:
        sys.exit(1)
