"""Console reporter for suite runs using Rich."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.traceback import Traceback

from suitecraft.reports.base import Reporter
from suitecraft.testing.models import TestStatus
from suitecraft.version import __version__


if TYPE_CHECKING:
    from suitecraft.testing.models import RunResult, SuiteResult, TestResult


_STATUS_CONFIG: dict[TestStatus, tuple[str, str, str]] = {
    TestStatus.PASSED: ("✓", "green", "PASSED"),
    TestStatus.FAILED: ("✗", "red", "FAILED"),
    TestStatus.ERROR: ("!", "yellow", "ERROR"),
    TestStatus.SKIPPED: ("-", "yellow", "SKIPPED"),
}


class ConsoleReporter(Reporter):
    """Prints progress, failures and a summary.

    Verbosity -1 prints only failures and the summary, 0 prints one symbol
    per unit, 1 prints one line per unit, 2 adds locals to tracebacks.
    """

    def __init__(self, console: Console | None = None, verbosity: int = 0) -> None:
        self.console = console or Console(file=sys.__stdout__)
        self.verbosity = verbosity
        self._failures: list[TestResult] = []
        self._suite_errors: list[SuiteResult] = []
        self._current_suite: str | None = None

    def _status_symbol(self, status: TestStatus) -> str:
        return _STATUS_CONFIG[status][0]

    def _status_color(self, status: TestStatus) -> str:
        return _STATUS_CONFIG[status][1]

    def _status_label(self, status: TestStatus) -> str:
        return _STATUS_CONFIG[status][2]

    def _print_section_header(self, title: str) -> None:
        width = self.console.width
        header_title = f" {title} "
        fill = max(width - len(header_title), 0)
        left = fill // 2
        self.console.print("=" * left + header_title + "=" * (fill - left))

    async def on_no_tests_found(self) -> None:
        self.console.print("[yellow]No suites found.[/yellow]")

    async def on_collection_complete(self, suites: list[type]) -> None:
        self._print_section_header("SUITECRAFT RUN STARTS")
        self.console.print(f"python {sys.version.split()[0]} -- suitecraft {__version__}")
        if self.verbosity >= 0:
            self.console.print(f"[bold]Collected {len(suites)} suites[/bold]\n")

    async def on_suite_start(self, title: str, unit_count: int) -> None:
        if self.verbosity < 0:
            return
        if self._current_suite is not None and self.verbosity == 0:
            self.console.print()
        self._current_suite = title
        if self.verbosity == 0:
            self.console.print(f" • {escape(title)} ", end="")
        else:
            self.console.print(f"• {escape(title)} [dim]({unit_count} tests)[/dim]")

    async def on_test_complete(self, result: TestResult) -> None:
        if result.status.is_failure:
            self._failures.append(result)
        if self.verbosity < 0:
            return
        color = self._status_color(result.status)
        if self.verbosity == 0:
            self.console.print(f"[{color}]{self._status_symbol(result.status)}[/{color}]", end="")
            return
        duration = f"[dim]({result.duration_ms:.1f}ms)[/dim]"
        extra = f"[dim]skipped ({escape(result.reason)})[/dim] " if result.status == TestStatus.SKIPPED and result.reason else ""
        label = self._status_label(result.status)
        self.console.print(f"  • {escape(result.title)} {duration} {extra}[{color}]{label}[/{color}]")

    async def on_suite_error(self, suite: SuiteResult) -> None:
        self._suite_errors.append(suite)
        if self.verbosity >= 0:
            if self.verbosity == 0 and self._current_suite is not None:
                self.console.print()
            self.console.print(f"[red]✗ {escape(suite.title)}: {suite.phase} failed[/red]")
            self._current_suite = None

    def _format_error(self, error: BaseException | None) -> str | Traceback:
        if error is None:
            return " "
        if error.__traceback__:
            return Traceback.from_exception(
                type(error),
                error,
                error.__traceback__,
                show_locals=self.verbosity >= 2,
            )
        lines = [f"{type(error).__name__}: {error}", *getattr(error, "__notes__", [])]
        return "\n".join(escape(line) for line in lines)

    def _print_failures(self) -> None:
        self.console.print()
        self._print_section_header("FAILURES")
        for result in self._failures:
            color = self._status_color(result.status)
            self.console.print(
                Panel(
                    self._format_error(result.error),
                    title=escape(result.full_name),
                    title_align="left",
                    border_style=color,
                    expand=True,
                    padding=(1, 1),
                )
            )
        for suite in self._suite_errors:
            self.console.print(
                Panel(
                    self._format_error(suite.error),
                    title=escape(f"{suite.title} ({suite.phase})"),
                    title_align="left",
                    border_style="red",
                    expand=True,
                    padding=(1, 1),
                )
            )

    async def on_run_complete(self, run: RunResult) -> None:
        if self.verbosity == 0 and self._current_suite is not None:
            self.console.print()
        if self._failures or self._suite_errors:
            self._print_failures()
        if run.stopped_early:
            self.console.print("[yellow]Run terminated early.[/yellow]")

        parts = []
        if run.passed:
            parts.append(f"[green]{run.passed} passed[/green]")
        if run.failed:
            parts.append(f"[red]{run.failed} failed[/red]")
        if run.errors:
            parts.append(f"[yellow]{run.errors} errors[/yellow]")
        if run.skipped:
            parts.append(f"[yellow]{run.skipped} skipped[/yellow]")
        if run.suite_errors:
            parts.append(f"[red]{len(run.suite_errors)} broken suites[/red]")

        summary = ", ".join(parts) if parts else "[dim]0 tests[/dim]"
        self.console.print()
        self._print_section_header("SUMMARY")
        self.console.print(f"[bold]{summary} in {run.total_duration_ms:.0f}ms[/bold]", justify="center")

    async def on_run_stopped_early(self, failure_count: int) -> None:
        self.console.print(f"\n[red]Stopping early after {failure_count} failure(s).[/red]")

    async def on_tracing_enabled(self, output_path: Path) -> None:
        if output_path.exists():
            self.console.print(f"[dim]Tracing written to {output_path} ({output_path.stat().st_size} bytes)[/dim]")
