"""Reporter interface notified by the runner."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from suitecraft.testing.models import RunResult, SuiteResult, TestResult


class Reporter(ABC):
    """Receives run events in order. Methods are awaited by the runner."""

    @abstractmethod
    async def on_no_tests_found(self) -> None: ...

    @abstractmethod
    async def on_collection_complete(self, suites: list[type]) -> None: ...

    async def on_suite_start(self, title: str, unit_count: int) -> None:
        """Called when a suite's units are about to run."""

    @abstractmethod
    async def on_test_complete(self, result: TestResult) -> None: ...

    @abstractmethod
    async def on_suite_error(self, suite: SuiteResult) -> None: ...

    @abstractmethod
    async def on_run_complete(self, run: RunResult) -> None: ...

    async def on_run_stopped_early(self, failure_count: int) -> None:
        """Called once when maxfail is reached."""

    async def on_tracing_enabled(self, output_path: Path) -> None:
        """Called after the run when spans were exported."""
