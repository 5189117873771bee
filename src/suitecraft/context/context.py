from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NoReturn

from suitecraft.outcomes import FixmeTest, SkipTest


SLOW_TIMEOUT_FACTOR = 3


@dataclass(frozen=True, slots=True)
class Annotation:
    """A ``type``/``description`` pair attached to a test result."""

    type: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class Attachment:
    """A named artifact attached to a test result.

    Either ``body`` or ``path`` carries the content.
    """

    name: str
    body: str | bytes | None = None
    path: Path | str | None = None
    content_type: str | None = None


@dataclass(slots=True)
class StepRecord:
    """A step executed inside a test body."""

    title: str
    depth: int
    duration_ms: float = 0.0
    error: BaseException | None = None


@dataclass
class TestInfo:
    """Runtime information about the unit being executed.

    The runner creates one per unit and passes it to the registered body.
    The body exposes it on the suite instance as ``self.test_info``.

    Attributes:
    ----------
    title
        Resolved display name of the unit.
    suite
        Title of the enclosing suite.
    member
        Name of the suite method implementing the test.
    identity
        Unique token of the unit within the run.
    fixtures
        Values resolved by the runner for the suite's requested fixtures.
    timeout
        Per-unit timeout in seconds, or None.
    """

    __test__ = False  # Prevent pytest from collecting this as a test class

    title: str
    suite: str
    member: str
    identity: str
    fixtures: dict[str, Any] = field(default_factory=dict)
    timeout: float | None = None
    tags: list[str] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    steps: list[StepRecord] = field(default_factory=list)
    slow_reason: str | None = None
    is_slow: bool = False
    _deadline: asyncio.Timeout | None = field(default=None, repr=False)
    _started_at: float | None = field(default=None, repr=False)

    def skip(self, reason: str = "") -> NoReturn:
        raise SkipTest(reason)

    def fixme(self, reason: str = "") -> NoReturn:
        raise FixmeTest(reason)

    def slow(self, reason: str | None = None) -> None:
        """Mark the unit as slow, tripling its timeout if one is active."""
        if self.is_slow:
            return
        self.is_slow = True
        self.slow_reason = reason
        if self.timeout is None:
            return
        self.timeout *= SLOW_TIMEOUT_FACTOR
        if self._deadline is not None and self._started_at is not None:
            self._deadline.reschedule(self._started_at + self.timeout)

    def annotate(self, type: str, description: str | None = None) -> None:
        self.annotations.append(Annotation(type=type, description=description))

    def attach(
        self,
        name: str,
        *,
        body: str | bytes | None = None,
        path: Path | str | None = None,
        content_type: str | None = None,
    ) -> None:
        if body is None and path is None:
            msg = f"Attachment {name!r} needs either a body or a path"
            raise ValueError(msg)
        self.attachments.append(Attachment(name=name, body=body, path=path, content_type=content_type))

    def bind_deadline(self, deadline: asyncio.Timeout, started_at: float) -> None:
        self._deadline = deadline
        self._started_at = started_at


TEST_INFO: ContextVar[TestInfo | None] = ContextVar("test_info", default=None)
STEP_DEPTH: ContextVar[int] = ContextVar("step_depth", default=0)


def get_test_info() -> TestInfo | None:
    """Get the info of the unit currently executing, or None outside a test."""
    return TEST_INFO.get()


@contextmanager
def test_info_scope(info: TestInfo) -> Iterator[None]:
    """Temporarily set `TEST_INFO` for the duration of the ``with`` block."""
    token = TEST_INFO.set(info)
    try:
        yield
    finally:
        TEST_INFO.reset(token)


test_info_scope.__test__ = False  # Prevent pytest from collecting this as a test function


@contextmanager
def step_depth_scope() -> Iterator[int]:
    """Increase the step nesting depth for the duration of the ``with`` block."""
    depth = STEP_DEPTH.get()
    token = STEP_DEPTH.set(depth + 1)
    try:
        yield depth
    finally:
        STEP_DEPTH.reset(token)
