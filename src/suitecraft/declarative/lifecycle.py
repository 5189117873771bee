"""Hook ordering around one test unit and around a whole suite.

Per unit::

    before_each* -> before* -> body -> after* -> after_each*

``after*`` and ``after_each*`` always run. When several of them fail, the
first failure is raised (a failure of the body or of a setup hook wins) and
the others are attached to it as notes. A teardown error still fails a unit
that was skipped.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from typing import Any

from suitecraft.declarative.metadata import ClassMetadata
from suitecraft.declarative.records import HookFn, underlying_function
from suitecraft.outcomes import FixmeTest, SkipTest, UnitOutcome


logger = logging.getLogger(__name__)

# Outcomes that stop a unit without failing it.
_STOPS = (SkipTest, FixmeTest)
_CAUGHT = (Exception, UnitOutcome)


async def call_maybe_async(fn: Callable[..., Any], *args: Any) -> Any:
    """Call ``fn`` and await the result when it is awaitable."""
    result = fn(*args)
    if inspect.isawaitable(result):
        return await result
    return result


def _hook_label(hook: Any) -> str:
    return getattr(hook, "__qualname__", None) or getattr(hook, "__name__", None) or repr(hook)


async def _run_all(steps: Iterable[tuple[str, Callable[[], Any]]], primary: BaseException | None) -> None:
    """Run every step, then raise the failure that decides the unit's outcome.

    A failing body or setup hook (``primary``) wins and teardown failures are
    attached to it as notes. A skip or fixme does not hide a teardown error:
    the first teardown error is raised instead, chained from the skip.
    """
    failures: list[BaseException] = []
    for label, step in steps:
        try:
            await call_maybe_async(step)
        except _CAUGHT as exc:
            exc.add_note(f"raised by teardown hook {label}")
            failures.append(exc)

    if not failures:
        return
    if primary is not None and not isinstance(primary, _STOPS):
        _attach(primary, failures)
        return

    errors = [exc for exc in failures if not isinstance(exc, _STOPS)]
    if not errors and primary is not None:
        _attach(primary, failures)
        return
    first = (errors or failures)[0]
    _attach(first, [exc for exc in failures if exc is not first])
    if primary is not None:
        raise first from primary
    raise first


def _attach(first: BaseException, others: list[BaseException]) -> None:
    for other in others:
        logger.error("Teardown failure after %r: %s: %s", first, type(other).__name__, other)
        first.add_note(f"also failed during teardown: {type(other).__name__}: {other}")


class UnitLifecycle:
    """The fixed call sequence for one test member."""

    def __init__(
        self,
        member: str,
        *,
        before_each: tuple[str, ...] = (),
        before: tuple[HookFn, ...] = (),
        after: tuple[HookFn, ...] = (),
        after_each: tuple[str, ...] = (),
    ) -> None:
        self.member = member
        self.before_each = before_each
        self.before = before
        self.after = after
        self.after_each = after_each

    @classmethod
    def for_member(cls, metadata: ClassMetadata, member: str) -> UnitLifecycle:
        hooks = metadata.hooks_for(member)
        return cls(
            member,
            before_each=metadata.hooks.before_each,
            before=hooks.before,
            after=hooks.after,
            after_each=metadata.hooks.after_each,
        )

    def describe(self) -> list[str]:
        """Call order as readable labels."""
        return [
            *(f"before_each:{name}" for name in self.before_each),
            *(f"before:{_hook_label(hook)}" for hook in self.before),
            f"test:{self.member}",
            *(f"after:{_hook_label(hook)}" for hook in self.after),
            *(f"after_each:{name}" for name in self.after_each),
        ]

    async def run(self, instance: Any, arguments: tuple[Any, ...] = ()) -> None:
        """Run the whole sequence against ``instance``.

        A failing ``before_each``/``before`` hook skips the rest of the setup
        and the body; teardown still runs.
        """
        primary: BaseException | None = None
        try:
            for name in self.before_each:
                await call_maybe_async(getattr(instance, name))
            for hook in self.before:
                await call_maybe_async(hook, instance)
            await call_maybe_async(getattr(instance, self.member), *arguments)
        except BaseException as exc:
            primary = exc
            raise
        finally:
            teardown = [(_hook_label(hook), _bind(hook, instance)) for hook in self.after]
            teardown += [(name, _lookup(instance, name)) for name in self.after_each]
            await _run_all(teardown, primary)


def _bind(hook: HookFn, instance: Any) -> Callable[[], Any]:
    def call() -> Any:
        return hook(instance)

    return call


def _lookup(target: Any, name: str) -> Callable[[], Any]:
    def call() -> Any:
        return getattr(target, name)()

    return call


class SuiteLifecycle:
    """``before_all``/``after_all`` tiers of a suite.

    Static and class methods are called on the class. Instance methods are
    called on one fresh instance per tier, so state meant to be shared with
    the tests has to live on the class.
    """

    def __init__(
        self,
        owner: type,
        *,
        before_all: tuple[str, ...] = (),
        after_all: tuple[str, ...] = (),
        instance_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.owner = owner
        self.before_all = before_all
        self.after_all = after_all
        self._instance_factory = instance_factory or owner

    @classmethod
    def for_suite(cls, metadata: ClassMetadata, instance_factory: Callable[[], Any] | None = None) -> SuiteLifecycle:
        return cls(
            metadata.owner,
            before_all=metadata.hooks.before_all,
            after_all=metadata.hooks.after_all,
            instance_factory=instance_factory,
        )

    def _resolver(self) -> Callable[[str], Callable[[], Any]]:
        instance: list[Any] = []

        def resolve(name: str) -> Callable[[], Any]:
            raw = inspect.getattr_static(self.owner, name)
            if underlying_function(raw) is not raw:
                return getattr(self.owner, name)
            if not instance:
                instance.append(self._instance_factory())
            return getattr(instance[0], name)

        return resolve

    async def setup(self) -> None:
        """Run ``before_all`` hooks in order; the first failure aborts the suite."""
        resolve = self._resolver()
        for name in self.before_all:
            await call_maybe_async(resolve(name))

    async def teardown(self, primary: BaseException | None = None) -> None:
        """Run every ``after_all`` hook, even after failures."""
        resolve = self._resolver()

        def step(name: str) -> Callable[[], Any]:
            return lambda: resolve(name)()

        await _run_all([(name, step(name)) for name in self.after_all], primary)
