"""Assemble suite classes and hand them to a runner.

`assemble` does all the work that can fail (aggregation, data providers,
name rendering) before anything is registered. `register` then walks the
resulting plan and calls the runner's `Registrar` methods in order.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, TypeVar, overload

from suitecraft.context import TestInfo, test_info_scope
from suitecraft.declarative.expansion import ResolvedTestUnit, expand
from suitecraft.declarative.lifecycle import SuiteLifecycle, UnitLifecycle
from suitecraft.declarative.metadata import ClassMetadata, aggregate
from suitecraft.errors import DecoratorUsageError


logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)

SUITE_ATTR = "__suitecraft_suite__"
SuiteMode = Literal["default", "serial", "parallel"]
_MODES = ("default", "serial", "parallel")


@dataclass(frozen=True)
class SuiteOptions:
    """Options given to ``@suite``.

    Attributes:
    ----------
    title
        Suite title, defaults to the class name.
    mode
        ``"serial"`` runs units in order and skips the rest after the first
        failure; ``"parallel"`` and ``"default"`` follow the runner's
        concurrency.
    retries
        Passed through to the registrar.
    timeout
        Default per-unit timeout in seconds.
    fixtures
        Names of fixtures injected as attributes of every instance.
    """

    title: str
    mode: SuiteMode = "default"
    retries: int = 0
    timeout: float | None = None
    fixtures: tuple[str, ...] = ()


@overload
def suite(title: C) -> C: ...


@overload
def suite(
    title: str | None = None,
    *,
    mode: SuiteMode = "default",
    retries: int = 0,
    timeout: float | None = None,
    fixtures: Sequence[str] = (),
) -> Callable[[C], C]: ...


def suite(
    title: Any = None,
    *,
    mode: SuiteMode = "default",
    retries: int = 0,
    timeout: float | None = None,
    fixtures: Sequence[str] = (),
) -> Any:
    """Mark a class as a test suite.

    Examples:
        @suite
        class Smoke: ...

        @suite("Checkout", mode="serial", fixtures=["api"])
        class Checkout: ...
    """
    if mode not in _MODES:
        msg = f"Unknown suite mode {mode!r}; expected one of {', '.join(_MODES)}"
        raise DecoratorUsageError(msg)
    if retries < 0:
        msg = f"retries must be >= 0, got {retries}"
        raise DecoratorUsageError(msg)
    if timeout is not None and timeout <= 0:
        msg = f"timeout must be positive, got {timeout}"
        raise DecoratorUsageError(msg)
    if isinstance(fixtures, str):
        fixtures = [fixtures]

    def decorator(cls: C) -> C:
        if not isinstance(cls, type):
            msg = f"@suite can only decorate classes, got {type(cls).__name__}"
            raise DecoratorUsageError(msg)
        options = SuiteOptions(
            title=title if isinstance(title, str) else cls.__name__,
            mode=mode,
            retries=retries,
            timeout=timeout,
            fixtures=tuple(fixtures),
        )
        setattr(cls, SUITE_ATTR, options)
        return cls

    if isinstance(title, type):
        return decorator(title)
    return decorator


def suite_options(cls: type) -> SuiteOptions | None:
    """Options of a class decorated with ``@suite`` (inherited ones do not count)."""
    return vars(cls).get(SUITE_ATTR)


def is_suite(obj: Any) -> bool:
    return isinstance(obj, type) and suite_options(obj) is not None


@dataclass(frozen=True)
class TestMarks:
    """What the runner needs to know about a unit before running it."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    member: str
    identity: str
    arguments: tuple[Any, ...] = ()
    tags: tuple[str, ...] = ()
    skip: str | None = None
    timeout: float | None = None


TestBody = Callable[[TestInfo], Awaitable[None]]
SuiteHook = Callable[[], Awaitable[None]]


class Registrar(Protocol):
    """Registration surface offered by a runner."""

    def describe(self, title: str, options: SuiteOptions, declare: Callable[[], None]) -> None:
        """Open a suite scope and call ``declare`` to register its content."""

    def before_all(self, hook: SuiteHook) -> None: ...

    def after_all(self, hook: SuiteHook) -> None: ...

    def test(self, title: str, body: TestBody, *, marks: TestMarks, fixtures: tuple[str, ...]) -> None: ...


@dataclass(frozen=True)
class UnitPlan:
    """A resolved unit with its call sequence and runner marks."""

    unit: ResolvedTestUnit
    lifecycle: UnitLifecycle
    marks: TestMarks


@dataclass(frozen=True)
class SuitePlan:
    """Everything needed to register one suite."""

    owner: type
    options: SuiteOptions
    metadata: ClassMetadata
    lifecycle: SuiteLifecycle
    units: tuple[UnitPlan, ...] = ()
    instance_factory: Callable[[], Any] | None = field(default=None, repr=False)

    @property
    def title(self) -> str:
        return self.options.title

    def new_instance(self) -> Any:
        factory = self.instance_factory or self.owner
        return factory()


def assemble(cls: type, instance_factory: Callable[[], Any] | None = None) -> SuitePlan:
    """Aggregate, expand and plan every unit of ``cls``.

    Every assembly error is raised from here, with a note naming the suite,
    so nothing is registered for a suite that cannot be assembled.
    """
    options = suite_options(cls) or SuiteOptions(title=cls.__name__)
    try:
        metadata = aggregate(cls)
        units = expand(metadata, instance_factory)
    except Exception as exc:
        exc.add_note(f"while assembling suite {options.title!r} ({cls.__module__}.{cls.__qualname__})")
        raise

    lifecycles: dict[str, UnitLifecycle] = {}
    plans = []
    for unit in units:
        if unit.member not in lifecycles:
            lifecycles[unit.member] = UnitLifecycle.for_member(metadata, unit.member)
        member_marks = metadata.marks_for(unit.member)
        timeout = metadata.timeout_for(unit.member)
        marks = TestMarks(
            member=unit.member,
            identity=unit.identity,
            arguments=unit.arguments,
            tags=metadata.tags_for(unit.member),
            skip=member_marks.skip,
            timeout=timeout if timeout is not None else options.timeout,
        )
        plans.append(UnitPlan(unit=unit, lifecycle=lifecycles[unit.member], marks=marks))

    logger.debug("Assembled suite %r with %d units", options.title, len(plans))
    return SuitePlan(
        owner=cls,
        options=options,
        metadata=metadata,
        lifecycle=SuiteLifecycle.for_suite(metadata, instance_factory),
        units=tuple(plans),
        instance_factory=instance_factory,
    )


def apply_marks(metadata: ClassMetadata, member: str, instance: Any, info: TestInfo) -> None:
    """Apply the member's side tables to the live unit.

    Annotations and attachments are resolved first; a matching ``fixme``
    condition stops the unit last.
    """
    marks = metadata.marks_for(member)
    for tag in metadata.tags_for(member):
        if tag not in info.tags:
            info.tags.append(tag)
    for spec in marks.annotations:
        info.annotations.extend(spec.resolve(instance))
    for spec in marks.attachments:
        attachment = spec.resolve(instance)
        if attachment is not None:
            info.attachments.append(attachment)
    if marks.slow is not None and marks.slow.applies(instance):
        info.slow(marks.slow.reason)
    if marks.fixme is not None and marks.fixme.applies(instance):
        info.fixme(marks.fixme.reason or "")


def _unit_body(plan: SuitePlan, unit_plan: UnitPlan) -> TestBody:
    async def body(info: TestInfo) -> None:
        instance = plan.new_instance()
        for name, value in info.fixtures.items():
            setattr(instance, name, value)
        instance.test_info = info
        with test_info_scope(info):
            apply_marks(plan.metadata, unit_plan.unit.member, instance, info)
            await unit_plan.lifecycle.run(instance, unit_plan.unit.call_arguments)

    body.__qualname__ = f"{plan.owner.__qualname__}.{unit_plan.unit.member}"
    return body


def register(plan: SuitePlan, registrar: Registrar) -> None:
    """Register an assembled suite with a runner.

    Display names and argument rows pass through unchanged. Suite hooks are
    only registered when their tier is non-empty.
    """

    def declare() -> None:
        if plan.lifecycle.before_all:
            registrar.before_all(plan.lifecycle.setup)
        if plan.lifecycle.after_all:
            registrar.after_all(plan.lifecycle.teardown)
        for unit_plan in plan.units:
            registrar.test(
                unit_plan.unit.display_name,
                _unit_body(plan, unit_plan),
                marks=unit_plan.marks,
                fixtures=plan.options.fixtures,
            )

    registrar.describe(plan.title, plan.options, declare)
