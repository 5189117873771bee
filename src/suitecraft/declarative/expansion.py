"""Turn aggregated test entries into concrete, named test units."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from suitecraft.declarative.metadata import ClassMetadata
from suitecraft.declarative.parameters import build_param_context
from suitecraft.declarative.records import EntryKind, TestEntry
from suitecraft.errors import (
    AssemblyConstructionError,
    SuiteAssemblyError,
    TemplateError,
    UnsupportedAsyncProviderError,
)
from suitecraft.templating import render, safe_stringify, unwrap


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTestUnit:
    """One registrable test.

    Attributes:
    ----------
    display_name
        Rendered test name.
    member
        Suite method implementing the test.
    arguments
        The declared row, exactly as written (Labeled values included).
    identity
        Token unique within the suite, stable across assemblies.
    """

    display_name: str
    member: str
    arguments: tuple[Any, ...]
    identity: str

    @property
    def call_arguments(self) -> tuple[Any, ...]:
        """Arguments passed to the test method."""
        return tuple(unwrap(value) for value in self.arguments)


class _ThrowawayInstance:
    """Builds the assembly-time instance on first use, at most once."""

    def __init__(self, owner: type, factory: Callable[[], Any]) -> None:
        self._owner = owner
        self._factory = factory
        self._instance: Any = None
        self._built = False

    def get(self) -> Any:
        if not self._built:
            try:
                self._instance = self._factory()
            except Exception as exc:
                raise AssemblyConstructionError(self._owner, exc) from exc
            self._built = True
            logger.debug("Built assembly instance of %s", self._owner.__qualname__)
        return self._instance


def _call_provider(entry: TestEntry, instance: Any) -> Any:
    provider = entry.provider
    if isinstance(provider, str):
        value = getattr(instance, provider)
        return value() if callable(value) else value
    return provider(instance)


def _deferred_rows(entry: TestEntry, instance: Any) -> tuple[tuple[Any, ...], ...]:
    result = _call_provider(entry, instance)
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise UnsupportedAsyncProviderError(entry.member)
    if hasattr(result, "__aiter__"):
        raise UnsupportedAsyncProviderError(entry.member)
    if result is None:
        return ()
    if isinstance(result, (str, bytes)) or not isinstance(result, Iterable):
        msg = f'Data provider for "{entry.member}" must return an iterable of rows, got {type(result).__name__}'
        raise SuiteAssemblyError(msg)
    return tuple(tuple(row) if isinstance(row, (tuple, list)) else (row,) for row in result)


def _needs_instance(metadata: ClassMetadata) -> bool:
    if metadata.parameters:
        return True
    return any(entry.kind is EntryKind.DEFERRED_EACH for entry in metadata.tests)


def expand(
    metadata: ClassMetadata,
    instance_factory: Callable[[], Any] | None = None,
) -> tuple[ResolvedTestUnit, ...]:
    """Expand every test entry of ``metadata`` into resolved units.

    Single tests produce one unit, static tables one unit per row, deferred
    tables one unit per row returned by the provider. A throwaway instance
    (``instance_factory()``, by default the class called with no arguments)
    is built only when a deferred entry or a named parameter needs it.

    Raises:
        AssemblyConstructionError: The throwaway instance could not be built.
        UnsupportedAsyncProviderError: A provider returned an awaitable.
        TemplateError: A name could not be rendered.
    """
    owner = metadata.owner
    throwaway = _ThrowawayInstance(owner, instance_factory or owner)
    if _needs_instance(metadata):
        throwaway.get()

    units: list[ResolvedTestUnit] = []
    for entry in metadata.tests:
        if entry.kind is EntryKind.SINGLE:
            rows: tuple[tuple[Any, ...], ...] = ((),)
        elif entry.kind is EntryKind.STATIC_EACH:
            rows = entry.argument_sets or ()
        else:
            try:
                rows = _deferred_rows(entry, throwaway.get())
            except Exception as exc:
                exc.add_note(f"while reading test data for {owner.__qualname__}.{entry.member}")
                raise

        if not rows:
            logger.debug("%s.%s has no data rows", owner.__qualname__, entry.member)

        for row in rows:
            display = [safe_stringify(value) for value in row]
            context = build_param_context(throwaway.get(), metadata.parameters) if metadata.parameters else {}
            try:
                name = render(entry.template, display, context)
            except TemplateError as exc:
                exc.add_note(f"while naming a test of {owner.__qualname__}.{entry.member}")
                raise
            units.append(
                ResolvedTestUnit(
                    display_name=name,
                    member=entry.member,
                    arguments=row,
                    identity=f"{owner.__qualname__}::{entry.member}#{len(units)}",
                )
            )

    logger.debug("Expanded %s into %d units", owner.__qualname__, len(units))
    return tuple(units)
