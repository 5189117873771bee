"""Merge suite declarations across a class and its ancestors.

Decorators only record data on the members and classes they decorate.
`aggregate` walks the ancestor chain once, ancestor first, and produces the
effective view of a suite class:

- hook tiers are concatenated ancestor first, each name once;
- tests, per-member hooks and side tables come from the nearest class
  defining the member (an undecorated override removes them);
- parameters are unioned, a child definition replacing an ancestor's;
- class tags are concatenated ancestor first, the nearest class timeout wins.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from suitecraft.declarative.parameters import ParameterDef, own_parameters
from suitecraft.declarative.records import (
    EMPTY_MARKS,
    HookFn,
    HookTier,
    MemberDeclaration,
    MemberMarks,
    TestEntry,
    declaration_of,
    own_class_marks,
    underlying_function,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookTiers:
    """Member names per suite-wide hook tier, in execution order."""

    before_all: tuple[str, ...] = ()
    before_each: tuple[str, ...] = ()
    after_each: tuple[str, ...] = ()
    after_all: tuple[str, ...] = ()

    def of(self, tier: HookTier) -> tuple[str, ...]:
        return getattr(self, tier.value)


@dataclass(frozen=True)
class MemberHooks:
    """Hooks wrapping one test member, in execution order."""

    before: tuple[HookFn, ...] = ()
    after: tuple[HookFn, ...] = ()


NO_MEMBER_HOOKS = MemberHooks()


@dataclass(frozen=True)
class ClassMetadata:
    """Effective declarations of a suite class.

    Attributes:
    ----------
    owner
        The suite class.
    chain
        Ancestor chain, ancestor first, ending with ``owner``.
    tests
        Test entries in member order, then declaration order.
    hooks
        Suite-wide hook tiers.
    member_hooks
        ``before``/``after`` hooks per test member.
    parameters
        Named parameters by public name.
    marks
        Side-table entries per member.
    class_tags
        Tags applied to every test of the suite.
    class_timeout
        Timeout applied to tests without their own.
    data_providers
        Members marked with ``test.data``.
    """

    owner: type
    chain: tuple[type, ...]
    tests: tuple[TestEntry, ...] = ()
    hooks: HookTiers = field(default_factory=HookTiers)
    member_hooks: Mapping[str, MemberHooks] = field(default_factory=lambda: MappingProxyType({}))
    parameters: Mapping[str, ParameterDef] = field(default_factory=lambda: MappingProxyType({}))
    marks: Mapping[str, MemberMarks] = field(default_factory=lambda: MappingProxyType({}))
    class_tags: tuple[str, ...] = ()
    class_timeout: float | None = None
    data_providers: tuple[str, ...] = ()

    def marks_for(self, member: str) -> MemberMarks:
        return self.marks.get(member, EMPTY_MARKS)

    def hooks_for(self, member: str) -> MemberHooks:
        return self.member_hooks.get(member, NO_MEMBER_HOOKS)

    def tags_for(self, member: str) -> tuple[str, ...]:
        return self.class_tags + self.marks_for(member).tags

    def timeout_for(self, member: str) -> float | None:
        own = self.marks_for(member).timeout
        return own if own is not None else self.class_timeout


def ancestor_chain(cls: type) -> tuple[type, ...]:
    """The class's MRO without ``object``, ancestor first."""
    return tuple(klass for klass in reversed(cls.__mro__) if klass is not object)


def _own_declarations(klass: type) -> list[tuple[str, MemberDeclaration | None]]:
    found = []
    for name, value in vars(klass).items():
        if name.startswith("__") and name.endswith("__"):
            continue
        declaration = declaration_of(value)
        found.append((name, declaration if isinstance(declaration, MemberDeclaration) else None))
    return found


def _resolves_to_callable(cls: type, name: str) -> bool:
    try:
        value = inspect.getattr_static(cls, name)
    except AttributeError:
        return False
    return callable(underlying_function(value))


def _merge_tiers(
    cls: type,
    chain: tuple[type, ...],
    per_class: Mapping[type, list[tuple[str, MemberDeclaration | None]]],
) -> HookTiers:
    tiers: dict[HookTier, list[str]] = {tier: [] for tier in HookTier}
    for klass in chain:
        for name, declaration in per_class[klass]:
            if declaration is None:
                continue
            for tier in declaration.tiers:
                if name not in tiers[tier]:
                    tiers[tier].append(name)

    def checked(names: list[str]) -> tuple[str, ...]:
        kept = []
        for name in names:
            if _resolves_to_callable(cls, name):
                kept.append(name)
            else:
                logger.debug("Dropping hook %r of %s: not callable on the class", name, cls.__qualname__)
        return tuple(kept)

    return HookTiers(**{tier.value: checked(names) for tier, names in tiers.items()})


def _merge_parameters(chain: tuple[type, ...]) -> dict[str, ParameterDef]:
    parameters: dict[str, ParameterDef] = {}
    for klass in chain:
        for definition in own_parameters(klass):
            # A redeclared attribute drops the public name its ancestor used.
            for name in [n for n, d in parameters.items() if d.attribute == definition.attribute]:
                del parameters[name]
            parameters[definition.name] = definition
    return parameters


def aggregate(cls: type) -> ClassMetadata:
    """Build the effective metadata of ``cls`` from its whole ancestor chain."""
    chain = ancestor_chain(cls)
    per_class = {klass: _own_declarations(klass) for klass in chain}

    members: dict[str, MemberDeclaration] = {}
    for klass in chain:
        for name, declaration in per_class[klass]:
            # An undecorated override keeps the nearest ancestor declaration.
            if declaration is None:
                continue
            members[name] = declaration

    tests: list[TestEntry] = []
    member_hooks: dict[str, MemberHooks] = {}
    marks: dict[str, MemberMarks] = {}
    data_providers: list[str] = []
    for name, declaration in members.items():
        tests.extend(replace(entry, member=name) for entry in declaration.tests)
        if declaration.before or declaration.after:
            member_hooks[name] = MemberHooks(tuple(declaration.before), tuple(declaration.after))
        if declaration.marks is not EMPTY_MARKS:
            marks[name] = declaration.marks
        if declaration.data_provider:
            data_providers.append(name)

    class_tags: tuple[str, ...] = ()
    class_timeout: float | None = None
    for klass in chain:
        own = own_class_marks(klass)
        class_tags += own.tags
        if own.timeout is not None:
            class_timeout = own.timeout

    metadata = ClassMetadata(
        owner=cls,
        chain=chain,
        tests=tuple(tests),
        hooks=_merge_tiers(cls, chain, per_class),
        member_hooks=MappingProxyType(member_hooks),
        parameters=MappingProxyType(_merge_parameters(chain)),
        marks=MappingProxyType(marks),
        class_tags=class_tags,
        class_timeout=class_timeout,
        data_providers=tuple(data_providers),
    )
    logger.debug(
        "Aggregated %s: %d test entries over %d classes", cls.__qualname__, len(metadata.tests), len(chain)
    )
    return metadata

