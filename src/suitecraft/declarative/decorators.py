"""Member decorators declaring tests and hooks on a suite class.

Nothing runs at declaration time. Each decorator records what it declares on
the function (see ``records.MemberDeclaration``) and returns it unchanged.

Example:
    @suite("Math")
    class MathSuite:
        @before_each
        def reset(self):
            self.calls = 0

        @test("adds numbers")
        def add(self):
            assert 1 + 1 == 2

        @test.each([(1, 2, 3), (2, 3, 5)], "$0 + $1 = $2")
        def add_many(self, a, b, expected):
            assert a + b == expected
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar, overload

from suitecraft.declarative.records import (
    DataProvider,
    EntryKind,
    HookFn,
    HookTier,
    TestEntry,
    declaration_of,
    is_static_or_class,
    underlying_function,
)
from suitecraft.errors import DecoratorUsageError


logger = logging.getLogger(__name__)

F = TypeVar("F")

MAX_MEMBER_HOOKS = 10


def _member_name(member: Any, decorator: str) -> str:
    fn = underlying_function(member)
    if not callable(fn):
        msg = f"@{decorator} can only decorate methods, got {type(fn).__name__}"
        raise DecoratorUsageError(msg)
    name = getattr(fn, "__name__", None) or repr(fn)
    if name.startswith("__") and not name.endswith("__"):
        msg = f"@{decorator} cannot decorate private member {name!r}"
        raise DecoratorUsageError(msg)
    return name


def _require_instance_method(member: Any, decorator: str) -> None:
    if is_static_or_class(member):
        msg = f"@{decorator} can only decorate instance methods, not a {type(member).__name__}"
        raise DecoratorUsageError(msg)


def _add_entry(member: F, entry: TestEntry) -> F:
    declaration = declaration_of(member, create=True)
    # Decorators apply bottom-up; keep entries in source order.
    declaration.tests.insert(0, entry)
    return member


def _normalize_row(row: Any) -> tuple[Any, ...]:
    if isinstance(row, (tuple, list)):
        return tuple(row)
    return (row,)


class _TestDecorator:
    """The ``test`` decorator and its ``each``/``data`` variants."""

    __test__ = False  # Prevent pytest from collecting this as a test function

    @overload
    def __call__(self, name: F) -> F: ...

    @overload
    def __call__(self, name: str | None = None) -> Callable[[F], F]: ...

    def __call__(self, name: Any = None) -> Any:
        """Declare a single test. The name defaults to the method name.

        Usable bare (``@test``) or with a name template (``@test("logs in as $user")``).
        """
        if callable(name) or is_static_or_class(name):
            return self._single(name, None)

        if name is not None and not isinstance(name, str):
            msg = f"@test expects a name template, got {type(name).__name__}"
            raise DecoratorUsageError(msg)

        def decorator(member: F) -> F:
            return self._single(member, name)

        return decorator

    def _single(self, member: F, template: str | None) -> F:
        _require_instance_method(member, "test")
        name = _member_name(member, "test")
        return _add_entry(member, TestEntry(member=name, template=template if template is not None else name))

    def each(self, data: Iterable[Any] | DataProvider | str, template: str) -> Callable[[F], F]:
        """Declare one test per data row.

        ``data`` is either a static iterable of rows, a callable taking the
        suite instance, or the name of an instance attribute (usually a
        ``@test.data`` method) producing the rows. Rows that are not tuples
        or lists are passed as a single argument. Deferred data is read from
        a throwaway instance when the suite is assembled.

        Examples:
            @test.each([(1, 2, 3), (2, 2, 4)], "$0 + $1 = $2")
            @test.each(lambda self: self.users, "login as $0")
            @test.each("cases", "case $0")
        """
        if not isinstance(template, str):
            msg = f"@test.each expects a name template, got {type(template).__name__}"
            raise DecoratorUsageError(msg)

        if isinstance(data, str) or callable(data):
            entry_kind = EntryKind.DEFERRED_EACH
            rows = None
            provider = data
        elif isinstance(data, Iterable):
            entry_kind = EntryKind.STATIC_EACH
            rows = tuple(_normalize_row(row) for row in data)
            provider = None
            if not rows:
                logger.debug("@test.each(%r) received no rows; no tests will be registered", template)
        else:
            msg = f"@test.each expects rows, a provider or an attribute name, got {type(data).__name__}"
            raise DecoratorUsageError(msg)

        def decorator(member: F) -> F:
            _require_instance_method(member, "test.each")
            name = _member_name(member, "test.each")
            entry = TestEntry(member=name, template=template, kind=entry_kind, argument_sets=rows, provider=provider)
            return _add_entry(member, entry)

        return decorator

    def data(self, member: F) -> F:
        """Mark a method as a data provider for ``@test.each("name", ...)``."""
        _member_name(member, "test.data")
        declaration_of(member, create=True).data_provider = True
        return member


test = _TestDecorator()


def _tier_decorator(tier: HookTier, *, instance_only: bool) -> Callable[[F], F]:
    decorator_name = tier.value

    def decorator(member: F) -> F:
        if instance_only:
            _require_instance_method(member, decorator_name)
        _member_name(member, decorator_name)
        declaration = declaration_of(member, create=True)
        if tier not in declaration.tiers:
            declaration.tiers.append(tier)
        return member

    decorator.__name__ = decorator_name
    decorator.__doc__ = f"Register the method in the suite's {decorator_name} hooks."
    return decorator


before_all = _tier_decorator(HookTier.BEFORE_ALL, instance_only=False)
before_each = _tier_decorator(HookTier.BEFORE_EACH, instance_only=True)
after_each = _tier_decorator(HookTier.AFTER_EACH, instance_only=True)
after_all = _tier_decorator(HookTier.AFTER_ALL, instance_only=False)


def _takes_instance(hook: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(hook)
    except (TypeError, ValueError):
        return True
    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL)
    ]
    return bool(positional)


def _member_hook(kind: str, hook: HookFn) -> Callable[[F], F]:
    if not callable(hook):
        msg = f"@{kind} expects a callable hook, got {type(hook).__name__}"
        raise DecoratorUsageError(msg)
    takes_instance = _takes_instance(hook)

    def decorator(member: F) -> F:
        _require_instance_method(member, kind)
        name = _member_name(member, kind)
        declaration = declaration_of(member, create=True)
        hooks: list[HookFn] = getattr(declaration, kind)
        if any(getattr(existing, "__wrapped__", existing) is hook for existing in hooks):
            logger.warning("Hook %r is registered more than once with @%s on %r", hook, kind, name)
        if takes_instance:
            hooks.insert(0, hook)
        else:
            hooks.insert(0, _ignoring_instance(hook))
        if len(hooks) > MAX_MEMBER_HOOKS:
            logger.warning("%r has %d @%s hooks; consider a before_each/after_each method", name, len(hooks), kind)
        return member

    return decorator


def _ignoring_instance(hook: Callable[[], Any]) -> HookFn:
    def call(instance: Any) -> Any:
        return hook()

    call.__wrapped__ = hook
    call.__name__ = getattr(hook, "__name__", "hook")
    return call


def before(hook: HookFn) -> Callable[[F], F]:
    """Run ``hook(instance)`` before this test only, after every before_each hook.

    Several ``@before`` decorators run top to bottom as written.
    """
    return _member_hook("before", hook)


def after(hook: HookFn) -> Callable[[F], F]:
    """Run ``hook(instance)`` after this test only, before every after_each hook.

    Several ``@after`` decorators run top to bottom as written, and always
    run, even when the test or an earlier hook failed.
    """
    return _member_hook("after", hook)
