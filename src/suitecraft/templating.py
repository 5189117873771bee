"""Placeholder substitution for test names and step labels.

Templates use ``$0``, ``$1``... for positional arguments and ``$name`` for
named parameters:

    >>> render("Step $0 with $1", ["user", "admin"])
    'Step user with admin'
    >>> render("User $name", context={"name": NamedValue("john")})
    'User john'

A ``$`` that is not followed by a digit or a letter is kept as is.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from rich.pretty import pretty_repr

from suitecraft.errors import MissingParameterError, OutOfRangeError


T = TypeVar("T")

Formatter = Callable[[Any], str]

# ASCII only: "$٣" is not a placeholder.
_PLACEHOLDER = re.compile(r"\$(?:(?P<index>[0-9]+)|(?P<name>[A-Za-z][A-Za-z0-9_]*))")


@dataclass(frozen=True)
class NamedValue:
    """Value of a named placeholder together with its optional formatter."""

    value: Any
    formatter: Formatter | None = None

    def render(self) -> str:
        if self.formatter is not None:
            return self.formatter(self.value)
        return safe_stringify(self.value)


ParamContext = Mapping[str, NamedValue]


class Labeled(Generic[T]):
    """A row value with a custom display form.

    The label is used when the value appears in a test name, the wrapped
    value is what the test body receives.
    """

    __slots__ = ("value", "_to_string")

    def __init__(self, value: T, to_string: Callable[[T], str]) -> None:
        self.value = value
        self._to_string = to_string

    def __str__(self) -> str:
        return self._to_string(self.value)

    def __repr__(self) -> str:
        return f"Labeled({self.value!r}, label={str(self)!r})"


def labeled(to_string: Callable[[T], str]) -> Callable[[T], Labeled[T]]:
    """Build a factory that wraps values with the same display function.

    Example:
        as_email = labeled(lambda user: user["email"])
        rows = [(as_email(admin), "admin"), (as_email(guest), "guest")]
    """

    def wrap(value: T) -> Labeled[T]:
        return Labeled(value, to_string)

    return wrap


def unwrap(value: Any) -> Any:
    """Return the underlying value of a Labeled, or the value itself."""
    if isinstance(value, Labeled):
        return value.value
    return value


def _has_own_str(value: Any) -> bool:
    return type(value).__str__ is not object.__str__


class _Verbatim:
    """Renders as fixed text inside a ``pretty_repr`` tree."""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return self.text


_CYCLE = _Verbatim("...")


def _sorted_set(value: set[Any] | frozenset[Any], seen: frozenset[int]) -> _Verbatim:
    items = sorted(pretty_repr(_stable(item, seen), max_width=sys.maxsize) for item in value)
    body = "{" + ", ".join(items) + "}" if items else ""
    if type(value) is frozenset:
        return _Verbatim(f"frozenset({body})")
    return _Verbatim(body or "set()")


def _stable(value: Any, seen: frozenset[int] = frozenset()) -> Any:
    """Copy of ``value`` in which sets render with their elements sorted."""
    kind = type(value)
    if kind not in (list, tuple, dict, set, frozenset):
        return value
    if id(value) in seen:
        return _CYCLE
    seen = seen | {id(value)}
    if kind is list:
        return [_stable(item, seen) for item in value]
    if kind is tuple:
        return tuple(_stable(item, seen) for item in value)
    if kind is dict:
        return {key: _stable(item, seen) for key, item in value.items()}
    return _sorted_set(value, seen)


def safe_stringify(value: Any) -> str:
    """Convert any value to a display string without raising.

    Strings and objects with their own ``__str__`` are converted with ``str()``.
    Containers and plain objects get a single-line ``rich`` pretty repr that
    prints ``...`` for circular references. Set elements are sorted so the
    text is the same in every process.
    """
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, (bool, int, float, complex)):
        return str(value)
    if _has_own_str(value) and not isinstance(value, (list, tuple, dict, set, frozenset)):
        return str(value)
    return pretty_repr(_stable(value), max_width=sys.maxsize)


def _format_positional(args: Sequence[Any], formatters: Sequence[Formatter | None], index: int) -> str:
    value = args[index]
    if index < len(formatters):
        formatter = formatters[index]
        if callable(formatter):
            return formatter(value)
    return safe_stringify(value)


def _named_value(entry: Any) -> NamedValue:
    if isinstance(entry, NamedValue):
        return entry
    return NamedValue(entry)


def render(
    template: str,
    args: Sequence[Any] = (),
    context: Mapping[str, Any] | None = None,
    formatters: Sequence[Formatter | None] = (),
) -> str:
    """Substitute placeholders in ``template``.

    Args:
        template: Name template, e.g. ``"Login as $user with $0"``.
        args: Values for ``$0``, ``$1``...
        context: Values for ``$name`` placeholders. Entries are ``NamedValue``
            instances; any other value is treated as ``NamedValue(value)``.
        formatters: Optional per-position formatters, parallel to ``args``.

    Raises:
        OutOfRangeError: ``$N`` with ``N >= len(args)``.
        MissingParameterError: ``$name`` not present in ``context``.
    """
    template = str(template)
    context = context or {}
    parts: list[str] = []
    cursor = 0

    for match in _PLACEHOLDER.finditer(template):
        start = match.start()
        parts.append(template[cursor:start])

        digits = match.group("index")
        if digits is not None:
            index = int(digits)
            if index >= len(args):
                raise OutOfRangeError(
                    position=start,
                    placeholder=match.group(0),
                    required=index + 1,
                    available=len(args),
                )
            parts.append(_format_positional(args, formatters, index))
        else:
            name = match.group("name")
            if name not in context:
                raise MissingParameterError(position=start, name=name)
            parts.append(_named_value(context[name]).render())

        cursor = match.end()

    parts.append(template[cursor:])
    return "".join(parts)
