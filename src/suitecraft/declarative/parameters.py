"""Named parameters for ``$name`` placeholders in test names and step labels."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, overload

from suitecraft.errors import DecoratorUsageError
from suitecraft.templating import Formatter, NamedValue


logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ParameterDef:
    """Registration of one named parameter.

    Attributes:
    ----------
    name
        Public name used in templates (``$name``).
    attribute
        Instance attribute the value is read from.
    formatter
        Optional function turning the value into display text.
    """

    name: str
    attribute: str
    formatter: Formatter | None = None


class param(Generic[T]):
    """Declare a class attribute as a named template parameter.

    The attribute behaves like a normal instance attribute; its current value
    is read whenever a test name or step label needs ``$name``.

    Example:
        @suite("Checkout")
        class CheckoutSuite:
            product = param("item", default="Laptop")
            password = param(formatter=lambda pwd: "*" * len(pwd), default="secret")

            @test("Add $item to cart")
            def add_to_cart(self): ...
    """

    def __init__(
        self,
        name: str | None = None,
        formatter: Formatter | None = None,
        *,
        default: T = MISSING,
        default_factory: Callable[[], T] | None = None,
    ) -> None:
        if name is not None and (not name or any(ch.isspace() for ch in name)):
            msg = f"Cannot create parameter {name!r}: names must be a single word"
            raise DecoratorUsageError(msg)
        if default is not MISSING and default_factory is not None:
            msg = "param() accepts either default or default_factory, not both"
            raise DecoratorUsageError(msg)
        self._public_name = name
        self.formatter = formatter
        self.default = default
        self.default_factory = default_factory
        self.definition: ParameterDef | None = None

    def __set_name__(self, owner: type, attribute: str) -> None:
        if attribute.startswith(f"_{owner.__name__}__"):
            msg = f"Private attribute {attribute!r} of {owner.__qualname__} cannot be a parameter"
            raise DecoratorUsageError(msg)
        self.definition = ParameterDef(
            name=self._public_name or attribute,
            attribute=attribute,
            formatter=self.formatter,
        )

    @property
    def attribute(self) -> str:
        if self.definition is None:
            msg = "param() used outside of a class body"
            raise DecoratorUsageError(msg)
        return self.definition.attribute

    @overload
    def __get__(self, instance: None, owner: type) -> param[T]: ...

    @overload
    def __get__(self, instance: object, owner: type) -> T: ...

    def __get__(self, instance: object | None, owner: type) -> param[T] | T:
        if instance is None:
            return self
        values = instance.__dict__
        attribute = self.attribute
        if attribute in values:
            return values[attribute]
        if self.default_factory is not None:
            values[attribute] = self.default_factory()
            return values[attribute]
        if self.default is not MISSING:
            return self.default
        msg = f"{type(instance).__qualname__!r} object has no value for parameter {attribute!r}"
        raise AttributeError(msg)

    def __set__(self, instance: object, value: T) -> None:
        instance.__dict__[self.attribute] = value

    def __delete__(self, instance: object) -> None:
        try:
            del instance.__dict__[self.attribute]
        except KeyError:
            raise AttributeError(self.attribute) from None


def own_parameters(cls: type) -> list[ParameterDef]:
    """Parameters declared directly on ``cls``, in declaration order."""
    return [
        value.definition
        for value in vars(cls).values()
        if isinstance(value, param) and value.definition is not None
    ]


def build_param_context(instance: Any, parameters: Mapping[str, ParameterDef]) -> dict[str, NamedValue]:
    """Read every registered parameter from ``instance`` at this moment.

    Parameters without a value are left out, so referencing them in a
    template raises MissingParameterError.
    """
    context: dict[str, NamedValue] = {}
    for name, definition in parameters.items():
        try:
            value = getattr(instance, definition.attribute)
        except AttributeError:
            logger.debug("Parameter %r has no value on %r", name, type(instance).__qualname__)
            continue
        context[name] = NamedValue(value, definition.formatter)
    return context
