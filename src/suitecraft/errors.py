"""Exceptions raised while declaring and assembling suites."""

from __future__ import annotations


class DecoratorUsageError(TypeError):
    """A decorator or descriptor was applied to something it does not support."""


class SuiteAssemblyError(Exception):
    """Base class for failures that abort the assembly of a whole suite.

    Raised before any unit of the affected suite is registered.
    """


class TemplateError(SuiteAssemblyError):
    """A name template could not be rendered."""


class OutOfRangeError(TemplateError):
    """A positional placeholder refers to an argument that was not supplied."""

    def __init__(self, position: int, placeholder: str, required: int, available: int) -> None:
        self.position = position
        self.placeholder = placeholder
        self.required = required
        self.available = available
        super().__init__(
            f'Missing argument for placeholder at position {position}: "{placeholder}". '
            f"Expected at least {required} argument(s), but got {available}."
        )


class MissingParameterError(TemplateError):
    """A named placeholder is absent from the parameter context."""

    def __init__(self, position: int, name: str) -> None:
        self.position = position
        self.name = name
        super().__init__(
            f'Missing parameter for placeholder at position {position}: "${name}". '
            "Parameter not found in context."
        )


class UnsupportedAsyncProviderError(SuiteAssemblyError):
    """A deferred data provider returned an awaitable."""

    def __init__(self, member: str) -> None:
        self.member = member
        super().__init__(
            f'Data provider for "{member}" returned an awaitable. Test names are resolved '
            "synchronously during assembly; use a static list or a synchronous provider."
        )


class AssemblyConstructionError(SuiteAssemblyError):
    """The zero-argument instance needed to resolve names or data could not be built."""

    def __init__(self, owner: type, cause: BaseException) -> None:
        self.owner = owner
        super().__init__(
            f"Failed to create an instance of {owner.__qualname__} for resolving test names "
            f"and data. Ensure the constructor takes no required arguments. Error: {cause!r}"
        )
