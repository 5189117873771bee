"""Records that decorators attach to suite members and classes.

Member decorators run before the class exists, so they store what they
declare on the function object itself (``__suitecraft_declaration__``).
Class decorators store class-level data in the class's own ``__dict__``.
Nothing here looks at base classes; merging is done by ``metadata.aggregate``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from suitecraft.context import Annotation, Attachment
from suitecraft.errors import DecoratorUsageError


DECLARATION_ATTR = "__suitecraft_declaration__"
CLASS_MARKS_ATTR = "__suitecraft_class_marks__"

HookFn = Callable[[Any], Any]
Condition = Callable[[Any], bool]
AnnotationFactory = Callable[[Any], "Annotation | list[Annotation] | None"]
AttachmentFactory = Callable[[Any], "Attachment | None"]
DataProvider = Callable[[Any], Any]


class HookTier(Enum):
    """Suite-wide hook tiers."""

    BEFORE_ALL = "before_all"
    BEFORE_EACH = "before_each"
    AFTER_EACH = "after_each"
    AFTER_ALL = "after_all"


class EntryKind(Enum):
    """How a test entry turns into units."""

    SINGLE = "single"
    STATIC_EACH = "static_each"
    DEFERRED_EACH = "deferred_each"


@dataclass(frozen=True)
class TestEntry:
    """A raw test declaration.

    Attributes:
    ----------
    member
        Name of the suite method implementing the test.
    template
        Display-name template.
    kind
        Single test, static table, or deferred data provider.
    argument_sets
        Rows of a static table.
    provider
        Callable taking the instance, or the name of an instance attribute,
        for deferred tables.
    """

    __test__ = False  # Prevent pytest from collecting this as a test class

    member: str
    template: str
    kind: EntryKind = EntryKind.SINGLE
    argument_sets: tuple[tuple[Any, ...], ...] | None = None
    provider: DataProvider | str | None = None


@dataclass(frozen=True)
class ConditionalMark:
    """A skip/fixme/slow style mark, optionally gated by a predicate on the instance."""

    reason: str | None = None
    condition: Condition | None = None

    def applies(self, instance: Any) -> bool:
        if self.condition is None:
            return True
        return bool(self.condition(instance))


@dataclass(frozen=True)
class AnnotationSpec:
    """A static annotation or a factory evaluated against the instance."""

    annotation: Annotation | None = None
    factory: AnnotationFactory | None = None

    def resolve(self, instance: Any) -> list[Annotation]:
        if self.factory is None:
            return [self.annotation] if self.annotation is not None else []
        produced = self.factory(instance)
        if not produced:
            return []
        if isinstance(produced, Annotation):
            return [produced]
        return list(produced)


@dataclass(frozen=True)
class AttachmentSpec:
    """A static attachment or a factory evaluated against the instance."""

    attachment: Attachment | None = None
    factory: AttachmentFactory | None = None

    def resolve(self, instance: Any) -> Attachment | None:
        if self.factory is None:
            return self.attachment
        produced = self.factory(instance)
        if produced is None:
            return None
        if not isinstance(produced, Attachment):
            msg = f"Attachment factory must return an Attachment or None, got {type(produced).__name__}"
            raise TypeError(msg)
        return produced


@dataclass(frozen=True)
class MemberMarks:
    """Side-table entries recorded for one suite member."""

    tags: tuple[str, ...] = ()
    skip: str | None = None
    fixme: ConditionalMark | None = None
    slow: ConditionalMark | None = None
    annotations: tuple[AnnotationSpec, ...] = ()
    attachments: tuple[AttachmentSpec, ...] = ()
    timeout: float | None = None


@dataclass(frozen=True)
class ClassMarks:
    """Side-table entries recorded on a suite class."""

    tags: tuple[str, ...] = ()
    timeout: float | None = None


EMPTY_MARKS = MemberMarks()
EMPTY_CLASS_MARKS = ClassMarks()


@dataclass
class MemberDeclaration:
    """Everything the decorators recorded on one member.

    ``before`` and ``after`` are kept in execution order: decorators apply
    bottom-up, so each new hook is inserted at the front.
    """

    tests: list[TestEntry] = field(default_factory=list)
    tiers: list[HookTier] = field(default_factory=list)
    before: list[HookFn] = field(default_factory=list)
    after: list[HookFn] = field(default_factory=list)
    marks: MemberMarks = EMPTY_MARKS
    data_provider: bool = False


def underlying_function(member: Any) -> Any:
    """Return the plain function behind a staticmethod/classmethod wrapper."""
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__
    return member


def is_static_or_class(member: Any) -> bool:
    return isinstance(member, (staticmethod, classmethod))


def declaration_of(member: Any, *, create: bool = False) -> MemberDeclaration | None:
    """Get the declaration recorded on ``member``, optionally creating it."""
    fn = underlying_function(member)
    declaration = getattr(fn, DECLARATION_ATTR, None)
    if declaration is not None or not create:
        return declaration
    if not callable(fn):
        msg = f"Suite decorators can only be used on methods, got {type(fn).__name__}"
        raise DecoratorUsageError(msg)
    declaration = MemberDeclaration()
    setattr(fn, DECLARATION_ATTR, declaration)
    return declaration


def own_class_marks(cls: type) -> ClassMarks:
    """Class-level marks declared directly on ``cls``."""
    return vars(cls).get(CLASS_MARKS_ATTR, EMPTY_CLASS_MARKS)


def set_class_marks(cls: type, marks: ClassMarks) -> None:
    setattr(cls, CLASS_MARKS_ATTR, marks)
