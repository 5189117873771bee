"""Per-test side tables: tags, skip, fixme, slow, annotations, attachments, timeouts.

These decorators only record data on the decorated member (or class). The
driver looks the data up by member name when a unit starts and evaluates
conditions and factories against the live suite instance.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar

from suitecraft.context import Annotation, Attachment
from suitecraft.declarative.records import (
    AnnotationFactory,
    AnnotationSpec,
    AttachmentFactory,
    AttachmentSpec,
    Condition,
    ConditionalMark,
    declaration_of,
    own_class_marks,
    set_class_marks,
)
from suitecraft.errors import DecoratorUsageError


logger = logging.getLogger(__name__)

F = TypeVar("F")

SMALL_TIMEOUT = 0.1
LARGE_TIMEOUT = 600.0


def _update_marks(member: F, **changes: Any) -> F:
    declaration = declaration_of(member, create=True)
    declaration.marks = replace(declaration.marks, **changes)
    return member


def _validate_timeout(seconds: float) -> float:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        msg = f"timeout() requires a number of seconds, got {type(seconds).__name__}"
        raise DecoratorUsageError(msg)
    if not math.isfinite(seconds):
        msg = f"timeout() requires a finite number of seconds, got {seconds}"
        raise DecoratorUsageError(msg)
    if seconds <= 0:
        msg = f"timeout() requires a positive number of seconds, got {seconds}"
        raise DecoratorUsageError(msg)
    if seconds > LARGE_TIMEOUT:
        logger.warning("Timeout of %.1f minutes is very large", seconds / 60)
    if seconds < SMALL_TIMEOUT:
        logger.warning("Timeout of %.0fms is very small and may fail tests unexpectedly", seconds * 1000)
    return float(seconds)


def tag(*tags: str) -> Callable[[F], F]:
    """Attach tags to a test member or to every test of a suite class.

    Tags are stored without a leading ``@``. Class tags are inherited and
    come before the member's own tags.
    """
    cleaned = tuple(t.removeprefix("@") for t in tags)
    if not cleaned or not all(cleaned):
        msg = "tag() requires at least one non-empty tag"
        raise DecoratorUsageError(msg)

    def decorator(target: F) -> F:
        if isinstance(target, type):
            current = own_class_marks(target)
            set_class_marks(target, replace(current, tags=cleaned + current.tags))
            return target
        existing = declaration_of(target, create=True).marks.tags
        return _update_marks(target, tags=cleaned + existing)

    return decorator


def skip(reason: str = "Test skipped") -> Callable[[F], F]:
    """Register the member's tests as skipped."""

    def decorator(member: F) -> F:
        return _update_marks(member, skip=reason)

    return decorator


def _conditional(fn_or_reason: Condition | str | None, reason: str | None, default: str | None) -> ConditionalMark:
    if callable(fn_or_reason):
        return ConditionalMark(reason=reason or default, condition=fn_or_reason)
    if isinstance(fn_or_reason, str):
        return ConditionalMark(reason=fn_or_reason)
    return ConditionalMark(reason=reason or default)


def fixme(fn_or_reason: Condition | str | None = None, reason: str | None = None) -> Callable[[F], F]:
    """Mark the member's tests as known to be broken.

    Examples:
        @fixme("flaky upstream")
        @fixme(lambda self: self.region == "eu", "fails in the EU region")
    """
    mark = _conditional(fn_or_reason, reason, "Test marked as fixme")

    def decorator(member: F) -> F:
        return _update_marks(member, fixme=mark)

    return decorator


def slow(fn_or_reason: Condition | str | None = None, reason: str | None = None) -> Callable[[F], F]:
    """Mark the member's tests as slow, tripling their timeout."""
    mark = _conditional(fn_or_reason, reason, None)

    def decorator(member: F) -> F:
        return _update_marks(member, slow=mark)

    return decorator


def annotate(type_or_factory: str | AnnotationFactory, description: str | None = None) -> Callable[[F], F]:
    """Attach an annotation, or a factory producing annotations from the instance."""
    if callable(type_or_factory):
        spec = AnnotationSpec(factory=type_or_factory)
    else:
        spec = AnnotationSpec(annotation=Annotation(type=type_or_factory, description=description))

    def decorator(member: F) -> F:
        existing = declaration_of(member, create=True).marks.annotations
        return _update_marks(member, annotations=(spec, *existing))

    return decorator


def attach(
    name_or_factory: str | AttachmentFactory,
    *,
    body: str | bytes | None = None,
    path: Path | str | None = None,
    content_type: str | None = None,
) -> Callable[[F], F]:
    """Attach an artifact, or a factory producing one from the instance."""
    if callable(name_or_factory):
        spec = AttachmentSpec(factory=name_or_factory)
    else:
        if body is None and path is None:
            msg = f"attach({name_or_factory!r}) needs either body or path"
            raise DecoratorUsageError(msg)
        spec = AttachmentSpec(
            attachment=Attachment(name=name_or_factory, body=body, path=path, content_type=content_type)
        )

    def decorator(member: F) -> F:
        existing = declaration_of(member, create=True).marks.attachments
        return _update_marks(member, attachments=(spec, *existing))

    return decorator


def timeout(seconds: float) -> Callable[[F], F]:
    """Set a timeout in seconds for a test member or for every test of a suite class."""
    value = _validate_timeout(seconds)

    def decorator(target: F) -> F:
        if isinstance(target, type):
            current = own_class_marks(target)
            if current.timeout is not None:
                logger.warning("Overriding timeout %ss declared on %s", current.timeout, target.__qualname__)
            set_class_marks(target, replace(current, timeout=value))
            return target
        return _update_marks(target, timeout=value)

    return decorator
