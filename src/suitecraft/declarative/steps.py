"""Labelled steps inside test bodies."""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from suitecraft.context import StepRecord, get_test_info, step_depth_scope
from suitecraft.declarative.metadata import aggregate
from suitecraft.declarative.parameters import build_param_context
from suitecraft.templating import Formatter, NamedValue, render
from suitecraft.tracing import trace_step


logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _takes_self(fn: Callable[..., Any]) -> bool:
    params = list(inspect.signature(fn).parameters)
    return bool(params) and params[0] == "self"


def _label(
    template: str,
    args: tuple[Any, ...],
    formatters: tuple[Formatter | None, ...],
    is_method: bool,
) -> str:
    context: dict[str, NamedValue] = {}
    if is_method and args:
        instance, args = args[0], args[1:]
        context = build_param_context(instance, aggregate(type(instance)).parameters)
    return render(template, args, context, formatters)


@contextmanager
def recorded_step(title: str) -> Iterator[StepRecord]:
    """Record a step on the current test and open a span for it."""
    with step_depth_scope() as depth, trace_step(f"step.{title}", {"step.title": title, "step.depth": depth}):
        record = StepRecord(title=title, depth=depth)
        info = get_test_info()
        if info is not None:
            info.steps.append(record)
        start = time.perf_counter()
        try:
            yield record
        except BaseException as exc:
            record.error = exc
            logger.debug("Step %r failed: %s", title, exc)
            raise
        finally:
            record.duration_ms = (time.perf_counter() - start) * 1000


def step(template: str | None = None, *formatters: Formatter | None) -> Callable[[F], F]:
    """Report a function call as a named step of the running test.

    The label is rendered on every call: ``$0``, ``$1``... are the call's
    positional arguments (``self`` excluded), optionally passed through
    ``formatters``; ``$name`` reads the instance's named parameters at that
    moment. Without a template the function name is used.

    Example:
        @step("Log in as $0 on $env", None)
        async def log_in(self, user): ...
    """

    def decorator(fn: F) -> F:
        is_method = _takes_self(fn)
        label = template if template is not None else fn.__name__

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                title = _label(label, args, formatters, is_method)
                with recorded_step(title):
                    return await fn(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            title = _label(label, args, formatters, is_method)
            with recorded_step(title):
                return fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
