"""Tracer provider setup and span helpers.

Tracing is opt-in: until `init_tracing` is called, `get_tracer` returns the
OpenTelemetry no-op tracer and spans cost next to nothing.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor

from suitecraft.tracing.exporters import StreamingFileSpanExporter


logger = logging.getLogger(__name__)

_exporter: StreamingFileSpanExporter | None = None
_provider: TracerProvider | None = None


def init_tracing(
    *,
    service_name: str = "suitecraft",
    output_path: Path | str = "traces.jsonl",
) -> None:
    """Install a tracer provider that streams spans to ``output_path``.

    Calling it again only redirects the output file.
    """
    global _exporter, _provider

    if _provider is not None:
        set_trace_output_path(output_path)
        return

    _exporter = StreamingFileSpanExporter(output_path)
    _provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    _provider.add_span_processor(SimpleSpanProcessor(_exporter))
    trace.set_tracer_provider(_provider)
    logger.debug("Tracing spans to %s", output_path)


def set_trace_output_path(output_path: Path | str) -> None:
    """Redirect the exporter to a new file, initializing tracing if needed."""
    if _exporter is None:
        init_tracing(output_path=output_path)
        return
    _exporter.output_path = Path(output_path)
    _exporter.reset()


def get_tracer(name: str = "suitecraft") -> trace.Tracer:
    """Get a tracer from our provider, or the global one when tracing is off."""
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def clear_traces() -> None:
    """Truncate the trace file."""
    if _exporter is not None:
        _exporter.reset()


@contextmanager
def trace_step(name: str, attributes: dict[str, Any] | None = None) -> Iterator[trace.Span]:
    """Open a span nested under the current one."""
    with get_tracer().start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        yield span
