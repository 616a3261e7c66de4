"""Distributed tracing extension (W3C Trace Context).

Events carry ``traceparent`` and ``tracestate`` extensions.  Both are read
and written with OpenTelemetry's trace-context propagator, so the span
contexts handed in and out are ``opentelemetry.trace.SpanContext`` values.
"""

from __future__ import annotations

from dataclasses import dataclass

from opentelemetry import trace
from opentelemetry.trace import NonRecordingSpan, SpanContext
from opentelemetry.trace.propagation.tracecontext import (
    TraceContextTextMapPropagator,
)

from cloudevents_core.binding.message import MetadataReader, MetadataWriter
from cloudevents_core.binding.transformer import TransformerFunc
from cloudevents_core.errors import ParseError
from cloudevents_core.event import Event
from cloudevents_core.types import format_value, to_string

TRACEPARENT = "traceparent"
TRACESTATE = "tracestate"

_PROPAGATOR = TraceContextTextMapPropagator()


@dataclass(slots=True)
class DistributedTracingExtension:
    """The ``traceparent``/``tracestate`` pair of an event."""

    traceparent: str = ""
    tracestate: str = ""

    def is_empty(self) -> bool:
        return not self.traceparent

    def add_tracing_attributes(self, event: Event) -> None:
        """Copy the pair onto *event*; an empty tracestate is left out."""
        if self.is_empty():
            return
        event.set_extension(TRACEPARENT, self.traceparent)
        if self.tracestate:
            event.set_extension(TRACESTATE, self.tracestate)

    def read_transformer(self) -> TransformerFunc:
        """Transformer that captures the message's tracing extensions into self."""

        def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
            tp = reader.get_extension(TRACEPARENT)
            if tp is not None:
                self.traceparent = format_value(tp)
            ts = reader.get_extension(TRACESTATE)
            if ts is not None:
                self.tracestate = format_value(ts)

        return TransformerFunc(fn, name="tracing.read")

    def write_transformer(self) -> TransformerFunc:
        """Transformer that stamps self's tracing extensions onto the target."""

        def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
            if self.is_empty():
                return
            writer.set_extension(TRACEPARENT, self.traceparent)
            if self.tracestate:
                writer.set_extension(TRACESTATE, self.tracestate)

        return TransformerFunc(fn, name="tracing.write")

    def to_span_context(self) -> SpanContext:
        """Parse the pair into a remote SpanContext.

        Raises ParseError when ``traceparent`` is not in W3C trace-context
        form or names the all-zero trace or span.
        """
        carrier = {TRACEPARENT: self.traceparent}
        if self.tracestate:
            carrier[TRACESTATE] = self.tracestate
        context = _PROPAGATOR.extract(carrier)
        span_context = trace.get_current_span(context).get_span_context()
        if not span_context.is_valid:
            msg = f"invalid traceparent: {self.traceparent!r}"
            raise ParseError(msg)
        return span_context

    @classmethod
    def from_span_context(
        cls, span_context: SpanContext
    ) -> DistributedTracingExtension:
        """Render *span_context*; an invalid one gives an empty extension."""
        if not span_context.is_valid:
            return cls()
        carrier: dict[str, str] = {}
        context = trace.set_span_in_context(NonRecordingSpan(span_context))
        _PROPAGATOR.inject(carrier, context)
        return cls(
            traceparent=carrier.get(TRACEPARENT, ""),
            tracestate=carrier.get(TRACESTATE, ""),
        )


def from_event(event: Event) -> DistributedTracingExtension | None:
    """Return the tracing extension carried by *event*, or None."""
    tp = event.extension(TRACEPARENT)
    if tp is None:
        return None
    ts = event.extension(TRACESTATE)
    return DistributedTracingExtension(
        traceparent=to_string(tp),
        tracestate=to_string(ts) if ts is not None else "",
    )


def add_tracing_attributes(
    event: Event, span_context: SpanContext | None = None
) -> None:
    """Stamp *span_context* onto *event* as traceparent/tracestate extensions.

    Defaults to the current span; nothing is added without a valid one.
    """
    if span_context is None:
        span_context = trace.get_current_span().get_span_context()
    ext = DistributedTracingExtension.from_span_context(span_context)
    ext.add_tracing_attributes(event)
