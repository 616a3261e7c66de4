"""Encoding router: move a Message into structured or binary writers.

``direct_write`` streams a structured or binary message straight into a
writer of the same encoding without decoding the payload.  ``write`` falls
back to materializing an Event when no direct path applies (for instance
when a transformer needs event-level access) and then emits it in the
preferred encoding.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from cloudevents_core.binding.message import (
    BinaryWriter,
    Encoding,
    EventMessage,
    Message,
    StructuredWriter,
    has_metadata_reader,
    metadata_reader,
)
from cloudevents_core.binding.to_event import to_event
from cloudevents_core.binding.transformer import (
    Mode,
    Transformer,
    Transformers,
    as_transformers,
)
from cloudevents_core.config.models import BindingConfig, SDKConfig
from cloudevents_core.errors import CancelledError, UnknownEncodingError
from cloudevents_core.formats import Format

logger = structlog.get_logger()


@dataclass(slots=True)
class WriteContext:
    """Per-call settings and the cancellation signal for write operations."""

    config: BindingConfig = field(default_factory=BindingConfig)
    cancel: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def from_config(cls, config: SDKConfig) -> WriteContext:
        return cls(config=config.binding)

    @property
    def cancelled(self) -> bool:
        return self.cancel.is_set()

    def with_config(self, **overrides: object) -> WriteContext:
        """Copy sharing the same cancel signal, with some config fields replaced."""
        return WriteContext(
            config=self.config.model_copy(update=overrides), cancel=self.cancel
        )


def check_cancelled(ctx: WriteContext, message: Message) -> None:
    """Finish *message* with CancelledError and raise it if *ctx* is cancelled."""
    if not ctx.cancelled:
        return
    err = CancelledError()
    message.finish(err)
    raise err


class _TransformingStructuredWriter:
    def __init__(self, writer: StructuredWriter, transformers: Transformers) -> None:
        self._writer = writer
        self._transformers = transformers

    def set_structured_event(self, fmt: Format, data: bytes) -> None:
        data = self._transformers.transform_structured(fmt, data)
        self._writer.set_structured_event(fmt, data)


def direct_write(
    ctx: WriteContext | None,
    message: Message,
    structured_writer: StructuredWriter | None = None,
    binary_writer: BinaryWriter | None = None,
    transformers: Iterable[Transformer] | None = None,
) -> Encoding:
    """Write *message* into a writer of its own encoding, if possible.

    Returns the encoding written, or ``Encoding.UNKNOWN`` when no direct
    path applies and nothing was written.
    """
    ctx = ctx or WriteContext()
    check_cancelled(ctx, message)
    pipeline = as_transformers(transformers)
    encoding = message.read_encoding()

    if (
        structured_writer is not None
        and encoding is Encoding.STRUCTURED
        and not ctx.config.skip_direct_structured_encoding
        and pipeline.supports(Mode.STRUCTURED)
    ):
        writer = structured_writer
        if pipeline:
            writer = _TransformingStructuredWriter(structured_writer, pipeline)
        message.read_structured(writer)
        logger.debug("binding.write_direct", encoding=str(Encoding.STRUCTURED))
        return Encoding.STRUCTURED

    if (
        binary_writer is not None
        and encoding is Encoding.BINARY
        and not ctx.config.skip_direct_binary_encoding
        and pipeline.supports(Mode.BINARY)
        and (not pipeline or has_metadata_reader(message))
    ):
        binary_writer.start()
        message.read_binary(binary_writer)
        if pipeline:
            pipeline.transform(metadata_reader(message), binary_writer)
        binary_writer.end()
        logger.debug("binding.write_direct", encoding=str(Encoding.BINARY))
        return Encoding.BINARY

    return Encoding.UNKNOWN


def write(
    ctx: WriteContext | None,
    message: Message,
    structured_writer: StructuredWriter | None = None,
    binary_writer: BinaryWriter | None = None,
    transformers: Iterable[Transformer] | None = None,
) -> Encoding:
    """Write *message* to whichever writer fits, materializing if needed.

    Event messages, and messages no direct path can handle, are decoded
    with ``to_event`` and re-emitted in ``config.preferred_event_encoding``
    (falling back to the other writer when only one is given).
    """
    ctx = ctx or WriteContext()
    pipeline = as_transformers(transformers)
    encoding = message.read_encoding()

    if encoding is not Encoding.EVENT:
        written = direct_write(
            ctx, message, structured_writer, binary_writer, pipeline
        )
        if written is not Encoding.UNKNOWN:
            return written
        logger.debug("binding.to_event_fallback", encoding=str(encoding))
    else:
        check_cancelled(ctx, message)

    event = to_event(message, pipeline)
    check_cancelled(ctx, message)
    event_message = EventMessage(event, ctx.config.structured_format)

    prefer_structured = ctx.config.preferred_event_encoding == "structured"
    if structured_writer is not None and (prefer_structured or binary_writer is None):
        event_message.read_structured(structured_writer)
        return Encoding.STRUCTURED
    if binary_writer is not None:
        binary_writer.start()
        event_message.read_binary(binary_writer)
        binary_writer.end()
        return Encoding.BINARY
    raise UnknownEncodingError("no writer supplied")


def write_structured(
    ctx: WriteContext | None,
    message: Message,
    writer: StructuredWriter,
    transformers: Iterable[Transformer] | None = None,
) -> Encoding:
    return write(ctx, message, structured_writer=writer, transformers=transformers)


def write_binary(
    ctx: WriteContext | None,
    message: Message,
    writer: BinaryWriter,
    transformers: Iterable[Transformer] | None = None,
) -> Encoding:
    return write(ctx, message, binary_writer=writer, transformers=transformers)
