"""Materialize any Message into an Event."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from cloudevents_core.binding.message import Encoding, EventMessage, Message, unwrap
from cloudevents_core.binding.spec import VS, Attribute, Kind
from cloudevents_core.binding.transformer import Transformer, as_transformers
from cloudevents_core.errors import UnknownEncodingError, UnknownSpecVersionError
from cloudevents_core.event import Event, EventContextV03, new_event
from cloudevents_core.formats import Format


class EventBuilder:
    """Structured and binary writer that assembles an Event.

    Binary attributes are applied as they arrive.  The event starts as v1.0
    and is converted when the ``specversion`` attribute is delivered, which
    every binary reader sends first.
    """

    def __init__(self) -> None:
        self.event: Event | None = None

    def set_structured_event(self, fmt: Format, data: bytes) -> None:
        self.event = fmt.unmarshal(data)

    def start(self) -> None:
        self.event = new_event()

    def _current(self) -> Event:
        if self.event is None:
            self.event = new_event()
        return self.event

    def result(self, message: Message) -> Event:
        """The assembled event; raises if *message* delivered none."""
        if self.event is None:
            msg = f"{type(message).__name__} delivered no event to the builder"
            raise UnknownEncodingError(msg)
        return self.event

    def set_attribute(self, attribute: Attribute, value: Any) -> None:
        event = self._current()
        if attribute.kind is Kind.SPEC_VERSION:
            name = str(value)
            try:
                version = VS.version(name)
            except ValueError:
                raise UnknownSpecVersionError(name) from None
            event.context = version.convert(event.context)
            return
        version = VS.version(event.spec_version)
        version.attribute_from_kind(attribute.kind).set(event.context, value)

    def set_extension(self, name: str, value: Any) -> None:
        ctx = self._current().context
        if isinstance(ctx, EventContextV03) and name.lower() == "datacontentencoding":
            ctx.set_data_content_encoding(None if value is None else str(value))
            return
        ctx.set_extension(name, value)

    def set_data(self, data: bytes) -> None:
        if data:
            self._current().data_encoded = bytes(data)

    def end(self) -> None:
        return None


def to_event(
    message: Message, transformers: Iterable[Transformer] | None = None
) -> Event:
    """Decode *message* into a new Event and apply *transformers* to it.

    Event messages are cloned, structured messages are unmarshalled by their
    format and binary messages are replayed attribute by attribute.  Raises
    UnknownEncodingError for messages that are neither.
    """
    encoding = message.read_encoding()
    if encoding is Encoding.EVENT:
        inner = unwrap(message)
        if not isinstance(inner, EventMessage):
            msg = f"{type(inner).__name__} reports event encoding but holds no event"
            raise UnknownEncodingError(msg)
        event = inner.event.clone()
    elif encoding is Encoding.STRUCTURED:
        builder = EventBuilder()
        message.read_structured(builder)
        event = builder.result(message)
    elif encoding is Encoding.BINARY:
        builder = EventBuilder()
        builder.start()
        message.read_binary(builder)
        builder.end()
        event = builder.result(message)
    else:
        raise UnknownEncodingError()

    as_transformers(transformers).transform_event(event)
    return event
