"""Pull-based message abstraction shared by every transport binding.

A transport wraps what it received in a ``Message``.  Consumers pull the
event out by handing the message a writer: a ``StructuredWriter`` receives
the whole serialized event, a ``BinaryWriter`` receives one callback per
attribute followed by the payload.  ``finish`` is the single terminal
acknowledgement of the message.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from cloudevents_core.binding.spec import VS, Attribute, Kind
from cloudevents_core.event.context import EventContextV03
from cloudevents_core.formats import JSON_MEDIA_TYPE, Format
from cloudevents_core.formats import get as get_format
from cloudevents_core.types import Value

if TYPE_CHECKING:
    from cloudevents_core.event import Event


class Encoding(StrEnum):
    UNKNOWN = "unknown"
    BINARY = "binary"
    STRUCTURED = "structured"
    EVENT = "event"


@runtime_checkable
class StructuredWriter(Protocol):
    """Receives a whole event serialized in *fmt*."""

    def set_structured_event(self, fmt: Format, data: bytes) -> None: ...


@runtime_checkable
class MetadataWriter(Protocol):
    """Attribute/extension sink; a ``None`` value deletes."""

    def set_attribute(self, attribute: Attribute, value: Any) -> None: ...

    def set_extension(self, name: str, value: Any) -> None: ...


@runtime_checkable
class BinaryWriter(MetadataWriter, Protocol):
    """Receives attributes one at a time, then the payload.

    ``specversion`` is always the first attribute delivered.  The caller
    brackets ``read_binary`` with ``start`` and ``end``; transformers run
    between the last attribute and ``end``.
    """

    def start(self) -> None: ...

    def set_data(self, data: bytes) -> None: ...

    def end(self) -> None: ...


@runtime_checkable
class MetadataReader(Protocol):
    """Constant-time attribute/extension lookup without a full decode."""

    def get_attribute(self, kind: Kind) -> tuple[Attribute | None, Value | None]: ...

    def get_extension(self, name: str) -> Value | None: ...


@runtime_checkable
class Message(Protocol):
    """An incoming event representation, read once."""

    def read_encoding(self) -> Encoding: ...

    def read_structured(self, writer: StructuredWriter) -> None:
        """Deliver the serialized event; raise NotStructuredError otherwise."""
        ...

    def read_binary(self, writer: BinaryWriter) -> None:
        """Deliver attributes then payload; raise NotBinaryError otherwise."""
        ...

    def finish(self, err: BaseException | None = None) -> None: ...


@runtime_checkable
class MessageWrapper(Protocol):
    """A message decorating another one."""

    @property
    def wrapped_message(self) -> Message: ...


def read_binary_event(event: Event, writer: BinaryWriter) -> None:
    """Replay *event* into *writer*: specversion, other attributes, extensions, data."""
    version = VS.version(event.spec_version)
    writer.set_attribute(
        version.attribute_from_kind(Kind.SPEC_VERSION), event.spec_version
    )
    for attr in version:
        if attr.kind is Kind.SPEC_VERSION:
            continue
        value = attr.get(event.context)
        if value is not None:
            writer.set_attribute(attr, value)
    for name, value in event.extensions.items():
        writer.set_extension(name, value)
    if isinstance(event.context, EventContextV03) and event.data_content_encoding:
        writer.set_extension("datacontentencoding", event.data_content_encoding)
    if event.data_encoded:
        writer.set_data(event.data_encoded)


class EventMessage:
    """An in-memory Event exposed as a Message (encoding ``EVENT``).

    Structured reads serialize with *structured_format* (JSON by default).
    """

    def __init__(self, event: Event, structured_format: str = JSON_MEDIA_TYPE) -> None:
        self.event = event
        self._format = structured_format

    def read_encoding(self) -> Encoding:
        return Encoding.EVENT

    def read_structured(self, writer: StructuredWriter) -> None:
        fmt = get_format(self._format)
        writer.set_structured_event(fmt, fmt.marshal(self.event))

    def read_binary(self, writer: BinaryWriter) -> None:
        read_binary_event(self.event, writer)

    def get_attribute(self, kind: Kind) -> tuple[Attribute | None, Value | None]:
        attr = VS.version(self.event.spec_version).attribute_from_kind(kind)
        return attr, attr.get(self.event.context)

    def get_extension(self, name: str) -> Value | None:
        return self.event.extension(name)

    def finish(self, err: BaseException | None = None) -> None:
        return None


class _FinishMessage:
    """Delegates to a wrapped message and runs an extra hook on finish."""

    def __init__(
        self,
        message: Message,
        fn: Callable[[BaseException | None], None] | None,
    ) -> None:
        self._message = message
        self._fn = fn

    @property
    def wrapped_message(self) -> Message:
        return self._message

    def read_encoding(self) -> Encoding:
        return self._message.read_encoding()

    def read_structured(self, writer: StructuredWriter) -> None:
        self._message.read_structured(writer)

    def read_binary(self, writer: BinaryWriter) -> None:
        self._message.read_binary(writer)

    def get_attribute(self, kind: Kind) -> tuple[Attribute | None, Value | None]:
        return metadata_reader(self._message).get_attribute(kind)

    def get_extension(self, name: str) -> Value | None:
        return metadata_reader(self._message).get_extension(name)

    def finish(self, err: BaseException | None = None) -> None:
        try:
            self._message.finish(err)
        finally:
            if self._fn is not None:
                self._fn(err)


def with_finish(
    message: Message, fn: Callable[[BaseException | None], None] | None
) -> Message:
    """Wrap *message* so *fn* runs after the original ``finish``."""
    return _FinishMessage(message, fn)


def unwrap(message: Message) -> Message:
    """Follow ``wrapped_message`` links down to the innermost message."""
    while isinstance(message, MessageWrapper):
        message = message.wrapped_message
    return message


def metadata_reader(message: Message) -> MetadataReader:
    """Return the metadata reader for *message*, looking through wrappers.

    Raises TypeError when neither the message nor anything it wraps offers
    attribute lookup.
    """
    current: Any = message
    while True:
        if isinstance(current, _FinishMessage):
            current = current.wrapped_message
            continue
        if isinstance(current, MetadataReader):
            return current
        if isinstance(current, MessageWrapper):
            current = current.wrapped_message
            continue
        msg = f"{type(message).__name__} does not support metadata lookup"
        raise TypeError(msg)


def has_metadata_reader(message: Message) -> bool:
    try:
        metadata_reader(message)
    except TypeError:
        return False
    return True
