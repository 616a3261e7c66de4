"""Event builders and message doubles shared by the unit tests."""

from __future__ import annotations

from typing import Any

from cloudevents_core.binding import (
    Attribute,
    BinaryBufferedMessage,
    Encoding,
    Kind,
    MetadataReader,
    MetadataWriter,
    Mode,
    StructBufferedMessage,
)
from cloudevents_core.binding.message import read_binary_event
from cloudevents_core.event import Event, new_event
from cloudevents_core.formats import JSON_MEDIA_TYPE, Format
from cloudevents_core.formats import get as get_format
from cloudevents_core.types import Timestamp


def min_event(spec_version: str = "1.0") -> Event:
    """Smallest valid event: only the required attributes."""
    event = new_event(spec_version)
    event.set_id("ABC-123")
    event.set_type("com.example.test")
    event.set_source("http://example.com/source")
    return event


def full_event(spec_version: str = "1.0") -> Event:
    """Every attribute set, some extensions and a JSON payload."""
    event = min_event(spec_version)
    event.set_subject("topic")
    event.set_time(Timestamp.parse("2020-03-21T12:34:56.780Z"))
    event.set_data_schema("http://example.com/schema")
    event.set_extension("exbool", True)
    event.set_extension("exint", 42)
    event.set_extension("exstring", "exstring")
    event.set_data("application/json", {"hello": "world"})
    return event


def structured_message(
    event: Event, media_type: str = JSON_MEDIA_TYPE
) -> StructBufferedMessage:
    fmt = get_format(media_type)
    return StructBufferedMessage(fmt, fmt.marshal(event))


def binary_message(event: Event) -> BinaryBufferedMessage:
    message = BinaryBufferedMessage()
    message.start()
    read_binary_event(event, message)
    message.end()
    return message


class FinishRecorder:
    """Callable recording every ``finish`` error it receives."""

    def __init__(self) -> None:
        self.calls: list[BaseException | None] = []

    def __call__(self, err: BaseException | None = None) -> None:
        self.calls.append(err)


class RecordingMessage:
    """Wraps another message, recording finish calls; no metadata lookup."""

    def __init__(self, message: Any) -> None:
        self.message = message
        self.finished: list[BaseException | None] = []

    def read_encoding(self) -> Encoding:
        return self.message.read_encoding()

    def read_structured(self, writer: Any) -> None:
        self.message.read_structured(writer)

    def read_binary(self, writer: Any) -> None:
        self.message.read_binary(writer)

    def finish(self, err: BaseException | None = None) -> None:
        self.finished.append(err)


class UnknownMessage:
    def read_encoding(self) -> Encoding:
        return Encoding.UNKNOWN

    def read_structured(self, writer: Any) -> None:
        raise AssertionError("not structured")

    def read_binary(self, writer: Any) -> None:
        raise AssertionError("not binary")

    def finish(self, err: BaseException | None = None) -> None:
        return None


class CountingTransformer:
    """Adds extension ``counter`` (incremented) and counts its invocations."""

    def __init__(self, affinity: frozenset[Mode] | None = None) -> None:
        self.affinity = affinity or frozenset({Mode.BINARY, Mode.EVENT})
        self.calls = 0

    def transform(self, reader: MetadataReader, writer: MetadataWriter) -> None:
        self.calls += 1
        old = reader.get_extension("counter")
        writer.set_extension("counter", int(old or 0) + 1)


class UppercaseBodyTransformer:
    """Structured-capable transformer that upper-cases the whole body."""

    affinity = frozenset({Mode.STRUCTURED, Mode.BINARY, Mode.EVENT})

    def __init__(self) -> None:
        self.calls = 0

    def transform(self, reader: MetadataReader, writer: MetadataWriter) -> None:
        self.calls += 1

    def transform_structured(self, fmt: Format, data: bytes) -> bytes:
        self.calls += 1
        return data.upper()


class RecordingBinaryWriter:
    """BinaryWriter collecting calls in order."""

    def __init__(self) -> None:
        self.started = 0
        self.ended = 0
        self.attributes: list[tuple[Attribute, Any]] = []
        self.extensions: dict[str, Any] = {}
        self.data: bytes | None = None

    def start(self) -> None:
        self.started += 1

    def set_attribute(self, attribute: Attribute, value: Any) -> None:
        self.attributes.append((attribute, value))

    def set_extension(self, name: str, value: Any) -> None:
        if value is None:
            self.extensions.pop(name, None)
        else:
            self.extensions[name] = value

    def set_data(self, data: bytes) -> None:
        self.data = data

    def end(self) -> None:
        self.ended += 1

    def attribute(self, kind: Kind) -> Any:
        values = [v for a, v in self.attributes if a.kind is kind]
        return values[-1] if values else None


class RecordingStructuredWriter:
    def __init__(self) -> None:
        self.format: Format | None = None
        self.data: bytes | None = None
        self.calls = 0

    def set_structured_event(self, fmt: Format, data: bytes) -> None:
        self.calls += 1
        self.format = fmt
        self.data = data
