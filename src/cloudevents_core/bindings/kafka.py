"""Kafka binding over confluent_kafka messages.

Binary mode carries attributes as ``ce_<name>`` headers with
``datacontenttype`` in the ``content-type`` header; structured mode is
recognized by a ``content-type`` naming a registered event format.  The
record key is not part of the event.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import structlog
from confluent_kafka import Message as KafkaRecord
from confluent_kafka import Producer

from cloudevents_core.binding import (
    Attribute,
    BinaryWriter,
    Encoding,
    Kind,
    Message,
    StructuredWriter,
    Transformer,
    Version,
    WriteContext,
    write,
)
from cloudevents_core.binding.spec import with_prefix
from cloudevents_core.errors import NotBinaryError, NotStructuredError
from cloudevents_core.formats import Format, lookup
from cloudevents_core.types import Value, format_value

logger = structlog.get_logger()

PREFIX = "ce_"
CONTENT_TYPE = "content-type"
VERSIONS = with_prefix(PREFIX)


def _header_name(attribute: Attribute) -> str:
    if attribute.kind is Kind.DATA_CONTENT_TYPE:
        return CONTENT_TYPE
    return PREFIX + attribute.name


def _decode_headers(
    raw: list[tuple[str, bytes | None]] | None,
) -> dict[str, str]:
    headers: dict[str, str] = {}
    for key, value in raw or []:
        if value is None:
            continue
        text = value.decode("utf-8") if isinstance(value, bytes) else str(value)
        headers[key.lower()] = text
    return headers


class KafkaMessage:
    """A consumed Kafka record read as a Message."""

    def __init__(
        self,
        value: bytes | None,
        headers: list[tuple[str, bytes | None]] | None,
        on_finish: Callable[[BaseException | None], None] | None = None,
    ) -> None:
        self.value = value or b""
        self.headers = _decode_headers(headers)
        self._on_finish = on_finish
        self.format: Format | None = None
        self.version: Version | None = None
        content_type = self.headers.get(CONTENT_TYPE, "")
        if content_type:
            self.format = lookup(content_type)
        if self.format is None:
            self.version = VERSIONS.find_version(
                lambda name: self.headers.get(name.lower())
            )

    def read_encoding(self) -> Encoding:
        if self.version is not None:
            return Encoding.BINARY
        if self.format is not None:
            return Encoding.STRUCTURED
        return Encoding.UNKNOWN

    def read_structured(self, writer: StructuredWriter) -> None:
        if self.format is None:
            raise NotStructuredError()
        writer.set_structured_event(self.format, self.value)

    def read_binary(self, writer: BinaryWriter) -> None:
        if self.version is None:
            raise NotBinaryError()
        spec_attr = self.version.attribute_from_kind(Kind.SPEC_VERSION)
        writer.set_attribute(spec_attr, self.version.spec_version)
        for name, value in self.headers.items():
            attr = self.version.attribute(name)
            if attr is not None:
                if attr.kind is not Kind.SPEC_VERSION:
                    writer.set_attribute(attr, value)
            elif name.startswith(PREFIX):
                writer.set_extension(name[len(PREFIX) :], value)
        content_type = self.headers.get(CONTENT_TYPE)
        if content_type:
            attr = self.version.attribute_from_kind(Kind.DATA_CONTENT_TYPE)
            writer.set_attribute(attr, content_type)
        if self.value:
            writer.set_data(self.value)

    def get_attribute(self, kind: Kind) -> tuple[Attribute | None, Value | None]:
        if self.version is None:
            return None, None
        attr = self.version.attribute_from_kind(kind)
        return attr, self.headers.get(_header_name(attr))

    def get_extension(self, name: str) -> Value | None:
        return self.headers.get(PREFIX + name.lower())

    def finish(self, err: BaseException | None = None) -> None:
        if self._on_finish is not None:
            self._on_finish(err)


def from_record(
    record: KafkaRecord,
    on_finish: Callable[[BaseException | None], None] | None = None,
) -> KafkaMessage:
    """Wrap a consumed confluent_kafka record.

    *on_finish* typically commits the record's offset.
    """
    return KafkaMessage(record.value(), record.headers(), on_finish=on_finish)


class KafkaWriter:
    """Structured and binary writer collecting a record's value and headers."""

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.value = b""

    def set_structured_event(self, fmt: Format, data: bytes) -> None:
        self.headers[CONTENT_TYPE] = fmt.media_type
        self.value = bytes(data)

    def start(self) -> None:
        return None

    def set_attribute(self, attribute: Attribute, value: Any) -> None:
        name = _header_name(attribute)
        if value is None:
            self.headers.pop(name, None)
            return
        self.headers[name] = format_value(value)

    def set_extension(self, name: str, value: Any) -> None:
        key = PREFIX + name
        if value is None:
            self.headers.pop(key, None)
            return
        self.headers[key] = format_value(value)

    def set_data(self, data: bytes) -> None:
        self.value = bytes(data)

    def end(self) -> None:
        return None

    def produce_kwargs(self, topic: str, key: bytes | None = None) -> dict[str, Any]:
        """Keyword arguments for ``Producer.produce``."""
        return {
            "topic": topic,
            "value": self.value,
            "key": key,
            "headers": [(k, v.encode("utf-8")) for k, v in self.headers.items()],
        }


def produce(
    producer: Producer,
    topic: str,
    ctx: WriteContext | None,
    message: Message,
    *,
    key: bytes | None = None,
    transformers: Iterable[Transformer] | None = None,
) -> Encoding:
    """Encode *message* and hand it to *producer*; returns the encoding used."""
    writer = KafkaWriter()
    encoding = write(ctx, message, writer, writer, transformers)
    producer.produce(**writer.produce_kwargs(topic, key))
    logger.debug("kafka.produced", topic=topic, encoding=str(encoding))
    return encoding
