"""Replayable in-memory copies of messages, and the acks-before-finish barrier."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

import structlog

from cloudevents_core.binding.message import (
    BinaryWriter,
    Encoding,
    EventMessage,
    Message,
    StructuredWriter,
    with_finish,
)
from cloudevents_core.binding.spec import Attribute, Kind, Version
from cloudevents_core.binding.to_event import to_event
from cloudevents_core.binding.transformer import Transformer, as_transformers
from cloudevents_core.binding.write import direct_write
from cloudevents_core.errors import (
    NotBinaryError,
    NotStructuredError,
    UnknownEncodingError,
)
from cloudevents_core.formats import Format
from cloudevents_core.types import Value, clone_value

logger = structlog.get_logger()


class StructBufferedMessage:
    """A structured message held in memory; readable any number of times."""

    def __init__(self, fmt: Format | None = None, data: bytes = b"") -> None:
        self.format = fmt
        self.data = data

    def set_structured_event(self, fmt: Format, data: bytes) -> None:
        self.format = fmt
        self.data = bytes(data)

    def read_encoding(self) -> Encoding:
        return Encoding.STRUCTURED if self.format is not None else Encoding.UNKNOWN

    def read_structured(self, writer: StructuredWriter) -> None:
        if self.format is None:
            raise NotStructuredError()
        writer.set_structured_event(self.format, self.data)

    def read_binary(self, writer: BinaryWriter) -> None:
        raise NotBinaryError()

    def finish(self, err: BaseException | None = None) -> None:
        return None


class BinaryBufferedMessage:
    """A binary message captured attribute by attribute.

    Attributes replay in arrival order with ``specversion`` first; a
    ``None`` value deletes.  Lookups by kind are answered from the captured
    attributes, so transformers can run against the copy.
    """

    def __init__(self) -> None:
        self.version: Version | None = None
        self._attributes: dict[Kind, tuple[Attribute, Value]] = {}
        self._extensions: dict[str, Value] = {}
        self.body: bytes | None = None

    # -- BinaryWriter ----------------------------------------------------------

    def start(self) -> None:
        self.version = None
        self._attributes.clear()
        self._extensions.clear()
        self.body = None

    def set_attribute(self, attribute: Attribute, value: Any) -> None:
        if value is None:
            self._attributes.pop(attribute.kind, None)
            return
        if attribute.kind is Kind.SPEC_VERSION:
            self.version = attribute.version
            rest = {
                k: v
                for k, v in self._attributes.items()
                if k is not Kind.SPEC_VERSION
            }
            self._attributes = {Kind.SPEC_VERSION: (attribute, value), **rest}
            return
        self._attributes[attribute.kind] = (attribute, value)

    def set_extension(self, name: str, value: Any) -> None:
        if value is None:
            self._extensions.pop(name, None)
        else:
            self._extensions[name] = value

    def set_data(self, data: bytes) -> None:
        self.body = bytes(data)

    def end(self) -> None:
        return None

    # -- Message ---------------------------------------------------------------

    def read_encoding(self) -> Encoding:
        return Encoding.BINARY

    def read_structured(self, writer: StructuredWriter) -> None:
        raise NotStructuredError()

    def read_binary(self, writer: BinaryWriter) -> None:
        for attribute, value in self._attributes.values():
            writer.set_attribute(attribute, clone_value(value))
        for name, value in self._extensions.items():
            writer.set_extension(name, clone_value(value))
        if self.body:
            writer.set_data(self.body)

    def get_attribute(self, kind: Kind) -> tuple[Attribute | None, Value | None]:
        if kind in self._attributes:
            return self._attributes[kind]
        if self.version is not None:
            return self.version.attribute_from_kind(kind), None
        return None, None

    def get_extension(self, name: str) -> Value | None:
        return self._extensions.get(name)

    def finish(self, err: BaseException | None = None) -> None:
        return None


def copy_message(
    message: Message, transformers: Iterable[Transformer] | None = None
) -> Message:
    """Return a replayable in-memory copy of *message* in its own encoding.

    The copy's ``finish`` does nothing; the original is left unfinished.
    Raises UnknownEncodingError for messages of unknown encoding.
    """
    pipeline = as_transformers(transformers)
    encoding = message.read_encoding()
    if encoding is Encoding.UNKNOWN:
        raise UnknownEncodingError()
    if encoding is not Encoding.EVENT:
        structured = StructBufferedMessage()
        binary = BinaryBufferedMessage()
        written = direct_write(None, message, structured, binary, pipeline)
        if written is Encoding.STRUCTURED:
            return structured
        if written is Encoding.BINARY:
            return binary
    return EventMessage(to_event(message, pipeline))


def buffer_message(
    message: Message, transformers: Iterable[Transformer] | None = None
) -> Message:
    """Like ``copy_message``, but finishing the copy finishes *message*."""
    return with_finish(copy_message(message, transformers), message.finish)


class _AcksBeforeFinishMessage:
    """Forwards ``finish`` to the wrapped message on the Nth call only."""

    def __init__(self, message: Message, requested_acks: int) -> None:
        self._message = message
        self._remaining = requested_acks
        self._err: BaseException | None = None
        self._lock = threading.Lock()

    @property
    def wrapped_message(self) -> Message:
        return self._message

    def read_encoding(self) -> Encoding:
        return self._message.read_encoding()

    def read_structured(self, writer: StructuredWriter) -> None:
        self._message.read_structured(writer)

    def read_binary(self, writer: BinaryWriter) -> None:
        self._message.read_binary(writer)

    def finish(self, err: BaseException | None = None) -> None:
        with self._lock:
            if err is not None and self._err is None:
                self._err = err
            self._remaining -= 1
            if self._remaining > 0:
                return
            if self._remaining < 0:
                logger.warning("buffering.finish_after_forward", extra=-self._remaining)
                return
            self._message.finish(self._err)
            logger.debug("buffering.finish_forwarded", error=repr(self._err))


def acks_before_finish(message: Message, requested_acks: int) -> Message:
    """Wrap *message* so its ``finish`` runs after *requested_acks* finishes.

    Safe to finish from many threads.  The first non-None error passed by
    any caller is forwarded on the final call.
    """
    if requested_acks < 1:
        msg = f"requested_acks must be at least 1, got {requested_acks}"
        raise ValueError(msg)
    return _AcksBeforeFinishMessage(message, requested_acks)
