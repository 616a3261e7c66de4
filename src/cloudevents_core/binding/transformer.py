"""Attribute and extension transformers applied while transcoding.

A transformer reads the source metadata and writes changes to the target.
Each one declares the modes it can run in (its *affinity*):

* ``BINARY``: applied on the direct binary path, reading the source
  message's metadata and writing into the target binary writer;
* ``EVENT``: applied to a materialized Event;
* ``STRUCTURED``: rewrites a structured body without decoding it.

The router picks the cheapest path every transformer in the pipeline
supports; a pipeline containing an event-only transformer forces
materialization.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from cloudevents_core.binding.message import MetadataReader, MetadataWriter
from cloudevents_core.binding.spec import VS, Attribute, Kind
from cloudevents_core.event import Event
from cloudevents_core.formats import Format
from cloudevents_core.types import Timestamp, Value

Updater = Callable[[Value | None], Any]


class Mode(StrEnum):
    STRUCTURED = "structured"
    BINARY = "binary"
    EVENT = "event"


METADATA_MODES = frozenset({Mode.BINARY, Mode.EVENT})


@runtime_checkable
class Transformer(Protocol):
    affinity: frozenset[Mode]

    def transform(self, reader: MetadataReader, writer: MetadataWriter) -> None: ...


@runtime_checkable
class StructuredTransformer(Protocol):
    def transform_structured(self, fmt: Format, data: bytes) -> bytes: ...


@dataclass(frozen=True, slots=True)
class TransformerFunc:
    """Adapts a plain ``fn(reader, writer)`` into a Transformer."""

    fn: Callable[[MetadataReader, MetadataWriter], None]
    affinity: frozenset[Mode] = field(default=METADATA_MODES)
    name: str = ""

    def transform(self, reader: MetadataReader, writer: MetadataWriter) -> None:
        self.fn(reader, writer)


class EventMetadata:
    """Reader and writer over an in-memory Event, used in event mode."""

    def __init__(self, event: Event) -> None:
        self.event = event

    def get_attribute(self, kind: Kind) -> tuple[Attribute | None, Value | None]:
        attr = VS.version(self.event.spec_version).attribute_from_kind(kind)
        return attr, attr.get(self.event.context)

    def get_extension(self, name: str) -> Value | None:
        return self.event.extension(name)

    def set_attribute(self, attribute: Attribute, value: Any) -> None:
        version = VS.version(self.event.spec_version)
        version.attribute_from_kind(attribute.kind).set(self.event.context, value)

    def set_extension(self, name: str, value: Any) -> None:
        self.event.context.set_extension(name, value)


class Transformers(list[Transformer]):
    """An ordered transformer pipeline."""

    def __init__(self, transformers: Iterable[Transformer] = ()) -> None:
        super().__init__(transformers)

    def supports(self, mode: Mode) -> bool:
        """True when every transformer can run in *mode* (vacuously for none)."""
        for t in self:
            if mode not in t.affinity:
                return False
            if mode is Mode.STRUCTURED and not isinstance(t, StructuredTransformer):
                return False
        return True

    def transform(self, reader: MetadataReader, writer: MetadataWriter) -> None:
        for t in self:
            t.transform(reader, writer)

    def transform_structured(self, fmt: Format, data: bytes) -> bytes:
        for t in self:
            if not isinstance(t, StructuredTransformer):
                msg = f"{type(t).__name__} cannot transform structured events"
                raise TypeError(msg)
            data = t.transform_structured(fmt, data)
        return data

    def transform_event(self, event: Event) -> None:
        if not self:
            return
        adapter = EventMetadata(event)
        self.transform(adapter, adapter)


def as_transformers(transformers: Iterable[Transformer] | None) -> Transformers:
    if isinstance(transformers, Transformers):
        return transformers
    return Transformers(transformers or ())


# -- Built-ins -----------------------------------------------------------------


def set_attribute(kind: Kind, updater: Updater) -> TransformerFunc:
    """Replace attribute *kind* with ``updater(old)``; ``old`` is None if unset."""

    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        attr, old = reader.get_attribute(kind)
        if attr is None:
            return
        writer.set_attribute(attr, updater(old))

    return TransformerFunc(fn, name=f"set_attribute({kind.name})")


def add_attribute(kind: Kind, value: Any) -> TransformerFunc:
    """Set attribute *kind* to *value* only when it is missing."""
    return _add_attribute(kind, lambda: value, f"add_attribute({kind.name})")


def _add_attribute(
    kind: Kind, factory: Callable[[], Any], name: str
) -> TransformerFunc:
    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        attr, old = reader.get_attribute(kind)
        if attr is not None and old is None:
            writer.set_attribute(attr, factory())

    return TransformerFunc(fn, name=name)


def update_attribute(kind: Kind, updater: Updater) -> TransformerFunc:
    """Rewrite attribute *kind* when present; an updater result of None deletes."""

    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        attr, old = reader.get_attribute(kind)
        if attr is None or old is None:
            return
        writer.set_attribute(attr, updater(old))

    return TransformerFunc(fn, name=f"update_attribute({kind.name})")


def delete_attribute(kind: Kind) -> TransformerFunc:
    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        attr, old = reader.get_attribute(kind)
        if attr is not None and old is not None:
            writer.set_attribute(attr, None)

    return TransformerFunc(fn, name=f"delete_attribute({kind.name})")


def set_extension(name: str, updater: Updater) -> TransformerFunc:
    """Replace extension *name* with ``updater(old)``; ``old`` is None if unset."""

    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        writer.set_extension(name, updater(reader.get_extension(name)))

    return TransformerFunc(fn, name=f"set_extension({name})")


def add_extension(name: str, value: Any) -> TransformerFunc:
    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        if reader.get_extension(name) is None:
            writer.set_extension(name, value)

    return TransformerFunc(fn, name=f"add_extension({name})")


def update_extension(name: str, updater: Updater) -> TransformerFunc:
    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        old = reader.get_extension(name)
        if old is not None:
            writer.set_extension(name, updater(old))

    return TransformerFunc(fn, name=f"update_extension({name})")


def delete_extension(name: str) -> TransformerFunc:
    def fn(reader: MetadataReader, writer: MetadataWriter) -> None:
        if reader.get_extension(name) is not None:
            writer.set_extension(name, None)

    return TransformerFunc(fn, name=f"delete_extension({name})")


def set_uuid() -> TransformerFunc:
    """Give events without an id a random UUID."""
    return _add_attribute(Kind.ID, lambda: str(uuid.uuid4()), "set_uuid")


def add_time_now() -> TransformerFunc:
    """Stamp events without a time with the current time."""
    return _add_attribute(Kind.TIME, Timestamp.now, "add_time_now")

