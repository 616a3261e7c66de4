"""Version-independent view of the CloudEvents context attributes.

Transports see attributes by name (``ce-id``, ``ce_source``); the event
model sees them as context fields.  A ``Kind`` names an attribute
independently of version, an ``Attribute`` binds a kind to its name and
accessors in one spec version, and ``Versions`` resolves names (optionally
prefixed) to attributes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from cloudevents_core.event.context import (
    SPEC_VERSION_V03,
    SPEC_VERSION_V1,
    EventContext,
    EventContextV03,
    EventContextV1,
)
from cloudevents_core.types import Value


class Kind(IntEnum):
    """Context attribute kinds; the first four are required."""

    ID = 0
    SOURCE = 1
    SPEC_VERSION = 2
    TYPE = 3
    DATA_CONTENT_TYPE = 4
    DATA_SCHEMA = 5
    SUBJECT = 6
    TIME = 7

    @property
    def is_required(self) -> bool:
        return self < Kind.DATA_CONTENT_TYPE


def _get(kind: Kind, ctx: EventContext) -> Value | None:
    if kind is Kind.ID:
        return ctx.id or None
    if kind is Kind.SOURCE:
        return ctx.source
    if kind is Kind.SPEC_VERSION:
        return ctx.spec_version
    if kind is Kind.TYPE:
        return ctx.type or None
    if kind is Kind.DATA_CONTENT_TYPE:
        return ctx.datacontenttype
    if kind is Kind.DATA_SCHEMA:
        if isinstance(ctx, EventContextV03):
            return ctx.schemaurl
        if isinstance(ctx, EventContextV1):
            return ctx.dataschema
        return None
    if kind is Kind.SUBJECT:
        return ctx.subject
    return ctx.time


_SETTERS: dict[Kind, Callable[[EventContext, Any], None]] = {
    Kind.ID: lambda c, v: c.set_id(v),
    Kind.SOURCE: lambda c, v: c.set_source(v),
    Kind.TYPE: lambda c, v: c.set_type(v),
    Kind.DATA_CONTENT_TYPE: lambda c, v: c.set_data_content_type(v),
    Kind.DATA_SCHEMA: lambda c, v: c.set_data_schema(v),
    Kind.SUBJECT: lambda c, v: c.set_subject(v),
    Kind.TIME: lambda c, v: c.set_time(v),
}


@dataclass(frozen=True, slots=True)
class Attribute:
    """A context attribute as named in one spec version."""

    name: str
    kind: Kind
    version: Version

    @property
    def prefixed_name(self) -> str:
        return self.version.prefix + self.name

    def get(self, ctx: EventContext) -> Value | None:
        return _get(self.kind, ctx)

    def set(self, ctx: EventContext, value: Any) -> None:
        """Set the attribute on *ctx*; ``None`` deletes an optional attribute."""
        if self.kind is Kind.SPEC_VERSION:
            if value is not None and str(value) != ctx.spec_version:
                msg = f"cannot change specversion of a {ctx.spec_version} context"
                raise ValueError(msg)
            return
        if value is None and self.kind.is_required:
            msg = f"attribute {self.name!r} is required and cannot be deleted"
            raise ValueError(msg)
        _SETTERS[self.kind](ctx, value)

    def __repr__(self) -> str:
        return f"Attribute({self.prefixed_name!r}, {self.kind.name}, {self.version})"


class Version:
    """Attribute table of one spec version under a name prefix."""

    def __init__(
        self,
        prefix: str,
        spec_version: str,
        names: list[tuple[str, Kind]],
    ) -> None:
        self.prefix = prefix.lower()
        self.spec_version = spec_version
        self._attributes = [Attribute(name, kind, self) for name, kind in names]
        self._by_name = {a.prefixed_name.lower(): a for a in self._attributes}
        self._by_kind = {a.kind: a for a in self._attributes}

    def __str__(self) -> str:
        return self.spec_version

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes)

    def attributes(self) -> list[Attribute]:
        return list(self._attributes)

    def attribute(self, name: str) -> Attribute | None:
        """Look up a (prefixed) attribute name, case-insensitively."""
        return self._by_name.get(name.lower())

    def attribute_from_kind(self, kind: Kind) -> Attribute:
        return self._by_kind[kind]

    def has_prefix(self, name: str) -> bool:
        return name.lower().startswith(self.prefix)

    def new_context(self) -> EventContext:
        if self.spec_version == SPEC_VERSION_V1:
            return EventContextV1()
        return EventContextV03()

    def convert(self, ctx: EventContext) -> EventContext:
        return ctx.as_version(self.spec_version)

    def set_attribute(self, ctx: EventContext, name: str, value: Any) -> None:
        """Set a standard attribute or, for other prefixed names, an extension."""
        attr = self.attribute(name)
        if attr is not None:
            attr.set(ctx, value)
            return
        lowered = name.lower()
        if lowered.startswith(self.prefix):
            ctx.set_extension(lowered[len(self.prefix) :], value)


_V1_NAMES = [
    ("id", Kind.ID),
    ("source", Kind.SOURCE),
    ("specversion", Kind.SPEC_VERSION),
    ("type", Kind.TYPE),
    ("datacontenttype", Kind.DATA_CONTENT_TYPE),
    ("dataschema", Kind.DATA_SCHEMA),
    ("subject", Kind.SUBJECT),
    ("time", Kind.TIME),
]
_V03_NAMES = [
    ("specversion", Kind.SPEC_VERSION),
    ("type", Kind.TYPE),
    ("source", Kind.SOURCE),
    ("schemaurl", Kind.DATA_SCHEMA),
    ("subject", Kind.SUBJECT),
    ("id", Kind.ID),
    ("time", Kind.TIME),
    ("datacontenttype", Kind.DATA_CONTENT_TYPE),
]


class Versions:
    """The supported versions under a common name prefix, latest first."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix.lower()
        self._all = [
            Version(prefix, SPEC_VERSION_V1, _V1_NAMES),
            Version(prefix, SPEC_VERSION_V03, _V03_NAMES),
        ]
        self._by_name = {v.spec_version: v for v in self._all}
        self.spec_version_names = [
            f"{prefix}specversion",
            f"{prefix}cloudEventsVersion",
        ]

    def versions(self) -> list[Version]:
        return list(self._all)

    def latest(self) -> Version:
        return self._all[0]

    def version(self, name: str) -> Version:
        try:
            return self._by_name[name]
        except KeyError:
            msg = f"invalid spec version {name!r}"
            raise ValueError(msg) from None

    def find_version(self, get: Callable[[str], str | None]) -> Version | None:
        """Find the version named by the first spec-version header *get* returns."""
        for name in self.spec_version_names:
            value = get(name)
            if value is not None and value in self._by_name:
                return self._by_name[value]
        return None


VS = Versions()


def with_prefix(prefix: str) -> Versions:
    return Versions(prefix)
