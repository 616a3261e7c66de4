"""Version-specific CloudEvents context attribute containers.

An event context is a tagged union over the supported spec versions.  Both
shapes share the common setters and the extension map; they differ in how
the schema attribute is named (``schemaurl`` vs ``dataschema``) and in the
v0.3-only ``datacontentencoding``.  ``as_v1``/``as_v03`` convert losslessly:
the only data that moves is ``datacontentencoding``, which travels as an
extension of the same name on v1.0.  A relative v0.3 ``schemaurl`` has no
v1.0 form (``dataschema`` must be absolute) and fails the conversion.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, ClassVar

from cloudevents_core.errors import UnknownSpecVersionError, ValidationError
from cloudevents_core.types import (
    URI,
    Timestamp,
    URIRef,
    Value,
    to_string,
    to_timestamp,
    validate,
)

SPEC_VERSION_V03 = "0.3"
SPEC_VERSION_V1 = "1.0"
SPEC_VERSIONS = (SPEC_VERSION_V03, SPEC_VERSION_V1)

BASE64 = "base64"

APPLICATION_JSON = "application/json"
TEXT_JSON = "text/json"
APPLICATION_XML = "application/xml"
TEXT_XML = "text/xml"
TEXT_PLAIN = "text/plain"
APPLICATION_PROTOBUF = "application/protobuf"

_EXTENSION_NAME = re.compile(r"^[A-Za-z0-9]+$")

_V03_ATTRIBUTES = frozenset(
    {
        "specversion",
        "id",
        "source",
        "type",
        "subject",
        "time",
        "schemaurl",
        "datacontenttype",
        "datacontentencoding",
        "data",
    }
)
_V1_ATTRIBUTES = frozenset(
    {
        "specversion",
        "id",
        "source",
        "type",
        "subject",
        "time",
        "dataschema",
        "datacontenttype",
        "data",
        "data_base64",
    }
)


def media_type(content_type: str | None) -> str:
    """Strip parameters and lowercase a content type."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_json_content_type(content_type: str | None) -> bool:
    """True for ``application/json``, ``text/json`` and the empty type."""
    return media_type(content_type) in ("", APPLICATION_JSON, TEXT_JSON)


def validate_extension_name(name: str) -> None:
    if not name:
        msg = "bad key, CloudEvents attribute names MUST NOT be empty"
        raise ValueError(msg)
    if not _EXTENSION_NAME.match(name):
        msg = (
            f"bad key {name!r}, CloudEvents attribute names MUST consist of "
            "lower-case letters ('a' to 'z'), upper-case letters ('A' to 'Z') "
            "or digits ('0' to '9') from the ASCII character set"
        )
        raise ValueError(msg)


class EventContext:
    """Behaviour shared by every spec version's context."""

    __slots__ = ()

    spec_version: ClassVar[str]
    reserved_attributes: ClassVar[frozenset[str]]

    id: str
    source: URIRef | None
    type: str
    subject: str | None
    time: Timestamp | None
    datacontenttype: str | None
    _extensions: dict[str, Value]

    # -- Setters -------------------------------------------------------------

    def set_id(self, value: str) -> None:
        value = to_string(value).strip()
        if not value:
            msg = "id is required to be a non-empty string"
            raise ValueError(msg)
        self.id = value

    def set_type(self, value: str) -> None:
        value = to_string(value).strip()
        if not value:
            msg = "type is required to be a non-empty string"
            raise ValueError(msg)
        self.type = value

    def set_source(self, value: str | URIRef | URI) -> None:
        if isinstance(value, URI):
            value = URIRef(value.value)
        if isinstance(value, URIRef):
            self.source = value
            return
        value = to_string(value).strip()
        if not value:
            msg = "source is required to be a non-empty URI-reference"
            raise ValueError(msg)
        self.source = URIRef.parse(value)

    def set_subject(self, value: str | None) -> None:
        value = to_string(value).strip() if value is not None else ""
        self.subject = value or None

    def set_time(self, value: datetime | Timestamp | str | None) -> None:
        if value is None or value == "":
            self.time = None
            return
        self.time = to_timestamp(value)

    def set_data_content_type(self, value: str | None) -> None:
        value = to_string(value).strip() if value is not None else ""
        self.datacontenttype = value or None

    def set_data_schema(self, value: str | URI | URIRef | None) -> None:
        raise NotImplementedError

    def get_data_schema(self) -> str | None:
        raise NotImplementedError

    def data_media_type(self) -> str:
        return media_type(self.datacontenttype)

    # -- Extensions ----------------------------------------------------------

    @property
    def extensions(self) -> Mapping[str, Value]:
        return MappingProxyType(self._extensions)

    def set_extension(self, name: str, value: Any) -> None:
        """Set (or with ``None`` delete) an extension attribute."""
        validate_extension_name(name)
        key = name.lower()
        if key in self.reserved_attributes:
            msg = (
                f"bad key {name!r}: CloudEvents spec attribute MUST NOT be "
                "overwritten by extension"
            )
            raise ValueError(msg)
        if value is None:
            self._extensions.pop(key, None)
            return
        self._extensions[key] = validate(value)

    def get_extension(self, name: str) -> Value:
        try:
            return self._extensions[name.lower()]
        except KeyError:
            msg = f"extension {name!r} does not exist"
            raise KeyError(msg) from None

    # -- Validation / conversion ---------------------------------------------

    def _validate_common(self) -> dict[str, Exception]:
        errors: dict[str, Exception] = {}
        if not self.type.strip():
            errors["type"] = ValueError("MUST be a non-empty string")
        if self.source is None or not self.source.value.strip():
            errors["source"] = ValueError("REQUIRED but MUST NOT be empty")
        if not self.id.strip():
            errors["id"] = ValueError("MUST be a non-empty string")
        if self.subject is not None and not self.subject.strip():
            errors["subject"] = ValueError("if present, MUST be a non-empty string")
        if self.datacontenttype is not None and not self.datacontenttype.strip():
            errors["datacontenttype"] = ValueError(
                "if present, MUST adhere to the format specified in RFC 2046"
            )
        for key in self._extensions:
            if not _EXTENSION_NAME.match(key) or key in self.reserved_attributes:
                errors[key] = ValueError("invalid extension attribute name")
        return errors

    def validate(self) -> None:
        """Raise ValidationError carrying one entry per failing attribute."""
        errors = self._validate_common()
        errors.update(self._validate_version())
        if errors:
            raise ValidationError(errors)

    def _validate_version(self) -> dict[str, Exception]:
        return {}

    def clone(self) -> EventContext:
        return copy.deepcopy(self)

    def as_v03(self) -> EventContextV03:
        raise NotImplementedError

    def as_v1(self) -> EventContextV1:
        raise NotImplementedError

    def as_version(self, version: str) -> EventContext:
        if version == SPEC_VERSION_V1:
            return self.as_v1()
        if version == SPEC_VERSION_V03:
            return self.as_v03()
        raise UnknownSpecVersionError(version)

    def attribute_lines(self) -> list[tuple[str, str]]:
        """Return ``(name, value)`` pairs for the set context attributes."""
        lines = [("specversion", self.spec_version)]
        lines.append(("type", self.type))
        lines.append(("source", str(self.source) if self.source else ""))
        if self.subject is not None:
            lines.append(("subject", self.subject))
        lines.append(("id", self.id))
        if self.time is not None:
            lines.append(("time", str(self.time)))
        schema = self.get_data_schema()
        if schema is not None:
            v03 = self.spec_version == SPEC_VERSION_V03
            name = "schemaurl" if v03 else "dataschema"
            lines.append((name, schema))
        if self.datacontenttype is not None:
            lines.append(("datacontenttype", self.datacontenttype))
        return lines


@dataclass(slots=True)
class EventContextV03(EventContext):
    """Context attributes of a CloudEvents v0.3 event."""

    spec_version: ClassVar[str] = SPEC_VERSION_V03
    reserved_attributes: ClassVar[frozenset[str]] = _V03_ATTRIBUTES

    id: str = ""
    source: URIRef | None = None
    type: str = ""
    subject: str | None = None
    time: Timestamp | None = None
    schemaurl: URIRef | None = None
    datacontenttype: str | None = None
    datacontentencoding: str | None = None
    _extensions: dict[str, Value] = field(default_factory=dict)

    def set_data_schema(self, value: str | URI | URIRef | None) -> None:
        if isinstance(value, URI | URIRef):
            self.schemaurl = URIRef(value.value)
            return
        value = to_string(value).strip() if value is not None else ""
        self.schemaurl = URIRef.parse(value) if value else None

    def get_data_schema(self) -> str | None:
        return self.schemaurl.value if self.schemaurl is not None else None

    def set_data_content_encoding(self, value: str | None) -> None:
        value = to_string(value).strip() if value is not None else ""
        if not value:
            self.datacontentencoding = None
            return
        if value.lower() != BASE64:
            msg = "invalid datacontentencoding value, only 'base64' is allowed"
            raise ValueError(msg)
        self.datacontentencoding = BASE64

    def _validate_version(self) -> dict[str, Exception]:
        errors: dict[str, Exception] = {}
        if self.schemaurl is not None and not self.schemaurl.value.strip():
            errors["schemaurl"] = ValueError("if present, MUST be a non-empty URI")
        if (
            self.datacontentencoding is not None
            and self.datacontentencoding.strip().lower() != BASE64
        ):
            errors["datacontentencoding"] = ValueError(
                "if present, MUST adhere to RFC 2045 Section 6.1; "
                "the only allowed value is 'base64'"
            )
        return errors

    def as_v03(self) -> EventContextV03:
        return copy.deepcopy(self)

    def as_v1(self) -> EventContextV1:
        extensions = dict(self._extensions)
        if self.datacontentencoding is not None:
            extensions["datacontentencoding"] = self.datacontentencoding
        return EventContextV1(
            id=self.id,
            source=self.source,
            type=self.type,
            subject=self.subject,
            time=self.time,
            dataschema=URI.parse(self.schemaurl.value) if self.schemaurl else None,
            datacontenttype=self.datacontenttype,
            _extensions=extensions,
        )


@dataclass(slots=True)
class EventContextV1(EventContext):
    """Context attributes of a CloudEvents v1.0 event."""

    spec_version: ClassVar[str] = SPEC_VERSION_V1
    reserved_attributes: ClassVar[frozenset[str]] = _V1_ATTRIBUTES

    id: str = ""
    source: URIRef | None = None
    type: str = ""
    subject: str | None = None
    time: Timestamp | None = None
    dataschema: URI | None = None
    datacontenttype: str | None = None
    _extensions: dict[str, Value] = field(default_factory=dict)

    def set_data_schema(self, value: str | URI | URIRef | None) -> None:
        if isinstance(value, URI | URIRef):
            value = value.value
        value = to_string(value).strip() if value is not None else ""
        self.dataschema = URI.parse(value) if value else None

    def get_data_schema(self) -> str | None:
        return self.dataschema.value if self.dataschema is not None else None

    def _validate_version(self) -> dict[str, Exception]:
        errors: dict[str, Exception] = {}
        if self.dataschema is not None and not self.dataschema.value.strip():
            errors["dataschema"] = ValueError("if present, MUST be a non-empty URI")
        elif self.dataschema is not None and not self.dataschema.is_absolute:
            errors["dataschema"] = ValueError("if present, MUST be an absolute URI")
        return errors

    def as_v03(self) -> EventContextV03:
        extensions = dict(self._extensions)
        encoding = extensions.pop("datacontentencoding", None)
        return EventContextV03(
            id=self.id,
            source=self.source,
            type=self.type,
            subject=self.subject,
            time=self.time,
            schemaurl=URIRef(self.dataschema.value) if self.dataschema else None,
            datacontenttype=self.datacontenttype,
            datacontentencoding=str(encoding) if encoding is not None else None,
            _extensions=extensions,
        )

    def as_v1(self) -> EventContextV1:
        return copy.deepcopy(self)


def new_context(version: str | None = None) -> EventContext:
    """Return an empty context for *version* (default v1.0)."""
    if version in (None, "", SPEC_VERSION_V1):
        return EventContextV1()
    if version == SPEC_VERSION_V03:
        return EventContextV03()
    raise UnknownSpecVersionError(version)
