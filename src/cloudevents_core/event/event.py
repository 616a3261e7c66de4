"""The in-memory CloudEvent: context attributes plus serialized payload."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from cloudevents_core.errors import ValidationError
from cloudevents_core.event import datacodec
from cloudevents_core.event.context import (
    BASE64,
    SPEC_VERSION_V03,
    EventContext,
    EventContextV03,
    EventContextV1,
    is_json_content_type,
    new_context,
)
from cloudevents_core.types import URI, Timestamp, URIRef, Value, format_value

T = TypeVar("T")


@dataclass(slots=True)
class Event:
    """A CloudEvent.

    ``data_encoded`` holds the payload already serialized for
    ``datacontenttype``; ``data_base64`` asks the JSON format to carry it
    base64-encoded.  Setters never raise: failures are recorded in
    ``field_errors`` and reported together by ``validate``.
    """

    context: EventContext = field(default_factory=EventContextV1)
    data_encoded: bytes | None = None
    data_base64: bool = False
    field_errors: dict[str, Exception] = field(
        default_factory=dict, compare=False, repr=False
    )

    # -- Context accessors ---------------------------------------------------

    @property
    def spec_version(self) -> str:
        return self.context.spec_version

    @property
    def id(self) -> str:
        return self.context.id

    @property
    def type(self) -> str:
        return self.context.type

    @property
    def source(self) -> str:
        return self.context.source.value if self.context.source else ""

    @property
    def subject(self) -> str | None:
        return self.context.subject

    @property
    def time(self) -> Timestamp | None:
        return self.context.time

    @property
    def data_schema(self) -> str | None:
        return self.context.get_data_schema()

    @property
    def data_content_type(self) -> str | None:
        return self.context.datacontenttype

    @property
    def data_content_encoding(self) -> str | None:
        if isinstance(self.context, EventContextV03):
            return self.context.datacontentencoding
        value = self.context.extensions.get("datacontentencoding")
        return str(value) if value is not None else None

    @property
    def extensions(self) -> Mapping[str, Value]:
        return self.context.extensions

    @property
    def data(self) -> bytes | None:
        return self.data_encoded

    def data_media_type(self) -> str:
        return self.context.data_media_type()

    def extension(self, name: str) -> Value | None:
        return self.context.extensions.get(name.lower())

    def extension_as(self, name: str, convert: Callable[[Any], T]) -> T:
        """Return extension *name* coerced with one of the ``types.to_*`` helpers."""
        return convert(self.context.get_extension(name))

    # -- Setters -------------------------------------------------------------

    def _record(self, name: str, fn: Callable[..., None], *args: Any) -> None:
        try:
            fn(*args)
        except (TypeError, ValueError) as exc:
            self.field_errors[name] = exc
        else:
            self.field_errors.pop(name, None)

    def set_spec_version(self, version: str) -> None:
        self._record("specversion", self._convert, version)

    def _convert(self, version: str) -> None:
        self.context = self.context.as_version(version)

    def set_id(self, value: str) -> None:
        self._record("id", self.context.set_id, value)

    def set_type(self, value: str) -> None:
        self._record("type", self.context.set_type, value)

    def set_source(self, value: str | URIRef | URI) -> None:
        self._record("source", self.context.set_source, value)

    def set_subject(self, value: str | None) -> None:
        self._record("subject", self.context.set_subject, value)

    def set_time(self, value: datetime | Timestamp | str | None) -> None:
        self._record("time", self.context.set_time, value)

    def set_data_schema(self, value: str | URI | URIRef | None) -> None:
        name = "schemaurl" if self.spec_version == SPEC_VERSION_V03 else "dataschema"
        self._record(name, self.context.set_data_schema, value)

    def set_data_content_type(self, value: str | None) -> None:
        self._record("datacontenttype", self.context.set_data_content_type, value)

    def set_data_content_encoding(self, value: str | None) -> None:
        """Set the v0.3 ``datacontentencoding``; an extension on v1.0."""
        if isinstance(self.context, EventContextV03):
            self._record(
                "datacontentencoding",
                self.context.set_data_content_encoding,
                value,
            )
        else:
            self.set_extension("datacontentencoding", value)

    def set_extension(self, name: str, value: Any) -> None:
        self._record(f"extension:{name}", self.context.set_extension, name, value)

    # -- Data ----------------------------------------------------------------

    def set_data(self, content_type: str | None, value: Any) -> None:
        """Set the payload, encoding non-bytes values through the codec registry.

        Raises CodecError or UnsupportedContentTypeError when *value* cannot
        be serialized for the content type.
        """
        if content_type:
            self.set_data_content_type(content_type)
        if value is None:
            self.data_encoded = None
            self.data_base64 = False
            return
        ct = self.context.datacontenttype or ""
        if isinstance(value, bytes | bytearray | memoryview):
            self.data_encoded = bytes(value)
        else:
            self.data_encoded = datacodec.encode(ct, value)
        self.data_base64 = not is_json_content_type(ct)
        if isinstance(self.context, EventContextV03):
            self.context.datacontentencoding = BASE64 if self.data_base64 else None

    def data_as(self, out: Any = None) -> Any:
        """Decode the payload for its content type; ``None`` when there is none."""
        if not self.data_encoded:
            return None
        return datacodec.decode(self.data_media_type(), self.data_encoded, out)

    # -- Lifecycle -----------------------------------------------------------

    def validate(self) -> None:
        """Raise ValidationError with every setter and context failure."""
        errors: dict[str, Exception] = {}
        try:
            self.context.validate()
        except ValidationError as exc:
            errors.update(exc.field_errors)
        errors.update(self.field_errors)
        if errors:
            raise ValidationError(errors)

    def clone(self) -> Event:
        return Event(
            context=self.context.clone(),
            data_encoded=(
                bytes(bytearray(self.data_encoded))
                if self.data_encoded is not None
                else None
            ),
            data_base64=self.data_base64,
            field_errors=dict(self.field_errors),
        )

    def __str__(self) -> str:
        lines = ["Context Attributes,"]
        lines.extend(
            f"  {name}: {value}" for name, value in self.context.attribute_lines()
        )
        encoding = self.data_content_encoding
        if isinstance(self.context, EventContextV03) and encoding:
            lines.append(f"  datacontentencoding: {encoding}")
        if self.extensions:
            lines.append("Extensions,")
            lines.extend(
                f"  {name}: {format_value(value)}"
                for name, value in sorted(self.extensions.items())
            )
        if self.data_encoded is not None:
            lines.append("Data (binary)," if self.data_base64 else "Data,")
            lines.append(f"  {self._render_data()}")
        return "\n".join(lines) + "\n"

    def _render_data(self) -> str:
        if self.data_base64:
            return format_value(self.data_encoded)
        text = (self.data_encoded or b"").decode("utf-8", errors="replace")
        if is_json_content_type(self.data_content_type):
            try:
                return json.dumps(json.loads(text), indent=2).replace("\n", "\n  ")
            except ValueError:
                return text
        return text


def new_event(spec_version: str | None = None) -> Event:
    """Create an empty event; v1.0 unless *spec_version* says otherwise."""
    return Event(context=new_context(spec_version))
