"""JSON encoding of CloudEvents (the ``application/cloudevents+json`` body).

Decoding is a single pass over the top-level object.  Attribute meaning
depends on ``specversion`` (``dataschema`` is an extension on v0.3,
``datacontentencoding`` is one on v1.0) and payload interpretation depends
on ``datacontenttype`` and the base64 marker, so:

* version-independent attributes are captured as they are seen;
* the few version-dependent keys wait in a small pending queue until
  ``specversion`` arrives;
* the payload is kept as raw JSON text and decoded exactly once at the end.
"""

from __future__ import annotations

import base64
import binascii
import json
from json.decoder import WHITESPACE, scanstring  # type: ignore[attr-defined]
from typing import Any

from cloudevents_core.errors import (
    ParseError,
    UnknownSpecVersionError,
    ValidationError,
)
from cloudevents_core.event.context import (
    BASE64,
    SPEC_VERSION_V03,
    SPEC_VERSION_V1,
    EventContext,
    EventContextV03,
    EventContextV1,
    is_json_content_type,
)
from cloudevents_core.event.event import Event
from cloudevents_core.types import (
    INT32_MAX,
    INT32_MIN,
    URIRef,
    format_value,
    parse_timestamp,
)

_DECODER = json.JSONDecoder()

_COMMON = frozenset({"id", "type", "source", "subject", "time"})
_VERSION_DEPENDENT = frozenset(
    {"schemaurl", "dataschema", "datacontentencoding", "data_base64"}
)


# -- Encode ------------------------------------------------------------------


def _attributes(ctx: EventContext) -> dict[str, Any]:
    out: dict[str, Any] = {"specversion": ctx.spec_version}
    out["id"] = ctx.id
    out["source"] = ctx.source.value if ctx.source is not None else ""
    out["type"] = ctx.type
    if ctx.subject is not None:
        out["subject"] = ctx.subject
    if ctx.time is not None:
        out["time"] = str(ctx.time)
    if ctx.datacontenttype is not None:
        out["datacontenttype"] = ctx.datacontenttype
    if isinstance(ctx, EventContextV03):
        if ctx.schemaurl is not None:
            out["schemaurl"] = ctx.schemaurl.value
        if ctx.datacontentencoding is not None:
            out["datacontentencoding"] = ctx.datacontentencoding
    elif isinstance(ctx, EventContextV1) and ctx.dataschema is not None:
        out["dataschema"] = ctx.dataschema.value
    for name, value in ctx.extensions.items():
        key = name.lower()
        if key in out:
            continue
        out[key] = value if isinstance(value, bool | int) else format_value(value)
    return out


def _encode_base64(event: Event) -> bool:
    if isinstance(event.context, EventContextV03):
        encoding = event.context.datacontentencoding
        return event.data_base64 or (encoding or "").lower() == BASE64
    return event.data_base64


def _check_json(text: str | None) -> str:
    try:
        json.loads(text or "")
    except ValueError as exc:
        msg = f"cannot encode event: payload is not valid JSON: {exc}"
        raise ParseError(msg) from exc
    return text or ""


def encode(event: Event) -> bytes:
    """Serialize *event* as a JSON object.

    The event must validate.  JSON payloads are spliced in verbatim; other
    payloads travel as a string, or base64 when flagged or not UTF-8.
    """
    event.validate()
    members = _attributes(event.context)
    raw_data: str | None = None
    data = event.data_encoded
    if data is not None:
        as_base64 = _encode_base64(event)
        text: str | None = None
        if not as_base64:
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                as_base64 = True
        if as_base64:
            encoded = base64.b64encode(data).decode("ascii")
            if isinstance(event.context, EventContextV03):
                members["datacontentencoding"] = BASE64
                members["data"] = encoded
            else:
                members["data_base64"] = encoded
        elif is_json_content_type(event.context.datacontenttype):
            raw_data = _check_json(text)
        else:
            members["data"] = text
    body = json.dumps(members, separators=(",", ":"))
    if raw_data is not None:
        body = f'{body[:-1]},"data":{raw_data}}}'
    return body.encode("utf-8")


# -- Decode ------------------------------------------------------------------


def skip_whitespace(text: str, idx: int) -> int:
    return WHITESPACE.match(text, idx).end()


def iter_members(text: str) -> Any:
    """Yield ``(key, value, raw)`` for each member of a top-level JSON object."""
    idx = skip_whitespace(text, 0)
    if text[idx : idx + 1] != "{":
        msg = "cannot decode event: expected a JSON object"
        raise ParseError(msg)
    idx = skip_whitespace(text, idx + 1)
    if text[idx : idx + 1] == "}":
        idx += 1
    else:
        while True:
            if text[idx : idx + 1] != '"':
                msg = f"cannot decode event: expected a name at offset {idx}"
                raise ParseError(msg)
            try:
                key, idx = scanstring(text, idx + 1)
                idx = skip_whitespace(text, idx)
                if text[idx : idx + 1] != ":":
                    msg = f"cannot decode event: expected ':' at offset {idx}"
                    raise ParseError(msg)
                start = skip_whitespace(text, idx + 1)
                value, end = _DECODER.raw_decode(text, start)
            except json.JSONDecodeError as exc:
                msg = f"cannot decode event: {exc}"
                raise ParseError(msg) from exc
            yield key, value, text[start:end]
            idx = skip_whitespace(text, end)
            ch = text[idx : idx + 1]
            idx += 1
            if ch == "}":
                break
            if ch != ",":
                msg = f"cannot decode event: expected ',' or '}}' at offset {idx - 1}"
                raise ParseError(msg)
            idx = skip_whitespace(text, idx)
    if skip_whitespace(text, idx) != len(text):
        msg = "cannot decode event: trailing data after JSON object"
        raise ParseError(msg)


def _as_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError({key: f"expected a string, got {json.dumps(value)}"})
    return value


def _extension_value(value: Any, raw: str) -> Any:
    if isinstance(value, bool | str):
        return value
    if isinstance(value, int) and INT32_MIN <= value <= INT32_MAX:
        return value
    if isinstance(value, float) and value.is_integer():
        if INT32_MIN <= value <= INT32_MAX:
            return int(value)
    return raw


class _Decoder:
    """Per-call decode state."""

    def __init__(self) -> None:
        self.context: EventContext | None = None
        self.common: dict[str, Any] = {}
        self.pending: list[tuple[str, Any, str]] = []
        self.extensions: list[tuple[str, Any, str]] = []
        self.content_type: str | None = None
        self.content_type_seen = False
        self.encoding_seen = False
        self.base64 = False
        self.payload: Any = None
        self.payload_raw = ""
        self.payload_key: str | None = None

    def feed(self, key: str, value: Any, raw: str) -> None:
        if key == "specversion":
            self._spec_version(value)
        elif key == "datacontenttype":
            if self.content_type_seen:
                raise ValidationError(
                    {"datacontenttype": "datacontenttype was already provided"}
                )
            self.content_type_seen = True
            self.content_type = _as_str(key, value)
        elif self.context is None:
            if key in _COMMON:
                self.common[key] = value
            elif key in _VERSION_DEPENDENT or key == "data":
                self._version_dependent(key, value, raw)
            else:
                self.extensions.append((key, value, raw))
        else:
            self._apply(key, value, raw)

    def _version_dependent(self, key: str, value: Any, raw: str) -> None:
        if key == "data":
            self._capture_payload(key, value, raw)
            return
        if any(k == key for k, _, _ in self.pending):
            raise ValidationError({key: f"{key} was specified twice"})
        self.pending.append((key, value, raw))

    def _spec_version(self, value: Any) -> None:
        if self.context is not None:
            raise ValidationError({"specversion": "specversion was already provided"})
        version = _as_str("specversion", value)
        if version == SPEC_VERSION_V1:
            self.context = EventContextV1()
        elif version == SPEC_VERSION_V03:
            self.context = EventContextV03()
        else:
            raise UnknownSpecVersionError(version)
        for key, val in self.common.items():
            self._apply(key, val, "")
        for key, val, raw in self.pending:
            self._apply(key, val, raw)
        for key, val, raw in self.extensions:
            self._apply(key, val, raw)
        self.common.clear()
        self.pending.clear()
        self.extensions.clear()

    def _capture_payload(self, key: str, value: Any, raw: str) -> None:
        if self.payload_key is not None:
            raise ValidationError({key: "event payload was already provided"})
        self.payload_key = key
        self.payload = value
        self.payload_raw = raw
        if key == "data_base64":
            self.base64 = True

    def _apply(self, key: str, value: Any, raw: str) -> None:
        ctx = self.context
        if ctx is None:
            raise ValidationError({"specversion": "no specversion"})
        try:
            if key == "id":
                ctx.id = _as_str(key, value)
            elif key == "type":
                ctx.type = _as_str(key, value)
            elif key == "source":
                ctx.source = URIRef.parse(_as_str(key, value))
            elif key == "subject":
                ctx.subject = _as_str(key, value) or None
            elif key == "time":
                ctx.time = parse_timestamp(_as_str(key, value))
            elif key == "data":
                self._capture_payload(key, value, raw)
            elif isinstance(ctx, EventContextV03) and key == "schemaurl":
                ctx.set_data_schema(_as_str(key, value))
            elif isinstance(ctx, EventContextV03) and key == "datacontentencoding":
                if self.encoding_seen:
                    raise ValidationError(
                        {key: "datacontentencoding was specified twice"}
                    )
                self.encoding_seen = True
                ctx.set_data_content_encoding(_as_str(key, value))
                self.base64 = True
            elif isinstance(ctx, EventContextV1) and key == "dataschema":
                ctx.set_data_schema(_as_str(key, value))
            elif isinstance(ctx, EventContextV1) and key == "data_base64":
                self._capture_payload(key, value, raw)
            elif value is not None:
                ctx.set_extension(key, _extension_value(value, raw))
        except ValidationError:
            raise
        except (TypeError, ValueError) as exc:
            raise ValidationError({key: exc}) from exc

    def finish(self) -> Event:
        if self.context is None:
            raise ValidationError({"specversion": "no specversion"})
        ctx = self.context
        if self.content_type is not None:
            ctx.datacontenttype = self.content_type or None
        event = Event(context=ctx)
        if self.payload_key is not None and self.payload is not None:
            self._consume_payload(event)
        return event

    def _consume_payload(self, event: Event) -> None:
        key = self.payload_key or "data"
        if self.base64:
            encoded = _as_str(key, self.payload)
            try:
                event.data_encoded = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValidationError({key: f"illegal base64 data: {exc}"}) from exc
            event.data_base64 = True
            return
        if is_json_content_type(event.context.datacontenttype):
            event.data_encoded = self.payload_raw.encode("utf-8")
            return
        event.data_encoded = _as_str(key, self.payload).encode("utf-8")


def decode(data: bytes | str) -> Event:
    """Parse a JSON-encoded CloudEvent, tolerating any member order."""
    if isinstance(data, bytes | bytearray):
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"cannot parse event: invalid UTF-8: {exc}"
            raise ParseError(msg) from exc
    else:
        text = data
    decoder = _Decoder()
    for key, value, raw in iter_members(text):
        decoder.feed(key, value, raw)
    return decoder.finish()


def to_dict(event: Event) -> dict[str, Any]:
    """Return the JSON object for *event* as Python data."""
    result: dict[str, Any] = json.loads(encode(event))
    return result
