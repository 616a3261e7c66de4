"""``application/cloudevents+protobuf`` structured format.

Required attributes map to the typed envelope fields.  Optional attributes
and extensions go in the ``attributes`` map, each as a typed
``CloudEventAttributeValue``.  Payloads travel as ``binary_data`` unless the
content type is ``application/protobuf``, in which case they are wrapped in
an ``Any`` whose ``type_url`` is the event's data schema.
"""

from __future__ import annotations

from typing import Any

import structlog
from google.protobuf.message import DecodeError

from cloudevents_core.errors import InvalidValueError, ParseError, ValidationError
from cloudevents_core.event import (
    APPLICATION_PROTOBUF,
    SPEC_VERSION_V03,
    Event,
    EventContextV03,
    new_event,
)
from cloudevents_core.formats.base import PROTOBUF_MEDIA_TYPE
from cloudevents_core.formats.protobuf.schema import CloudEvent
from cloudevents_core.types import URI, Timestamp, URIRef, validate

logger = structlog.get_logger()

DATACONTENTTYPE = "datacontenttype"
DATACONTENTENCODING = "datacontentencoding"
DATASCHEMA = "dataschema"
SUBJECT = "subject"
TIME = "time"


def _set_attribute(target: Any, value: Any) -> None:
    v = validate(value)
    if isinstance(v, bool):
        target.ce_boolean = v
    elif isinstance(v, int):
        target.ce_integer = v
    elif isinstance(v, str):
        target.ce_string = v
    elif isinstance(v, bytes):
        target.ce_bytes = v
    elif isinstance(v, URI):
        target.ce_uri = v.value
    elif isinstance(v, URIRef):
        target.ce_uri_ref = v.value
    elif isinstance(v, Timestamp):
        target.ce_timestamp.seconds = v.seconds
        target.ce_timestamp.nanos = v.nanos
    else:
        msg = f"unsupported attribute type: {type(v).__name__}"
        raise InvalidValueError(msg)


def _value_from(attr: Any) -> Any:
    kind = attr.WhichOneof("attr")
    if kind == "ce_boolean":
        return attr.ce_boolean
    if kind == "ce_integer":
        return attr.ce_integer
    if kind == "ce_string":
        return attr.ce_string
    if kind == "ce_bytes":
        return bytes(attr.ce_bytes)
    if kind == "ce_uri":
        return URI.parse(attr.ce_uri)
    if kind == "ce_uri_ref":
        return URIRef.parse(attr.ce_uri_ref)
    if kind == "ce_timestamp":
        return Timestamp(attr.ce_timestamp.seconds, attr.ce_timestamp.nanos)
    msg = f"unsupported attribute type: {kind}"
    raise InvalidValueError(msg)


def to_proto(event: Event) -> Any:
    """Build the ``CloudEvent`` protobuf message for *event*."""
    event.validate()
    container = CloudEvent(
        id=event.id,
        source=event.source,
        spec_version=event.spec_version,
        type=event.type,
    )
    attrs = container.attributes
    if event.data_content_type:
        attrs[DATACONTENTTYPE].ce_string = event.data_content_type
    schema = event.data_schema
    if schema:
        if event.spec_version == SPEC_VERSION_V03:
            attrs[DATASCHEMA].ce_uri_ref = schema
        else:
            attrs[DATASCHEMA].ce_uri = schema
    if event.subject:
        attrs[SUBJECT].ce_string = event.subject
    if event.time is not None:
        _set_attribute(attrs[TIME], event.time)
    ctx = event.context
    if isinstance(ctx, EventContextV03) and ctx.datacontentencoding:
        attrs[DATACONTENTENCODING].ce_string = ctx.datacontentencoding
    for name, value in event.extensions.items():
        _set_attribute(attrs[name], value)

    if event.data_encoded is not None:
        if event.data_media_type() == APPLICATION_PROTOBUF:
            container.proto_data.type_url = schema or ""
            container.proto_data.value = event.data_encoded
        else:
            container.binary_data = event.data_encoded
    return container


def from_proto(container: Any) -> Event:
    """Build an Event from a ``CloudEvent`` protobuf message."""
    event = new_event(container.spec_version)
    event.set_id(container.id)
    event.set_source(container.source)
    event.set_type(container.type)
    for name, attr in container.attributes.items():
        try:
            value = _value_from(attr)
        except (TypeError, ValueError) as exc:
            event.field_errors[name] = exc
            continue
        if name == DATACONTENTTYPE:
            event.set_data_content_type(str(value))
        elif name == DATASCHEMA:
            schema = value if isinstance(value, URI | URIRef) else str(value)
            event.set_data_schema(schema)
        elif name == SUBJECT:
            event.set_subject(str(value))
        elif name == TIME:
            event.set_time(value)
        elif name == DATACONTENTENCODING and event.spec_version == SPEC_VERSION_V03:
            event.set_data_content_encoding(str(value))
        else:
            event.set_extension(name, value)

    kind = container.WhichOneof("data")
    if kind == "binary_data":
        event.data_encoded = bytes(container.binary_data)
    elif kind == "text_data":
        event.set_data(event.data_content_type, container.text_data.encode("utf-8"))
    elif kind == "proto_data":
        event.set_data_content_type(APPLICATION_PROTOBUF)
        event.data_encoded = bytes(container.proto_data.value)
    elif kind is not None:
        logger.warning("protobuf.unknown_data_variant", variant=kind)

    if event.field_errors:
        raise ValidationError(event.field_errors)
    return event


class ProtobufFormat:
    """``application/cloudevents+protobuf``."""

    media_type = PROTOBUF_MEDIA_TYPE

    def marshal(self, event: Event) -> bytes:
        return bytes(to_proto(event).SerializeToString())

    def unmarshal(self, data: bytes) -> Event:
        container = CloudEvent()
        try:
            container.ParseFromString(data)
        except DecodeError as exc:
            msg = f"cannot decode protobuf event: {exc}"
            raise ParseError(msg) from exc
        return from_proto(container)


PROTOBUF = ProtobufFormat()
