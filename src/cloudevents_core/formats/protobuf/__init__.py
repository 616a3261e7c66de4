"""Protobuf structured format."""

from cloudevents_core.formats.protobuf.format import (
    PROTOBUF,
    ProtobufFormat,
    from_proto,
    to_proto,
)
from cloudevents_core.formats.protobuf.schema import (
    CloudEvent,
    CloudEventAttributeValue,
)

__all__ = [
    "PROTOBUF",
    "CloudEvent",
    "CloudEventAttributeValue",
    "ProtobufFormat",
    "from_proto",
    "to_proto",
]
