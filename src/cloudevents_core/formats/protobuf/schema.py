"""CloudEvents protobuf schema, built at import time.

Equivalent to::

    syntax = "proto3";
    package io.cloudevents.v1;

    message CloudEvent {
      string id = 1;
      string source = 2;
      string spec_version = 3;
      string type = 4;
      map<string, CloudEventAttributeValue> attributes = 5;
      oneof data {
        bytes binary_data = 6;
        string text_data = 7;
        google.protobuf.Any proto_data = 8;
      }
      message CloudEventAttributeValue {
        oneof attr {
          bool ce_boolean = 1;
          int32 ce_integer = 2;
          string ce_string = 3;
          bytes ce_bytes = 4;
          string ce_uri = 5;
          string ce_uri_ref = 6;
          google.protobuf.Timestamp ce_timestamp = 7;
        }
      }
    }

The descriptors are assembled with ``descriptor_pb2`` and registered in the
default pool, so no generated ``_pb2`` module has to be shipped.
"""

from __future__ import annotations

from typing import Any

from google.protobuf import (
    any_pb2,  # noqa: F401  registers google/protobuf/any.proto
    descriptor_pb2,
    descriptor_pool,
    message_factory,
    timestamp_pb2,  # noqa: F401  registers google/protobuf/timestamp.proto
)

PACKAGE = "io.cloudevents.v1"
FILE_NAME = "io/cloudevents/v1/cloudevents.proto"

_F = descriptor_pb2.FieldDescriptorProto


def _field(
    msg: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    ftype: int,
    *,
    type_name: str | None = None,
    label: int = _F.LABEL_OPTIONAL,
    oneof_index: int | None = None,
) -> None:
    fd = msg.field.add(name=name, number=number, type=ftype, label=label)
    if type_name is not None:
        fd.type_name = type_name
    if oneof_index is not None:
        fd.oneof_index = oneof_index


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name=FILE_NAME,
        package=PACKAGE,
        syntax="proto3",
    )
    fdp.dependency.extend(
        ["google/protobuf/any.proto", "google/protobuf/timestamp.proto"]
    )

    event = fdp.message_type.add(name="CloudEvent")
    _field(event, "id", 1, _F.TYPE_STRING)
    _field(event, "source", 2, _F.TYPE_STRING)
    _field(event, "spec_version", 3, _F.TYPE_STRING)
    _field(event, "type", 4, _F.TYPE_STRING)
    _field(
        event,
        "attributes",
        5,
        _F.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.CloudEvent.AttributesEntry",
        label=_F.LABEL_REPEATED,
    )
    event.oneof_decl.add(name="data")
    _field(event, "binary_data", 6, _F.TYPE_BYTES, oneof_index=0)
    _field(event, "text_data", 7, _F.TYPE_STRING, oneof_index=0)
    _field(
        event,
        "proto_data",
        8,
        _F.TYPE_MESSAGE,
        type_name=".google.protobuf.Any",
        oneof_index=0,
    )

    value = event.nested_type.add(name="CloudEventAttributeValue")
    value.oneof_decl.add(name="attr")
    _field(value, "ce_boolean", 1, _F.TYPE_BOOL, oneof_index=0)
    _field(value, "ce_integer", 2, _F.TYPE_INT32, oneof_index=0)
    _field(value, "ce_string", 3, _F.TYPE_STRING, oneof_index=0)
    _field(value, "ce_bytes", 4, _F.TYPE_BYTES, oneof_index=0)
    _field(value, "ce_uri", 5, _F.TYPE_STRING, oneof_index=0)
    _field(value, "ce_uri_ref", 6, _F.TYPE_STRING, oneof_index=0)
    _field(
        value,
        "ce_timestamp",
        7,
        _F.TYPE_MESSAGE,
        type_name=".google.protobuf.Timestamp",
        oneof_index=0,
    )

    entry = event.nested_type.add(name="AttributesEntry")
    entry.options.map_entry = True
    _field(entry, "key", 1, _F.TYPE_STRING)
    _field(
        entry,
        "value",
        2,
        _F.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.CloudEvent.CloudEventAttributeValue",
    )
    return fdp


def _message_class(full_name: str) -> Any:
    pool = descriptor_pool.Default()
    try:
        descriptor = pool.FindMessageTypeByName(full_name)
    except KeyError:
        pool.AddSerializedFile(build_file_descriptor().SerializeToString())
        descriptor = pool.FindMessageTypeByName(full_name)
    return message_factory.GetMessageClass(descriptor)


CloudEvent = _message_class(f"{PACKAGE}.CloudEvent")
CloudEventAttributeValue = _message_class(
    f"{PACKAGE}.CloudEvent.CloudEventAttributeValue"
)
