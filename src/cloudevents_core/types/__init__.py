"""CloudEvents attribute value types."""

from cloudevents_core.types.timestamp import Timestamp, parse_timestamp
from cloudevents_core.types.uri import URI, URIRef
from cloudevents_core.types.values import (
    INT32_MAX,
    INT32_MIN,
    TypeName,
    Value,
    clone_value,
    format_value,
    to_binary,
    to_bool,
    to_integer,
    to_string,
    to_time,
    to_timestamp,
    to_uri,
    to_uri_ref,
    type_name,
    validate,
)

__all__ = [
    "INT32_MAX",
    "INT32_MIN",
    "URI",
    "Timestamp",
    "TypeName",
    "URIRef",
    "Value",
    "clone_value",
    "format_value",
    "parse_timestamp",
    "to_binary",
    "to_bool",
    "to_integer",
    "to_string",
    "to_time",
    "to_timestamp",
    "to_uri",
    "to_uri_ref",
    "type_name",
    "validate",
]
