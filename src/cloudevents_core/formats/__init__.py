"""Structured event formats and their media-type registry."""

from cloudevents_core.formats.base import (
    JSON_BATCH_MEDIA_TYPE,
    JSON_MEDIA_TYPE,
    PROTOBUF_MEDIA_TYPE,
    Format,
)
from cloudevents_core.formats.registry import (
    add,
    get,
    lookup,
    marshal,
    media_types,
    register_builtin_formats,
    unmarshal,
)

__all__ = [
    "JSON_BATCH_MEDIA_TYPE",
    "JSON_MEDIA_TYPE",
    "PROTOBUF_MEDIA_TYPE",
    "Format",
    "add",
    "get",
    "lookup",
    "marshal",
    "media_types",
    "register_builtin_formats",
    "unmarshal",
]
