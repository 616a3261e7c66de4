"""CloudEvent model: contexts, the Event itself and its JSON encoding."""

from cloudevents_core.event.context import (
    APPLICATION_JSON,
    APPLICATION_PROTOBUF,
    APPLICATION_XML,
    BASE64,
    SPEC_VERSION_V03,
    SPEC_VERSION_V1,
    TEXT_JSON,
    TEXT_PLAIN,
    TEXT_XML,
    EventContext,
    EventContextV03,
    EventContextV1,
    is_json_content_type,
    media_type,
    new_context,
)
from cloudevents_core.event.event import Event, new_event

__all__ = [
    "APPLICATION_JSON",
    "APPLICATION_PROTOBUF",
    "APPLICATION_XML",
    "BASE64",
    "SPEC_VERSION_V03",
    "SPEC_VERSION_V1",
    "TEXT_JSON",
    "TEXT_PLAIN",
    "TEXT_XML",
    "Event",
    "EventContext",
    "EventContextV03",
    "EventContextV1",
    "is_json_content_type",
    "media_type",
    "new_context",
    "new_event",
]
