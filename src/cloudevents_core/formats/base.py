"""Structured event format protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cloudevents_core.event import Event

JSON_MEDIA_TYPE = "application/cloudevents+json"
JSON_BATCH_MEDIA_TYPE = "application/cloudevents-batch+json"
PROTOBUF_MEDIA_TYPE = "application/cloudevents+protobuf"


@runtime_checkable
class Format(Protocol):
    """Serializes a whole event into one structured-mode body."""

    @property
    def media_type(self) -> str:
        """Media type identifying the format."""
        ...

    def marshal(self, event: Event) -> bytes:
        """Serialize *event*."""
        ...

    def unmarshal(self, data: bytes) -> Event:
        """Deserialize one event from *data*."""
        ...
