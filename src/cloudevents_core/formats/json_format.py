"""JSON structured formats: single events and batches."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator

from cloudevents_core.errors import CloudEventsError, ParseError
from cloudevents_core.event import Event, json_codec
from cloudevents_core.formats.base import JSON_BATCH_MEDIA_TYPE, JSON_MEDIA_TYPE

_DECODER = json.JSONDecoder()


class JSONFormat:
    """``application/cloudevents+json``."""

    media_type = JSON_MEDIA_TYPE

    def marshal(self, event: Event) -> bytes:
        return json_codec.encode(event)

    def unmarshal(self, data: bytes) -> Event:
        return json_codec.decode(data)


def _iter_elements(text: str) -> Iterator[str]:
    """Yield the raw text of each element of a top-level JSON array."""
    skip = json_codec.skip_whitespace
    idx = skip(text, 0)
    if text[idx : idx + 1] != "[":
        msg = "cannot decode batch: expected a JSON array"
        raise ParseError(msg)
    idx = skip(text, idx + 1)
    if text[idx : idx + 1] == "]":
        idx += 1
    else:
        while True:
            try:
                _, end = _DECODER.raw_decode(text, idx)
            except json.JSONDecodeError as exc:
                msg = f"cannot decode batch: {exc}"
                raise ParseError(msg) from exc
            yield text[idx:end]
            idx = skip(text, end)
            ch = text[idx : idx + 1]
            idx += 1
            if ch == "]":
                break
            if ch != ",":
                msg = f"cannot decode batch: expected ',' or ']' at offset {idx - 1}"
                raise ParseError(msg)
            idx = skip(text, idx)
    if skip(text, idx) != len(text):
        msg = "cannot decode batch: trailing data after JSON array"
        raise ParseError(msg)


class JSONBatchFormat:
    """``application/cloudevents-batch+json``: a JSON array of events.

    Batches are not single events, so ``marshal``/``unmarshal`` refuse;
    use ``marshal_batch``/``unmarshal_batch``.
    """

    media_type = JSON_BATCH_MEDIA_TYPE

    def marshal(self, event: Event) -> bytes:
        msg = "not supported to batch a single event"
        raise CloudEventsError(msg)

    def unmarshal(self, data: bytes) -> Event:
        msg = "not supported to unmarshal a batch into a single event"
        raise CloudEventsError(msg)

    def marshal_batch(self, events: Iterable[Event]) -> bytes:
        return b"[" + b",".join(json_codec.encode(e) for e in events) + b"]"

    def unmarshal_batch(self, data: bytes | str) -> list[Event]:
        text = data.decode("utf-8") if isinstance(data, bytes | bytearray) else data
        return [json_codec.decode(raw) for raw in _iter_elements(text)]


JSON = JSONFormat()
JSON_BATCH = JSONBatchFormat()
