"""Unit tests for the structured format registry and the JSON formats."""

from __future__ import annotations

import json

import pytest

from cloudevents_core import formats
from cloudevents_core.errors import CloudEventsError, ParseError, UnknownFormatError
from cloudevents_core.event import Event
from cloudevents_core.formats import (
    JSON_BATCH_MEDIA_TYPE,
    JSON_MEDIA_TYPE,
    PROTOBUF_MEDIA_TYPE,
    Format,
)
from cloudevents_core.formats.json_format import JSON, JSON_BATCH
from tests.helpers import full_event, min_event


class EchoFormat:
    media_type = "application/x-echo"

    def marshal(self, event: Event) -> bytes:
        return event.id.encode()

    def unmarshal(self, data: bytes) -> Event:
        event = min_event()
        event.set_id(data.decode())
        return event


class TestRegistry:
    def test_builtins(self):
        assert formats.media_types() == sorted(
            [JSON_MEDIA_TYPE, JSON_BATCH_MEDIA_TYPE, PROTOBUF_MEDIA_TYPE]
        )

    def test_lookup_ignores_case_and_parameters(self):
        fmt = formats.lookup("Application/CloudEvents+JSON; charset=UTF-8")
        assert fmt is JSON

    def test_lookup_unknown_is_none(self):
        assert formats.lookup("application/json") is None

    def test_get_unknown_raises(self):
        with pytest.raises(UnknownFormatError, match="application/x-nope"):
            formats.get("application/x-nope")

    def test_builtins_satisfy_protocol(self):
        for media_type in formats.media_types():
            assert isinstance(formats.get(media_type), Format)

    def test_add_custom_format(self, clean_registries):
        formats.add(EchoFormat())
        assert formats.marshal("application/x-echo", min_event()) == b"ABC-123"
        assert formats.unmarshal("application/x-echo", b"zz").id == "zz"
        assert JSON_MEDIA_TYPE in formats.media_types()

    def test_marshal_unmarshal_by_media_type(self):
        event = full_event()
        data = formats.marshal(JSON_MEDIA_TYPE, event)
        assert formats.unmarshal(JSON_MEDIA_TYPE, data) == Event(
            context=event.context, data_encoded=b'{"hello":"world"}'
        )


class TestJSONFormat:
    def test_media_type(self):
        assert JSON.media_type == JSON_MEDIA_TYPE

    def test_round_trip(self):
        event = full_event()
        assert JSON.unmarshal(JSON.marshal(event)).context == event.context


class TestJSONBatchFormat:
    def test_single_event_operations_refused(self):
        with pytest.raises(CloudEventsError, match="not supported"):
            JSON_BATCH.marshal(min_event())
        with pytest.raises(CloudEventsError, match="not supported"):
            JSON_BATCH.unmarshal(b"[]")

    def test_marshal_batch(self):
        events = [min_event(), full_event("0.3")]
        array = json.loads(JSON_BATCH.marshal_batch(events))
        assert [e["specversion"] for e in array] == ["1.0", "0.3"]

    def test_unmarshal_batch(self):
        events = [full_event(), full_event("0.3")]
        decoded = JSON_BATCH.unmarshal_batch(JSON_BATCH.marshal_batch(events))
        assert [e.context for e in decoded] == [e.context for e in events]

    def test_empty_batch(self):
        assert JSON_BATCH.unmarshal_batch(b" [ ] ") == []
        assert JSON_BATCH.marshal_batch([]) == b"[]"

    @pytest.mark.parametrize("text", ["{}", "[{}", "[1] x", "[1 2]"])
    def test_malformed_batch(self, text: str):
        with pytest.raises((ParseError, CloudEventsError)):
            JSON_BATCH.unmarshal_batch(text)
