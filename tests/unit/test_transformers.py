"""Unit tests for the transformer pipeline and built-in transformers."""

from __future__ import annotations

import uuid

import pytest

from cloudevents_core.binding import Kind, Mode, TransformerFunc, Transformers
from cloudevents_core.binding import transformer as tf
from cloudevents_core.binding.transformer import EventMetadata, as_transformers
from cloudevents_core.formats.json_format import JSON
from cloudevents_core.types import Timestamp
from tests.helpers import (
    CountingTransformer,
    UppercaseBodyTransformer,
    full_event,
    min_event,
)


def _apply(transformer, event):
    Transformers([transformer]).transform_event(event)
    return event


class TestTransformers:
    def test_empty_pipeline_supports_everything(self):
        pipeline = Transformers()
        assert all(pipeline.supports(mode) for mode in Mode)

    def test_supports_requires_every_member(self):
        pipeline = Transformers(
            [CountingTransformer(), CountingTransformer(frozenset({Mode.EVENT}))]
        )
        assert pipeline.supports(Mode.EVENT)
        assert not pipeline.supports(Mode.BINARY)

    def test_structured_needs_transform_structured(self):
        claims_structured = CountingTransformer(frozenset(Mode))
        assert not Transformers([claims_structured]).supports(Mode.STRUCTURED)
        assert Transformers([UppercaseBodyTransformer()]).supports(Mode.STRUCTURED)

    def test_transform_structured_chains(self):
        first, second = UppercaseBodyTransformer(), UppercaseBodyTransformer()
        data = Transformers([first, second]).transform_structured(JSON, b"abc")
        assert data == b"ABC"
        assert first.calls == second.calls == 1

    def test_transform_structured_rejects_binary_only(self):
        pipeline = Transformers([CountingTransformer()])
        with pytest.raises(TypeError, match="cannot transform structured"):
            pipeline.transform_structured(JSON, b"abc")

    def test_transform_event_applies_in_order(self):
        counter = CountingTransformer()
        pipeline = Transformers([counter, counter])
        event = min_event()
        pipeline.transform_event(event)
        assert counter.calls == 2
        assert event.extension("counter") == 2

    def test_as_transformers(self):
        pipeline = Transformers()
        assert as_transformers(pipeline) is pipeline
        assert as_transformers(None) == []
        assert isinstance(as_transformers([CountingTransformer()]), Transformers)

    def test_transformer_func_defaults(self):
        fn = TransformerFunc(lambda r, w: None)
        assert fn.affinity == frozenset({Mode.BINARY, Mode.EVENT})


class TestEventMetadata:
    def test_reads_and_writes_event(self):
        event = min_event()
        adapter = EventMetadata(event)
        attr, value = adapter.get_attribute(Kind.TYPE)
        assert value == "com.example.test"
        adapter.set_attribute(attr, "com.example.other")
        adapter.set_extension("ext", "v")
        assert event.type == "com.example.other"
        assert adapter.get_extension("ext") == "v"


class TestAttributeTransformers:
    def test_set_attribute_uses_old_value(self):
        transformer = tf.set_attribute(Kind.TYPE, lambda old: f"{old}.v2")
        event = _apply(transformer, min_event())
        assert event.type == "com.example.test.v2"

    def test_set_attribute_on_missing(self):
        transformer = tf.set_attribute(Kind.SUBJECT, lambda old: old or "new")
        event = _apply(transformer, min_event())
        assert event.subject == "new"

    def test_add_attribute_only_when_missing(self):
        event = _apply(tf.add_attribute(Kind.SUBJECT, "added"), min_event())
        assert event.subject == "added"
        event = _apply(tf.add_attribute(Kind.SUBJECT, "ignored"), full_event())
        assert event.subject == "topic"

    def test_update_attribute_only_when_present(self):
        event = _apply(tf.update_attribute(Kind.SUBJECT, str.upper), min_event())
        assert event.subject is None
        event = _apply(tf.update_attribute(Kind.SUBJECT, str.upper), full_event())
        assert event.subject == "TOPIC"

    def test_delete_attribute(self):
        event = _apply(tf.delete_attribute(Kind.SUBJECT), full_event())
        assert event.subject is None

    def test_set_uuid_fills_missing_id(self):
        event = min_event()
        event.context.id = ""
        _apply(tf.set_uuid(), event)
        assert uuid.UUID(event.id)

    def test_set_uuid_keeps_existing_id(self):
        event = _apply(tf.set_uuid(), min_event())
        assert event.id == "ABC-123"

    def test_add_time_now(self):
        before = Timestamp.now()
        event = _apply(tf.add_time_now(), min_event())
        assert event.time is not None
        assert event.time >= before

    def test_add_time_now_evaluated_per_call(self):
        transformer = tf.add_time_now()
        first = _apply(transformer, min_event()).time
        second = _apply(transformer, min_event()).time
        assert first is not None and second is not None
        assert second >= first


class TestExtensionTransformers:
    def test_set_extension(self):
        transformer = tf.set_extension("exint", lambda old: (old or 0) + 1)
        event = _apply(transformer, full_event())
        assert event.extension("exint") == 43

    def test_add_extension_only_when_missing(self):
        event = _apply(tf.add_extension("exint", 1), full_event())
        assert event.extension("exint") == 42
        event = _apply(tf.add_extension("newext", "v"), full_event())
        assert event.extension("newext") == "v"

    def test_update_extension_only_when_present(self):
        event = _apply(tf.update_extension("missing", lambda old: "x"), min_event())
        assert event.extension("missing") is None
        event = _apply(tf.update_extension("exstring", str.upper), full_event())
        assert event.extension("exstring") == "EXSTRING"

    def test_delete_extension(self):
        event = _apply(tf.delete_extension("exbool"), full_event())
        assert "exbool" not in event.extensions
