"""Unit tests for the encoding router."""

from __future__ import annotations

import json

import pytest

from cloudevents_core.binding import (
    BinaryBufferedMessage,
    Encoding,
    EventMessage,
    Kind,
    Mode,
    StructBufferedMessage,
    WriteContext,
    direct_write,
    write,
    write_binary,
    write_structured,
)
from cloudevents_core.binding import transformer as tf
from cloudevents_core.config import BindingConfig, SDKConfig
from cloudevents_core.errors import CancelledError, UnknownEncodingError
from cloudevents_core.formats import JSON_MEDIA_TYPE, PROTOBUF_MEDIA_TYPE
from cloudevents_core.formats.json_format import JSON
from cloudevents_core.formats.protobuf import PROTOBUF
from tests.helpers import (
    CountingTransformer,
    RecordingBinaryWriter,
    RecordingMessage,
    RecordingStructuredWriter,
    UnknownMessage,
    UppercaseBodyTransformer,
    binary_message,
    full_event,
    min_event,
    structured_message,
)


def _ctx(**config) -> WriteContext:
    return WriteContext(config=BindingConfig(**config))


class TestWriteContext:
    def test_from_config(self):
        config = SDKConfig(binding=BindingConfig(preferred_event_encoding="structured"))
        ctx = WriteContext.from_config(config)
        assert ctx.config.preferred_event_encoding == "structured"
        assert not ctx.cancelled

    def test_with_config_shares_cancel_signal(self):
        ctx = WriteContext()
        other = ctx.with_config(skip_direct_binary_encoding=True)
        assert other.config.skip_direct_binary_encoding is True
        assert ctx.config.skip_direct_binary_encoding is False
        ctx.cancel.set()
        assert other.cancelled


class TestDirectWrite:
    def test_structured_passthrough(self):
        message = structured_message(full_event())
        writer = RecordingStructuredWriter()
        assert direct_write(None, message, structured_writer=writer) is (
            Encoding.STRUCTURED
        )
        assert writer.format is JSON
        assert writer.data == message.data

    def test_binary_passthrough(self):
        writer = RecordingBinaryWriter()
        result = direct_write(None, binary_message(full_event()), binary_writer=writer)
        assert result is Encoding.BINARY
        assert writer.started == writer.ended == 1
        assert writer.attributes[0][0].kind is Kind.SPEC_VERSION
        assert writer.data == b'{"hello":"world"}'

    def test_mismatched_writer_writes_nothing(self):
        writer = RecordingBinaryWriter()
        message = structured_message(min_event())
        result = direct_write(None, message, binary_writer=writer)
        assert result is Encoding.UNKNOWN
        assert writer.started == 0

    def test_event_message_never_direct(self):
        result = direct_write(
            None,
            EventMessage(min_event()),
            RecordingStructuredWriter(),
            RecordingBinaryWriter(),
        )
        assert result is Encoding.UNKNOWN

    def test_skip_flags(self):
        ctx = _ctx(
            skip_direct_structured_encoding=True, skip_direct_binary_encoding=True
        )
        structured = structured_message(min_event())
        binary = binary_message(min_event())
        result = direct_write(ctx, structured, RecordingStructuredWriter())
        assert result is Encoding.UNKNOWN
        result = direct_write(ctx, binary, None, RecordingBinaryWriter())
        assert result is Encoding.UNKNOWN

    def test_structured_transformer_applied_to_body(self):
        transformer = UppercaseBodyTransformer()
        writer = RecordingStructuredWriter()
        message = structured_message(min_event())
        direct_write(None, message, writer, transformers=[transformer])
        assert writer.data == message.data.upper()
        assert transformer.calls == 1

    def test_metadata_transformer_blocks_structured_path(self):
        result = direct_write(
            None,
            structured_message(min_event()),
            RecordingStructuredWriter(),
            transformers=[CountingTransformer()],
        )
        assert result is Encoding.UNKNOWN

    def test_binary_transformer_reads_source_writes_target(self):
        counter = CountingTransformer()
        writer = RecordingBinaryWriter()
        direct_write(None, binary_message(min_event()), None, writer, [counter])
        assert counter.calls == 1
        assert writer.extensions["counter"] == 1
        assert writer.ended == 1

    def test_binary_transformer_needs_metadata_reader(self):
        message = RecordingMessage(binary_message(min_event()))
        result = direct_write(
            None, message, None, RecordingBinaryWriter(), [CountingTransformer()]
        )
        assert result is Encoding.UNKNOWN

    def test_cancelled(self):
        ctx = WriteContext()
        ctx.cancel.set()
        message = RecordingMessage(binary_message(min_event()))
        with pytest.raises(CancelledError):
            direct_write(ctx, message, None, RecordingBinaryWriter())
        assert len(message.finished) == 1
        assert isinstance(message.finished[0], CancelledError)


class TestWrite:
    def test_direct_structured(self):
        writer = RecordingStructuredWriter()
        assert write(None, structured_message(min_event()), writer) is (
            Encoding.STRUCTURED
        )

    def test_event_prefers_binary_by_default(self):
        binary = RecordingBinaryWriter()
        structured = RecordingStructuredWriter()
        result = write(None, EventMessage(full_event()), structured, binary)
        assert result is Encoding.BINARY
        assert structured.calls == 0
        assert binary.attribute(Kind.ID) == "ABC-123"

    def test_event_preferred_structured(self):
        binary = RecordingBinaryWriter()
        structured = RecordingStructuredWriter()
        ctx = _ctx(preferred_event_encoding="structured")
        result = write(ctx, EventMessage(full_event()), structured, binary)
        assert result is Encoding.STRUCTURED
        assert binary.started == 0
        assert json.loads(structured.data)["id"] == "ABC-123"

    def test_structured_format_from_config(self):
        structured = RecordingStructuredWriter()
        ctx = _ctx(structured_format=PROTOBUF_MEDIA_TYPE)
        write(ctx, EventMessage(full_event()), structured)
        assert structured.format is PROTOBUF

    def test_falls_back_to_only_writer(self):
        structured = RecordingStructuredWriter()
        assert write(None, binary_message(min_event()), structured) is (
            Encoding.STRUCTURED
        )
        assert structured.format is JSON

    def test_structured_to_binary_transcodes(self):
        binary = RecordingBinaryWriter()
        result = write_binary(None, structured_message(full_event("0.3")), binary)
        assert result is Encoding.BINARY
        assert binary.attributes[0][1] == "0.3"

    def test_event_transformer_forces_materialization(self):
        counter = CountingTransformer(frozenset({Mode.EVENT}))
        binary = RecordingBinaryWriter()
        write(None, binary_message(min_event()), None, binary, [counter])
        assert counter.calls == 1
        assert binary.extensions["counter"] == 1

    @pytest.mark.parametrize(
        "make_message",
        [
            lambda e: structured_message(e),
            lambda e: binary_message(e),
            lambda e: EventMessage(e),
        ],
        ids=["structured", "binary", "event"],
    )
    def test_transformers_applied_exactly_once(self, make_message):
        counter = CountingTransformer()
        binary = RecordingBinaryWriter()
        write(None, make_message(min_event()), None, binary, [counter])
        assert counter.calls == 1
        assert binary.extensions["counter"] == 1

    def test_builtin_transformer_on_binary_path(self):
        binary = RecordingBinaryWriter()
        write_binary(
            None,
            binary_message(min_event()),
            binary,
            [tf.add_attribute(Kind.SUBJECT, "added")],
        )
        assert binary.attribute(Kind.SUBJECT) == "added"

    def test_no_writers(self):
        with pytest.raises(UnknownEncodingError, match="no writer"):
            write(None, EventMessage(min_event()))

    def test_unknown_message(self):
        with pytest.raises(UnknownEncodingError):
            write_structured(None, UnknownMessage(), RecordingStructuredWriter())

    def test_cancelled_event_message(self):
        ctx = WriteContext()
        ctx.cancel.set()
        with pytest.raises(CancelledError):
            write(ctx, EventMessage(min_event()), RecordingStructuredWriter())

    def test_round_trip_through_buffers(self):
        event = full_event()
        structured = StructBufferedMessage()
        write_structured(None, EventMessage(event), structured)
        binary = BinaryBufferedMessage()
        write_binary(None, structured, binary)
        target = StructBufferedMessage()
        write(
            _ctx(structured_format=JSON_MEDIA_TYPE),
            binary,
            target,
            transformers=[CountingTransformer(frozenset({Mode.EVENT}))],
        )
        decoded = JSON.unmarshal(target.data)
        assert decoded.id == event.id
        assert decoded.extension("counter") == 1
