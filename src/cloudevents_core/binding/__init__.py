"""Message abstraction, encoding router and transformer pipeline."""

from cloudevents_core.binding.buffering import (
    BinaryBufferedMessage,
    StructBufferedMessage,
    acks_before_finish,
    buffer_message,
    copy_message,
)
from cloudevents_core.binding.message import (
    BinaryWriter,
    Encoding,
    EventMessage,
    Message,
    MessageWrapper,
    MetadataReader,
    MetadataWriter,
    StructuredWriter,
    has_metadata_reader,
    metadata_reader,
    unwrap,
    with_finish,
)
from cloudevents_core.binding.spec import VS, Attribute, Kind, Version, Versions
from cloudevents_core.binding.to_event import EventBuilder, to_event
from cloudevents_core.binding.transformer import (
    Mode,
    Transformer,
    TransformerFunc,
    Transformers,
)
from cloudevents_core.binding.write import (
    WriteContext,
    direct_write,
    write,
    write_binary,
    write_structured,
)

__all__ = [
    "VS",
    "Attribute",
    "BinaryBufferedMessage",
    "BinaryWriter",
    "Encoding",
    "EventBuilder",
    "EventMessage",
    "Kind",
    "Message",
    "MessageWrapper",
    "MetadataReader",
    "MetadataWriter",
    "Mode",
    "StructBufferedMessage",
    "StructuredWriter",
    "Transformer",
    "TransformerFunc",
    "Transformers",
    "Version",
    "Versions",
    "WriteContext",
    "acks_before_finish",
    "buffer_message",
    "copy_message",
    "direct_write",
    "has_metadata_reader",
    "metadata_reader",
    "to_event",
    "unwrap",
    "with_finish",
    "write",
    "write_binary",
    "write_structured",
]
