"""Payload codecs keyed by content type."""

from cloudevents_core.event.datacodec.registry import (
    add_decoder,
    add_encoder,
    decode,
    encode,
    register,
    register_builtin_codecs,
)

__all__ = [
    "add_decoder",
    "add_encoder",
    "decode",
    "encode",
    "register",
    "register_builtin_codecs",
]
