"""Process-wide content-type -> (encoder, decoder) registry.

The built-in codecs are installed by ``register_builtin_codecs``, which runs
lazily on first lookup unless the application calls it at startup.
Registration after first use is not thread-safe: populate the registry once,
then treat it as read-only.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from cloudevents_core.errors import CodecError, UnsupportedContentTypeError
from cloudevents_core.event.context import media_type

logger = structlog.get_logger()

Encoder = Callable[[Any], bytes]
Decoder = Callable[[bytes, Any], Any]

_encoders: dict[str, Encoder] = {}
_decoders: dict[str, Decoder] = {}
_builtins_registered = False


def _key(content_type: str) -> str:
    return media_type(content_type)


def add_encoder(content_type: str, fn: Encoder) -> None:
    """Install or replace the encoder for *content_type*."""
    _encoders[_key(content_type)] = fn
    logger.debug("datacodec.encoder_registered", content_type=_key(content_type))


def add_decoder(content_type: str, fn: Decoder) -> None:
    """Install or replace the decoder for *content_type*."""
    _decoders[_key(content_type)] = fn
    logger.debug("datacodec.decoder_registered", content_type=_key(content_type))


def register(content_type: str, encoder: Encoder, decoder: Decoder) -> None:
    add_encoder(content_type, encoder)
    add_decoder(content_type, decoder)


def register_builtin_codecs() -> None:
    """Install the JSON, XML, text and protobuf codecs (idempotent)."""
    global _builtins_registered
    if _builtins_registered:
        return
    _builtins_registered = True

    from cloudevents_core.event.datacodec import (
        json_codec,
        protobuf_codec,
        text_codec,
        xml_codec,
    )

    for ct in ("", "application/json", "text/json"):
        _encoders.setdefault(ct, json_codec.encode)
        _decoders.setdefault(ct, json_codec.decode)
    for ct in ("application/xml", "text/xml"):
        _encoders.setdefault(ct, xml_codec.encode)
        _decoders.setdefault(ct, xml_codec.decode)
    for ct in ("text/plain", "text/*"):
        _encoders.setdefault(ct, text_codec.encode)
        _decoders.setdefault(ct, text_codec.decode)
    _encoders.setdefault("application/protobuf", protobuf_codec.encode)
    _decoders.setdefault("application/protobuf", protobuf_codec.decode)
    logger.debug("datacodec.builtins_registered", content_types=sorted(_encoders))


def _lookup(table: dict[str, Any], content_type: str, operation: str) -> Any:
    register_builtin_codecs()
    key = _key(content_type)
    fn = table.get(key)
    if fn is None and "/" in key:
        fn = table.get(key.split("/", 1)[0] + "/*")
    if fn is None:
        raise UnsupportedContentTypeError(content_type, operation)
    return fn


def encode(content_type: str, value: Any) -> bytes:
    """Serialize *value* for *content_type*."""
    fn: Encoder = _lookup(_encoders, content_type, "encode")
    try:
        return fn(value)
    except (TypeError, ValueError) as exc:
        raise CodecError(content_type, "encode", exc) from exc


def decode(content_type: str, data: bytes, out: Any = None) -> Any:
    """Deserialize *data* for *content_type*.

    *out* is an optional target (a model class or message instance) that the
    codec fills or instantiates; without it the codec returns its natural
    Python representation.
    """
    fn: Decoder = _lookup(_decoders, content_type, "decode")
    try:
        return fn(data, out)
    except (TypeError, ValueError) as exc:
        raise CodecError(content_type, "decode", exc) from exc


def _reset() -> None:
    """Drop every registration; test hook."""
    global _builtins_registered
    _encoders.clear()
    _decoders.clear()
    _builtins_registered = False
