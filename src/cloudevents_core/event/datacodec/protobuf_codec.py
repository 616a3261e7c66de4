"""Protobuf payload codec (``application/protobuf``).

Messages are wrapped in ``google.protobuf.Any`` before serialization so the
type identity travels with the payload.  Decoding unwraps an ``Any`` when the
bytes look like one and otherwise parses straight into the target; the
``type_url`` is never required to match the target's own full name.
"""

from __future__ import annotations

from typing import Any

from google.protobuf import any_pb2
from google.protobuf.message import DecodeError, Message


def encode(value: Any) -> bytes:
    if not isinstance(value, Message):
        msg = f"protobuf.encode: want a Message, got {type(value).__name__}"
        raise TypeError(msg)
    if isinstance(value, any_pb2.Any):
        return value.SerializeToString()
    wrapped = any_pb2.Any()
    wrapped.Pack(value)
    return wrapped.SerializeToString()


def _unwrap(data: bytes) -> bytes | None:
    wrapped = any_pb2.Any()
    try:
        wrapped.ParseFromString(data)
    except DecodeError:
        return None
    if "/" not in wrapped.type_url:
        return None
    return wrapped.value


def decode(data: bytes, out: Any = None) -> Message:
    """Parse *data* into *out* (a Message instance or class)."""
    if isinstance(out, type) and issubclass(out, Message):
        out = out()
    if not isinstance(out, Message):
        msg = f"protobuf.decode: want a Message target, got {type(out).__name__}"
        raise TypeError(msg)
    if isinstance(out, any_pb2.Any):
        payloads = [data]
    else:
        inner = _unwrap(data)
        payloads = [inner, data] if inner is not None else [data]
    last: DecodeError | None = None
    for payload in payloads:
        out.Clear()
        try:
            out.ParseFromString(payload)
        except DecodeError as exc:
            last = exc
            continue
        return out
    msg = f"protobuf.decode: {last}"
    raise ValueError(msg) from last
