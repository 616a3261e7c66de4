"""Plain-text payload codec (``text/plain`` and any other ``text/*``)."""

from __future__ import annotations

from typing import Any


def encode(value: Any) -> bytes:
    if isinstance(value, bytes | bytearray):
        return bytes(value)
    if not isinstance(value, str):
        msg = f"text.encode: want str, got {type(value).__name__}"
        raise TypeError(msg)
    return value.encode("utf-8")


def decode(data: bytes, out: Any = None) -> str:
    return data.decode("utf-8")
