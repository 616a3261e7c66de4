"""XML payload codec (``application/xml``, ``text/xml``).

Decoding goes through defusedxml so entity expansion and external entity
payloads are rejected rather than resolved.
"""

from __future__ import annotations

from typing import Any
from xml.etree.ElementTree import Element, ParseError, tostring

from defusedxml import ElementTree as DefusedET


def encode(value: Any) -> bytes:
    if isinstance(value, Element):
        return tostring(value, encoding="utf-8")
    if isinstance(value, bytes | bytearray):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    msg = f"xml.encode: want Element, str or bytes, got {type(value).__name__}"
    raise TypeError(msg)


def decode(data: bytes, out: Any = None) -> Element:
    try:
        return DefusedET.fromstring(data)
    except ParseError as exc:
        msg = f"malformed XML payload: {exc}"
        raise ValueError(msg) from exc
