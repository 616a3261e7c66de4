"""JSON payload codec (``application/json``, ``text/json``)."""

from __future__ import annotations

import dataclasses
import json
from typing import Any

from pydantic import BaseModel


def encode(value: Any) -> bytes:
    """Serialize *value* as compact JSON.

    Bytes that already hold a JSON document are passed through unchanged.
    pydantic models and dataclasses are dumped through their own field maps.
    """
    if isinstance(value, bytes | bytearray):
        data = bytes(value)
        json.loads(data)
        return data
    if isinstance(value, BaseModel):
        return value.model_dump_json().encode("utf-8")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


def decode(data: bytes, out: Any = None) -> Any:
    """Parse JSON *data*; a pydantic model class as *out* is validated into."""
    if not data:
        return None
    if isinstance(out, type) and issubclass(out, BaseModel):
        return out.model_validate_json(data)
    value = json.loads(data)
    if isinstance(out, dict) and isinstance(value, dict):
        out.update(value)
        return out
    if isinstance(out, list) and isinstance(value, list):
        out[:] = value
        return out
    return value
