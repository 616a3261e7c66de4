"""The closed set of CloudEvents attribute value types.

Every attribute and extension value is one of:

========== ===================== ===============================
Type       Python representation Canonical string form
========== ===================== ===============================
Boolean    ``bool``              ``true`` / ``false``
Integer    ``int`` (int32 range) decimal
String     ``str``               itself
Binary     ``bytes``             standard base64
URI        ``URI``               the URI text
URI-ref    ``URIRef``            the URI-reference text
Timestamp  ``Timestamp``         RFC 3339, nanoseconds, UTC
========== ===================== ===============================

``validate`` maps an arbitrary Python value onto that set.  The ``to_*``
helpers coerce a value (typically a string received over a transport that
erases types) into a specific member of it.
"""

from __future__ import annotations

import base64
import binascii
import math
from datetime import datetime
from enum import StrEnum
from typing import Any
from urllib.parse import ParseResult, SplitResult

from cloudevents_core.errors import InvalidValueError, OutOfRangeError, ParseError
from cloudevents_core.types.timestamp import Timestamp
from cloudevents_core.types.uri import URI, URIRef

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

Value = bool | int | str | bytes | URI | URIRef | Timestamp


class TypeName(StrEnum):
    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    STRING = "String"
    BINARY = "Binary"
    URI = "URI"
    URI_REF = "URI-reference"
    TIMESTAMP = "Timestamp"


def _check_int32(value: int, original: Any) -> int:
    if not INT32_MIN <= value <= INT32_MAX:
        msg = f"cannot convert {original!r} to int32: out of range"
        raise OutOfRangeError(msg)
    return value


def validate(value: Any) -> Value:
    """Return *value* as a canonical CloudEvents value.

    Raises InvalidValueError for unsupported types and non-integral floats,
    OutOfRangeError for integers outside int32.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return _check_int32(int(value), value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            msg = f"invalid CloudEvents value: {value!r}"
            raise InvalidValueError(msg)
        if not value.is_integer():
            msg = f"cannot convert {value!r} to Integer: not an integral value"
            raise InvalidValueError(msg)
        return _check_int32(int(value), value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value)
    if isinstance(value, URI | URIRef | Timestamp):
        return value
    if isinstance(value, SplitResult | ParseResult):
        return URIRef.parse(value.geturl())
    if isinstance(value, datetime):
        return Timestamp.from_datetime(value)
    msg = f"invalid CloudEvents value: {value!r}"
    raise InvalidValueError(msg)


def type_name(value: Any) -> TypeName:
    v = validate(value)
    if isinstance(v, bool):
        return TypeName.BOOLEAN
    if isinstance(v, int):
        return TypeName.INTEGER
    if isinstance(v, str):
        return TypeName.STRING
    if isinstance(v, bytes):
        return TypeName.BINARY
    if isinstance(v, URI):
        return TypeName.URI
    if isinstance(v, URIRef):
        return TypeName.URI_REF
    return TypeName.TIMESTAMP


def format_value(value: Any) -> str:
    """Return the canonical string form of *value*."""
    v = validate(value)
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, bytes):
        return base64.b64encode(v).decode("ascii")
    return str(v)


def clone_value(value: Any) -> Value:
    """Return an independent copy of *value*.

    All canonical values are immutable, so validation alone already detaches
    the result from mutable inputs such as ``bytearray``.
    """
    return validate(value)


def to_bool(value: Any) -> bool:
    v = validate(value)
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        if v in ("1", "t", "T", "true", "TRUE", "True"):
            return True
        if v in ("0", "f", "F", "false", "FALSE", "False"):
            return False
        msg = f"cannot convert {v!r} to Boolean: invalid syntax"
        raise ParseError(msg)
    msg = f"cannot convert {value!r} to Boolean"
    raise InvalidValueError(msg)


def to_integer(value: Any) -> int:
    """Coerce to int32; floats and numeric strings truncate toward zero."""
    if isinstance(value, float) and not isinstance(value, bool):
        return _float_to_int32(value, value)
    v = validate(value)
    if isinstance(v, bool):
        msg = f"cannot convert {value!r} to Integer"
        raise InvalidValueError(msg)
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        if v != v.strip():
            msg = f"cannot convert {v!r} to Integer: invalid syntax"
            raise ParseError(msg)
        try:
            f = float(v)
        except ValueError as exc:
            msg = f"cannot convert {v!r} to Integer: invalid syntax"
            raise ParseError(msg) from exc
        if math.isnan(f):
            msg = f"cannot convert {v!r} to Integer: invalid syntax"
            raise ParseError(msg)
        return _float_to_int32(f, v)
    msg = f"cannot convert {value!r} to Integer"
    raise InvalidValueError(msg)


def _float_to_int32(f: float, original: Any) -> int:
    if math.isnan(f):
        msg = f"cannot convert {original!r} to Integer: not a number"
        raise InvalidValueError(msg)
    if not INT32_MIN - 1 < f < INT32_MAX + 1:
        msg = f"cannot convert {original!r} to int32: out of range"
        raise OutOfRangeError(msg)
    return math.trunc(f)


def to_string(value: Any) -> str:
    v = validate(value)
    if isinstance(v, str):
        return v
    msg = f"cannot convert {value!r} to String"
    raise InvalidValueError(msg)


def to_binary(value: Any) -> bytes:
    """Coerce to bytes; strings are decoded as standard base64."""
    v = validate(value)
    if isinstance(v, bytes):
        return v
    if isinstance(v, str):
        try:
            return base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = f"illegal base64 data: {exc}"
            raise ParseError(msg) from exc
    msg = f"cannot convert {value!r} to Binary"
    raise InvalidValueError(msg)


def to_uri(value: Any) -> URI:
    v = validate(value)
    if isinstance(v, URI):
        return v
    if isinstance(v, URIRef | str):
        return URI.parse(str(v))
    msg = f"cannot convert {value!r} to URI"
    raise InvalidValueError(msg)


def to_uri_ref(value: Any) -> URIRef:
    v = validate(value)
    if isinstance(v, URIRef):
        return v
    if isinstance(v, URI):
        return URIRef(v.value)
    if isinstance(v, str):
        return URIRef.parse(v)
    msg = f"cannot convert {value!r} to URI-reference"
    raise InvalidValueError(msg)


def to_timestamp(value: Any) -> Timestamp:
    v = validate(value)
    if isinstance(v, Timestamp):
        return v
    if isinstance(v, str):
        return Timestamp.parse(v)
    msg = f"cannot convert {value!r} to Timestamp"
    raise InvalidValueError(msg)


def to_time(value: Any) -> datetime:
    """Coerce to an aware UTC datetime (microsecond precision)."""
    return to_timestamp(value).to_datetime()
