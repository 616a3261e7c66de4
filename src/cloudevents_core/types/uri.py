"""URI and URI-reference attribute values."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Self
from urllib.parse import SplitResult, urlsplit

from cloudevents_core.errors import ParseError

_CONTROL = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _check(value: str) -> SplitResult:
    if _CONTROL.search(value):
        msg = f"cannot parse {value!r}: invalid control character in URL"
        raise ParseError(msg)
    if _BAD_ESCAPE.search(value):
        msg = f"cannot parse {value!r}: invalid URL escape"
        raise ParseError(msg)
    try:
        parts = urlsplit(value)
        # Accessing .port validates it.
        parts.port  # noqa: B018
    except ValueError as exc:
        msg = f"cannot parse {value!r}: {exc}"
        raise ParseError(msg) from exc
    if not parts.scheme and ":" in value.split("/", 1)[0]:
        msg = f"cannot parse {value!r}: first path segment in URL cannot contain colon"
        raise ParseError(msg)
    return parts


@dataclass(frozen=True, slots=True)
class URIRef:
    """A URI reference; may be relative (``/sources/a``)."""

    value: str

    @classmethod
    def parse(cls, value: str) -> Self:
        _check(value)
        return cls(value)

    @property
    def is_absolute(self) -> bool:
        return bool(urlsplit(self.value).scheme)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class URI:
    """An absolute URI; a scheme is required."""

    value: str

    @classmethod
    def parse(cls, value: str) -> Self:
        parts = _check(value)
        if not parts.scheme:
            msg = f"cannot parse {value!r}: URI must be absolute"
            raise ParseError(msg)
        return cls(value)

    @property
    def is_absolute(self) -> bool:
        return bool(urlsplit(self.value).scheme)

    def __str__(self) -> str:
        return self.value
