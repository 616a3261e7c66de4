"""Media type -> structured format lookup.

The built-in formats are installed by ``register_builtin_formats``, which
runs on first lookup unless called explicitly at startup.  Lookups strip
media-type parameters and ignore case.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from cloudevents_core.errors import UnknownFormatError
from cloudevents_core.event.context import media_type
from cloudevents_core.formats.base import Format

if TYPE_CHECKING:
    from cloudevents_core.event import Event

logger = structlog.get_logger()

_formats: dict[str, Format] = {}
_builtins_registered = False


def add(fmt: Format) -> None:
    """Register *fmt*, replacing any format with the same media type."""
    key = media_type(fmt.media_type)
    _formats[key] = fmt
    logger.debug("format.registered", media_type=key)


def register_builtin_formats() -> None:
    """Install the JSON, batch JSON and protobuf formats (idempotent)."""
    global _builtins_registered
    if _builtins_registered:
        return
    _builtins_registered = True

    from cloudevents_core.formats.json_format import JSON, JSON_BATCH
    from cloudevents_core.formats.protobuf.format import PROTOBUF

    for fmt in (JSON, JSON_BATCH, PROTOBUF):
        _formats.setdefault(media_type(fmt.media_type), fmt)


def lookup(content_type: str) -> Format | None:
    """Return the format registered for *content_type*, if any."""
    register_builtin_formats()
    return _formats.get(media_type(content_type))


def get(content_type: str) -> Format:
    fmt = lookup(content_type)
    if fmt is None:
        raise UnknownFormatError(content_type)
    return fmt


def media_types() -> list[str]:
    register_builtin_formats()
    return sorted(_formats)


def marshal(content_type: str, event: Event) -> bytes:
    return get(content_type).marshal(event)


def unmarshal(content_type: str, data: bytes) -> Event:
    return get(content_type).unmarshal(data)


def _reset() -> None:
    """Drop every registration; test hook."""
    global _builtins_registered
    _formats.clear()
    _builtins_registered = False
