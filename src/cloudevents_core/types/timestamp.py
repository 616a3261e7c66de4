"""RFC 3339 timestamps with nanosecond precision.

``datetime`` stops at microseconds, so the canonical value is kept as whole
seconds since the Unix epoch plus a nanosecond remainder.  Formatting always
renders UTC with trailing fractional zeros trimmed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone
from typing import Self

from cloudevents_core.errors import ParseError

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_NANOS_PER_SECOND = 1_000_000_000

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?"
    r"([Zz]|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True, slots=True, order=True)
class Timestamp:
    """A point in time, ``seconds`` since the epoch plus ``nanos``."""

    seconds: int
    nanos: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanos < _NANOS_PER_SECOND:
            msg = f"nanos must be in [0, {_NANOS_PER_SECOND}), got {self.nanos}"
            raise ValueError(msg)

    @classmethod
    def parse(cls, value: str) -> Self:
        match = _RFC3339.match(value)
        if match is None:
            msg = f"cannot parse {value!r}: not in RFC 3339 format"
            raise ParseError(msg)
        year, month, day, hour, minute, second, frac, offset = match.groups()
        if offset in ("Z", "z"):
            tz = UTC
        else:
            sign = -1 if offset[0] == "-" else 1
            hours, minutes = int(offset[1:3]), int(offset[4:6])
            if hours > 23 or minutes > 59:
                msg = f"cannot parse {value!r}: time zone offset out of range"
                raise ParseError(msg)
            tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
        try:
            dt = datetime(
                int(year),
                int(month),
                int(day),
                int(hour),
                int(minute),
                int(second),
                tzinfo=tz,
            )
        except ValueError as exc:
            msg = f"cannot parse {value!r}: {exc}"
            raise ParseError(msg) from exc
        nanos = int(frac.ljust(9, "0")) if frac else 0
        return cls((dt - _EPOCH) // timedelta(seconds=1), nanos)

    @classmethod
    def from_datetime(cls, value: datetime) -> Self:
        """Convert a datetime; naive values are taken to be UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        delta = value - _EPOCH
        seconds = delta.days * 86_400 + delta.seconds
        return cls(seconds, delta.microseconds * 1000)

    @classmethod
    def now(cls) -> Self:
        return cls.from_datetime(datetime.now(UTC))

    def to_datetime(self) -> datetime:
        """Return an aware UTC datetime; sub-microsecond digits are dropped."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    def __str__(self) -> str:
        dt = _EPOCH + timedelta(seconds=self.seconds)
        base = (
            f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
            f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
        )
        frac = f"{self.nanos:09d}".rstrip("0")
        return f"{base}.{frac}Z" if frac else f"{base}Z"


def parse_timestamp(value: str) -> Timestamp | None:
    """Parse an RFC 3339 string; the empty string means no value."""
    if value == "":
        return None
    return Timestamp.parse(value)
