"""Exception hierarchy shared by every layer of the library.

Validation failures are aggregated per field so callers can build an event
in several steps and inspect all problems at once.  Encoding, codec and
conversion failures surface at the operation that hit them.
"""

from __future__ import annotations

from collections.abc import Mapping


class CloudEventsError(Exception):
    """Base class for all errors raised by cloudevents_core."""


class ValidationError(CloudEventsError, ValueError):
    """One or more event attributes failed validation.

    ``field_errors`` maps the attribute name to the underlying cause.
    """

    def __init__(self, field_errors: Mapping[str, Exception | str]) -> None:
        self.field_errors: dict[str, Exception] = {
            name: err if isinstance(err, Exception) else ValueError(err)
            for name, err in field_errors.items()
        }
        super().__init__(str(self))

    def __str__(self) -> str:
        return "\n".join(
            f"{name}: {err}" for name, err in sorted(self.field_errors.items())
        )

    def __contains__(self, name: object) -> bool:
        return name in self.field_errors


class UnknownSpecVersionError(ValidationError):
    """The specversion is not one this library understands."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__({"specversion": f"unknown value: {version}"})


class InvalidValueError(CloudEventsError, TypeError):
    """A value cannot be represented as a CloudEvents attribute type."""


class ParseError(CloudEventsError, ValueError):
    """A canonical string form could not be parsed."""


class OutOfRangeError(CloudEventsError, ValueError):
    """A numeric value does not fit in a 32-bit signed integer."""


class UnknownEncodingError(CloudEventsError):
    """The encoding of a message could not be determined."""

    def __init__(self, msg: str = "unknown message encoding") -> None:
        super().__init__(msg)


class NotStructuredError(CloudEventsError):
    """read_structured was called on a message that is not structured."""

    def __init__(self, msg: str = "message is not in structured mode") -> None:
        super().__init__(msg)


class NotBinaryError(CloudEventsError):
    """read_binary was called on a message that is not binary."""

    def __init__(self, msg: str = "message is not in binary mode") -> None:
        super().__init__(msg)


class UnknownFormatError(CloudEventsError):
    """No structured format is registered for a media type."""

    def __init__(self, media_type: str) -> None:
        self.media_type = media_type
        super().__init__(f'unknown event format media-type "{media_type}"')


class UnsupportedContentTypeError(CloudEventsError):
    """No data codec is registered for a content type."""

    def __init__(self, content_type: str, operation: str) -> None:
        self.content_type = content_type
        self.operation = operation
        super().__init__(f'[{operation}] unsupported content type: "{content_type}"')


class CodecError(CloudEventsError):
    """A data codec failed to encode or decode a payload."""

    def __init__(self, content_type: str, operation: str, cause: Exception) -> None:
        self.content_type = content_type
        self.operation = operation
        self.cause = cause
        super().__init__(f"[{operation}] {content_type} codec failed: {cause}")


class CancelledError(CloudEventsError):
    """The enclosing write context was cancelled."""

    def __init__(self, msg: str = "context cancelled") -> None:
        super().__init__(msg)
