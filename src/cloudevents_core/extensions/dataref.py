"""Dataref extension: a pointer to a payload stored out of band."""

from __future__ import annotations

from dataclasses import dataclass

from cloudevents_core.event import Event
from cloudevents_core.types import URIRef, to_string

DATAREF = "dataref"


@dataclass(frozen=True, slots=True)
class DataRefExtension:
    """The ``dataref`` attribute; a URL (absolute or relative)."""

    dataref: str

    def add_on(self, event: Event) -> None:
        """Validate the reference and store it on *event*.

        Raises ParseError when the reference is not a valid URL.
        """
        URIRef.parse(self.dataref)
        event.set_extension(DATAREF, self.dataref)
        err = event.field_errors.get(f"extension:{DATAREF}")
        if err is not None:
            raise err


def add_data_ref(event: Event, dataref: str) -> None:
    DataRefExtension(dataref).add_on(event)


def get_data_ref(event: Event) -> DataRefExtension | None:
    """Return the event's dataref, or None when absent.

    Raises ParseError when the stored value is not a valid URL.
    """
    value = event.extension(DATAREF)
    if value is None:
        return None
    text = to_string(value)
    URIRef.parse(text)
    return DataRefExtension(text)
