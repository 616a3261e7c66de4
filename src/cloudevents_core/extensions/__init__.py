"""Well-known CloudEvents extensions."""

from cloudevents_core.extensions.dataref import (
    DATAREF,
    DataRefExtension,
    add_data_ref,
    get_data_ref,
)
from cloudevents_core.extensions.tracing import (
    TRACEPARENT,
    TRACESTATE,
    DistributedTracingExtension,
    add_tracing_attributes,
    from_event,
)

__all__ = [
    "DATAREF",
    "TRACEPARENT",
    "TRACESTATE",
    "DataRefExtension",
    "DistributedTracingExtension",
    "add_data_ref",
    "add_tracing_attributes",
    "from_event",
    "get_data_ref",
]
