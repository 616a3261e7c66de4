"""Structured logging configuration using structlog.

The library only ever calls ``structlog.get_logger()``; applications opt in
to a concrete output format here.

Usage::

    from cloudevents_core.observability.logging import configure_logging

    configure_logging(level="DEBUG", json_output=False)
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import EventDict, Processor


def _stringify_errors(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Render exception values passed as keyword context with ``repr``."""
    for key, value in event_dict.items():
        if isinstance(value, BaseException):
            event_dict[key] = repr(value)
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Route structlog through stdlib logging on stderr.

    Args:
        level: Minimum log level name.
        json_output: Render JSON lines instead of the colored console format.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        _stringify_errors,
    ]

    renderer: Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
