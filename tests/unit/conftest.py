"""Shared fixtures for unit tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from cloudevents_core.event import Event
from cloudevents_core.event.datacodec import registry as codec_registry
from cloudevents_core.formats import registry as format_registry
from tests.helpers import full_event, min_event


@pytest.fixture
def event() -> Event:
    return full_event()


@pytest.fixture
def event_v03() -> Event:
    return full_event("0.3")


@pytest.fixture
def minimal_event() -> Event:
    return min_event()


@pytest.fixture
def clean_registries() -> Iterator[None]:
    """Start from empty codec/format registries and restore the built-ins after."""
    codec_registry._reset()
    format_registry._reset()
    yield
    codec_registry._reset()
    format_registry._reset()


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo root handler and structlog changes made by ``configure_logging``."""
    root = logging.getLogger()
    handlers, level = set(root.handlers), root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
