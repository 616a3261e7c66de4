"""Unit tests for structured logging configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from cloudevents_core.observability.logging import configure_logging


@pytest.mark.usefixtures("restore_logging")
class TestConfigureLogging:
    def test_sets_root_level_and_single_handler(self):
        configure_logging(level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_structlog_routed_through_stdlib(self):
        configure_logging(json_output=True)
        config = structlog.get_config()
        assert config["wrapper_class"] is structlog.stdlib.BoundLogger
        assert isinstance(config["logger_factory"], structlog.stdlib.LoggerFactory)

    def test_json_output(self, capsys: pytest.CaptureFixture[str]):
        configure_logging(level="INFO", json_output=True)
        structlog.get_logger("cloudevents_core.test").info(
            "event.sent", event_id="ABC-123", error=ValueError("boom")
        )
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "event.sent"
        assert record["event_id"] == "ABC-123"
        assert record["level"] == "info"
        assert record["error"] == "ValueError('boom')"

    def test_repeat_calls_do_not_stack_handlers(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1
