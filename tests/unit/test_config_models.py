"""Unit tests for the SDK config models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cloudevents_core.config import (
    BackoffStrategy,
    BindingConfig,
    RetryConfig,
    SDKConfig,
)


class TestBindingConfig:
    def test_defaults(self):
        config = BindingConfig()
        assert config.skip_direct_structured_encoding is False
        assert config.skip_direct_binary_encoding is False
        assert config.preferred_event_encoding == "binary"
        assert config.structured_format == "application/cloudevents+json"

    def test_rejects_unknown_encoding(self):
        with pytest.raises(ValidationError):
            BindingConfig(preferred_event_encoding="event")


class TestRetryConfig:
    def test_defaults(self):
        config = RetryConfig()
        assert config.strategy is BackoffStrategy.EXPONENTIAL
        assert config.period_seconds == 0.1
        assert config.max_tries == 5

    def test_strategy_from_string(self):
        assert RetryConfig(strategy="constant").strategy is BackoffStrategy.CONSTANT

    @pytest.mark.parametrize("field", ["period_seconds", "max_tries"])
    def test_negative_rejected(self, field: str):
        with pytest.raises(ValidationError):
            RetryConfig(**{field: -1})


class TestSDKConfig:
    def test_all_sections_default(self):
        config = SDKConfig()
        assert config.binding == BindingConfig()
        assert config.retry == RetryConfig()

    def test_extra_sections_forbidden(self):
        with pytest.raises(ValidationError):
            SDKConfig.model_validate({"sinks": {}})
