"""Pydantic configuration models for the SDK."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cloudevents_core.formats import JSON_MEDIA_TYPE


class BackoffStrategy(StrEnum):
    """Supported backoff strategies."""

    NONE = "none"
    CONSTANT = "constant"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class BindingConfig(BaseModel):
    """Knobs for the encoding router.

    The ``skip_direct_*`` flags force materialization even when the target
    writer could accept the source encoding directly.
    """

    skip_direct_structured_encoding: bool = False
    skip_direct_binary_encoding: bool = False
    preferred_event_encoding: Literal["binary", "structured"] = "binary"
    structured_format: str = JSON_MEDIA_TYPE


class RetryConfig(BaseModel):
    """Retry / backoff configuration for transport senders."""

    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    period_seconds: float = Field(default=0.1, ge=0)
    max_tries: int = Field(default=5, ge=0)


class SDKConfig(BaseModel):
    """Top-level SDK configuration."""

    model_config = ConfigDict(extra="forbid")

    binding: BindingConfig = Field(default_factory=BindingConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
