"""SDK configuration: pydantic models and the YAML loader."""

from cloudevents_core.config.loader import load_sdk_config
from cloudevents_core.config.models import (
    BackoffStrategy,
    BindingConfig,
    RetryConfig,
    SDKConfig,
)

__all__ = [
    "BackoffStrategy",
    "BindingConfig",
    "RetryConfig",
    "SDKConfig",
    "load_sdk_config",
]
