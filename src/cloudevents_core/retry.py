"""Retry/backoff parameters for transport senders.

``RetryParams`` computes the delay before retry number *tries*;
``tenacity_kwargs`` expresses that policy as tenacity ``stop``/``wait``
strategies so senders can use ``@retry(**params.tenacity_kwargs())``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from tenacity import (
    RetryCallState,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
    wait_incrementing,
    wait_none,
)

from cloudevents_core.config.models import BackoffStrategy, SDKConfig

logger = structlog.get_logger()


def _log_backoff(state: RetryCallState) -> None:
    delay = state.next_action.sleep if state.next_action is not None else 0.0
    logger.debug("retry.backoff", tries=state.attempt_number, delay=delay)


@dataclass(frozen=True, slots=True)
class RetryParams:
    strategy: BackoffStrategy = BackoffStrategy.NONE
    period: float = 0.0
    max_tries: int = 0

    @classmethod
    def from_config(cls, config: SDKConfig) -> RetryParams:
        """Params from the ``retry`` section of a loaded SDK config."""
        return cls(
            strategy=config.retry.strategy,
            period=config.retry.period_seconds,
            max_tries=config.retry.max_tries,
        )

    @classmethod
    def constant(cls, period: float, max_tries: int) -> RetryParams:
        return cls(BackoffStrategy.CONSTANT, period, max_tries)

    @classmethod
    def linear(cls, period: float, max_tries: int) -> RetryParams:
        return cls(BackoffStrategy.LINEAR, period, max_tries)

    @classmethod
    def exponential(cls, period: float, max_tries: int) -> RetryParams:
        return cls(BackoffStrategy.EXPONENTIAL, period, max_tries)

    def backoff_for(self, tries: int) -> float:
        """Seconds to wait before retry number *tries*."""
        if self.strategy is BackoffStrategy.CONSTANT:
            return self.period
        if self.strategy is BackoffStrategy.LINEAR:
            return self.period * tries
        if self.strategy is BackoffStrategy.EXPONENTIAL:
            return self.period * 2**tries
        return 0.0

    def tenacity_kwargs(self) -> dict[str, Any]:
        """``stop``/``wait``/``before_sleep`` arguments for ``tenacity.retry``."""
        wait: Any
        if self.strategy is BackoffStrategy.CONSTANT:
            wait = wait_fixed(self.period)
        elif self.strategy is BackoffStrategy.LINEAR:
            wait = wait_incrementing(start=self.period, increment=self.period)
        elif self.strategy is BackoffStrategy.EXPONENTIAL:
            wait = wait_exponential(multiplier=self.period * 2, exp_base=2)
        else:
            wait = wait_none()
        return {
            "stop": stop_after_attempt(self.max_tries + 1),
            "wait": wait,
            "before_sleep": _log_backoff,
        }
