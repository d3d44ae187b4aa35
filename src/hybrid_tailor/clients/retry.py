"""Time-budgeted retry around a single completion call."""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_delay,
)
from tenacity.stop import stop_base

from hybrid_tailor.config import RetryConfig
from hybrid_tailor.errors import CompletionError, ErrorCode

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Rate limits and transient API errors are worth another attempt."""
    return isinstance(exc, CompletionError) and exc.transient


class stop_after_api_errors(stop_base):
    """Stop once non-rate-limit failures have used up ``max_retries``.

    Rate-limit errors do not count; they are bounded by the time budget only.
    The count lives on the retry state, so one instance can serve many calls.
    """

    def __init__(self, max_retries: int):
        self.max_retries = max_retries

    def __call__(self, retry_state: RetryCallState) -> bool:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, CompletionError) and exc.code is ErrorCode.RATE_LIMIT:
            return False
        api_errors = getattr(retry_state, "api_errors", 0) + 1
        retry_state.api_errors = api_errors
        return api_errors > self.max_retries


class wait_backoff:
    """Exponential backoff with jitter, honouring retry-after, capped to the budget."""

    def __init__(self, config: RetryConfig, budget_s: float):
        self.config = config
        self.budget_s = budget_s

    def __call__(self, retry_state: RetryCallState) -> float:
        cfg = self.config
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, CompletionError) and exc.retry_after is not None:
            delay = exc.retry_after
        else:
            base = cfg.initial_delay_ms * cfg.backoff_multiplier ** (retry_state.attempt_number - 1)
            base = min(base, cfg.max_delay_ms)
            jitter = base * cfg.jitter_factor * (2 * random.random() - 1)
            delay = max(0.0, base + jitter) / 1000
        remaining = self.budget_s - (retry_state.seconds_since_start or 0.0)
        return max(0.0, min(delay, remaining))


async def with_retry(
    call: Callable[[], Awaitable[T]],
    *,
    time_budget_ms: int,
    config: RetryConfig | None = None,
) -> T:
    """Run ``call``, retrying transient failures until the time budget is spent.

    RATE_LIMIT errors are retried for as long as the budget allows; other
    transient API errors at most ``config.max_retries`` times. AUTH_ERROR and
    any non-transient failure propagate immediately. When retries are
    exhausted the last error is re-raised unchanged.
    """
    config = config or RetryConfig()
    budget_s = time_budget_ms / 1000

    retrying = AsyncRetrying(
        retry=retry_if_exception(is_transient),
        stop=stop_after_delay(budget_s) | stop_after_api_errors(config.max_retries),
        wait=wait_backoff(config, budget_s),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await call()
    raise AssertionError("unreachable")  # pragma: no cover
