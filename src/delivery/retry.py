"""
Module: delivery/retry.py
Description: Retry mechanics for downstream delivery.

Builds the tenacity controller used by the delivery engine: stop after
max_retries + 1 attempts, exponential backoff indexed by attempt with
bounded additive jitter, and retry only on RetryableFailure outcomes.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt
from tenacity.wait import wait_base

from models.delivery import RetryableFailure, RetryPolicy
from utils.logger import get_logger

logger = get_logger(__name__)

# Upper bound of the uniform jitter added to every backoff, in seconds.
MAX_JITTER = 0.150


def backoff_delay(
    attempt: int,
    base: float,
    rand: Callable[[float, float], float] = random.uniform
) -> float:
    """
    Delay in seconds before retrying after 0-indexed attempt ``attempt``.

    Always within [base * 2**attempt, base * 2**attempt + MAX_JITTER].
    """
    return base * (2 ** attempt) + rand(0.0, MAX_JITTER)


class wait_backoff_with_jitter(wait_base):
    """Tenacity wait strategy wrapping backoff_delay."""

    def __init__(self, base: float, rand: Callable[[float, float], float] = random.uniform):
        self.base = base
        self.rand = rand

    def __call__(self, retry_state: RetryCallState) -> float:
        # attempt_number starts at 1
        return backoff_delay(retry_state.attempt_number - 1, self.base, self.rand)


def _is_retryable(outcome: Any) -> bool:
    return isinstance(outcome, RetryableFailure)


def _log_retry(policy: RetryPolicy) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        failure = retry_state.outcome.result()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Retrying downstream delivery",
            attempt=retry_state.attempt_number,
            max_retries=policy.max_retries,
            delay_ms=int(delay * 1000),
            reason=failure.reason,
            state=failure.state.value,
            status_code=failure.response.status_code if failure.response else None
        )
    return before_sleep


def build_retrying(
    policy: RetryPolicy,
    on_exhausted: Callable[[RetryCallState], Any],
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    rand: Callable[[float, float], float] = random.uniform
) -> AsyncRetrying:
    """
    Create the retry controller for one delivery.

    Args:
        policy: Retry budget and backoff base
        on_exhausted: Called with the final state when the budget runs out
            on a RetryableFailure; its return value (or exception) becomes
            the delivery result
        sleep: Coroutine used for backoff waits (asyncio.sleep by default)
        rand: Jitter source, uniform(low, high)

    Returns:
        Configured AsyncRetrying instance
    """
    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_backoff_with_jitter(policy.backoff_base, rand),
        retry=retry_if_result(_is_retryable),
        before_sleep=_log_retry(policy),
        retry_error_callback=on_exhausted,
        sleep=sleep or asyncio.sleep
    )
