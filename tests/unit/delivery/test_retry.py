"""
Module: test_retry.py
Description: Unit tests for backoff and retry controller wiring.
"""

from types import SimpleNamespace

import pytest

from delivery.retry import MAX_JITTER, backoff_delay, build_retrying, wait_backoff_with_jitter
from models.delivery import AttemptState, RetryableFailure, RetryPolicy, Success, DeliveryResponse


class TestBackoffDelay:
    """Test cases for the backoff formula."""

    @pytest.mark.parametrize("attempt", [0, 1, 2, 3, 6])
    def test_delay_within_bounds(self, attempt):
        for _ in range(50):
            delay = backoff_delay(attempt, 0.4)
            assert 0.4 * 2 ** attempt <= delay <= 0.4 * 2 ** attempt + MAX_JITTER

    def test_jitter_is_additive(self):
        assert backoff_delay(2, 0.4, rand=lambda low, high: low) == pytest.approx(1.6)
        assert backoff_delay(2, 0.4, rand=lambda low, high: high) == pytest.approx(1.75)

    def test_wait_strategy_uses_zero_indexed_attempt(self):
        wait = wait_backoff_with_jitter(0.4, rand=lambda low, high: 0.0)

        assert wait(SimpleNamespace(attempt_number=1)) == pytest.approx(0.4)
        assert wait(SimpleNamespace(attempt_number=3)) == pytest.approx(1.6)


class TestBuildRetrying:
    """Test cases for the tenacity controller."""

    @pytest.mark.asyncio
    async def test_stops_after_budget_and_calls_exhausted_hook(self, recording_sleep):
        policy = RetryPolicy(max_retries=2, backoff_base=0.1)
        calls = []

        async def always_fails():
            calls.append(1)
            return RetryableFailure(reason="HTTP 503", state=AttemptState.RESPONDED)

        retrying = build_retrying(
            policy, lambda state: "exhausted", sleep=recording_sleep
        )

        assert await retrying(always_fails) == "exhausted"
        assert len(calls) == 3
        assert len(recording_sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_does_not_retry_success(self, recording_sleep):
        success = Success(response=DeliveryResponse(status_code=200))

        async def succeeds():
            return success

        retrying = build_retrying(RetryPolicy(), lambda state: None, sleep=recording_sleep)

        assert await retrying(succeeds) is success
        assert recording_sleep.delays == []
