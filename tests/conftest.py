"""
Module: conftest.py
Description: Shared pytest fixtures for blob relay tests.

Provides test settings that ignore the environment, a retry policy,
a recording sleep so backoff never actually waits, and ready-made
delivery requests.
"""

import pytest

from config.settings import Settings
from delivery.push import PushDeliveryClient
from models.blob import BlobNotification
from models.delivery import DeliveryRequest, RetryPolicy

DOWNSTREAM_URL = "https://downstream.example.com/api/blob-created"


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def downstream_url():
    return DOWNSTREAM_URL


@pytest.fixture
def test_settings():
    """
    Provide test configuration settings.

    Disables .env loading and sets every field explicitly so tests do
    not depend on the environment they run in.
    """
    return Settings(
        _env_file=None,
        log_level="DEBUG",
        downstream_function_url=DOWNSTREAM_URL,
        downstream_function_key="test-function-key",
        fail_on_non_2xx=True,
        max_retries=3,
        timeout_ms=8000,
        retry_base_ms=400,
        retry_status_codes="408,429,500,502,503,504"
    )


@pytest.fixture
def retry_policy(test_settings):
    return test_settings.retry_policy()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def push_client(recording_sleep):
    """PushDeliveryClient whose backoff waits are recorded, not slept."""
    return PushDeliveryClient(sleep=recording_sleep)


@pytest.fixture
def sample_notification():
    return BlobNotification(container="my-container", name="reports/2024/q1.csv", size=1024)


@pytest.fixture
def delivery_request(sample_notification):
    return DeliveryRequest(
        url=DOWNSTREAM_URL,
        payload=sample_notification.to_payload(),
        headers={"content-type": "application/json", "x-functions-key": "test-function-key"}
    )


@pytest.fixture
def fast_policy():
    """Policy with no backoff base so only jitter is recorded."""
    return RetryPolicy(
        max_retries=3,
        per_attempt_timeout=8.0,
        backoff_base=0.0,
        retryable_status_codes=frozenset({408, 429, 500, 502, 503, 504})
    )
