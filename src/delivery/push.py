"""
Module: push.py
Description: Push delivery of blob notifications to the downstream endpoint.

Implements the retrying HTTP POST: every attempt races the request
against a per-attempt deadline, its outcome is classified as success,
retryable failure or terminal failure, and tenacity schedules the
backoff between attempts.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import httpx
from tenacity import RetryCallState

from delivery.errors import DeliveryError, PayloadSerializationError
from delivery.retry import build_retrying
from models.delivery import (
    MAX_BODY_CHARS,
    AttemptOutcome,
    AttemptState,
    DeliveryRequest,
    DeliveryResponse,
    RetryableFailure,
    RetryPolicy,
    Success,
    TerminalFailure,
)
from utils.logger import get_logger

logger = get_logger(__name__)


async def _read_body(
    response: httpx.Response,
    timeout: float,
    limit: int = MAX_BODY_CHARS
) -> str:
    """
    Read at most ``limit`` characters of a streamed response.

    The body is only kept for logging: a slow, undecodable or broken body
    yields whatever was read so far and never fails the attempt.
    """
    chunks = []

    async def read() -> None:
        remaining = limit
        async for text in response.aiter_text():
            chunks.append(text[:remaining])
            remaining -= len(chunks[-1])
            if remaining <= 0:
                break

    try:
        await asyncio.wait_for(read(), timeout=timeout)
    except (asyncio.TimeoutError, httpx.HTTPError, httpx.StreamError) as e:
        logger.debug(
            "Downstream response body read incomplete",
            status_code=response.status_code,
            error=str(e) or type(e).__name__
        )
    return "".join(chunks)


class PushDeliveryClient:
    """
    HTTP client for pushing notifications downstream with retries.

    A client holds no per-delivery state; concurrent deliver() calls each
    open their own connection pool.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        """
        Initialize push delivery client.

        Args:
            transport: Optional httpx transport (used for testing)
            sleep: Coroutine used for backoff waits (asyncio.sleep by default)
        """
        self.transport = transport
        self.sleep = sleep

    async def deliver(self, request: DeliveryRequest, policy: RetryPolicy) -> DeliveryResponse:
        """
        POST the request, retrying per policy.

        Args:
            request: URL, payload and headers to send
            policy: Retry budget, per-attempt timeout and backoff

        Returns:
            The terminal response, 2xx or not

        Raises:
            PayloadSerializationError: If the payload is not JSON serialisable
            DeliveryError: If transport failures exhaust the retry budget
        """
        try:
            body = request.body()
        except (TypeError, ValueError) as e:
            raise PayloadSerializationError(f"Payload is not JSON serialisable: {e}") from e

        timeout = httpx.Timeout(policy.per_attempt_timeout)
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            retrying = build_retrying(policy, self._exhausted(policy), sleep=self.sleep)
            outcome = await retrying(self._attempt, client, request, body, policy)

        if isinstance(outcome, Success):
            logger.info(
                "Downstream delivery succeeded",
                url=request.url,
                status_code=outcome.response.status_code,
                response_time_ms=outcome.response.elapsed_ms
            )
            return outcome.response

        logger.warning(
            "Downstream delivery rejected",
            url=request.url,
            status_code=outcome.response.status_code,
            reason=outcome.reason
        )
        return outcome.response

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        request: DeliveryRequest,
        body: bytes,
        policy: RetryPolicy
    ) -> AttemptOutcome:
        """Run a single attempt and classify its outcome."""
        state = AttemptState.PENDING
        started = time.monotonic()

        logger.debug("Attempting downstream delivery", url=request.url)

        http_request = client.build_request(
            "POST", request.url, content=body, headers=request.headers
        )

        # The deadline covers sending and receiving headers; the body is read afterwards.
        try:
            http_response = await asyncio.wait_for(
                client.send(http_request, stream=True),
                timeout=policy.per_attempt_timeout
            )
            state = AttemptState.RESPONDED
        except (asyncio.TimeoutError, httpx.TimeoutException):
            state = AttemptState.TIMED_OUT
            reason = f"timeout ({int(policy.per_attempt_timeout * 1000)}ms)"
            return RetryableFailure(reason=reason, state=state)
        except httpx.TransportError as e:
            state = AttemptState.TRANSPORT_ERROR
            reason = str(e) or type(e).__name__
            return RetryableFailure(reason=reason, state=state)

        try:
            text = await _read_body(http_response, policy.per_attempt_timeout)
        finally:
            await http_response.aclose()
        response = DeliveryResponse(
            status_code=http_response.status_code,
            body=text,
            elapsed_ms=(time.monotonic() - started) * 1000
        )

        if response.is_success:
            return Success(response=response)

        reason = f"HTTP {response.status_code}"
        if policy.is_retryable_status(response.status_code):
            return RetryableFailure(reason=reason, state=state, response=response)
        return TerminalFailure(reason=reason, state=state, response=response)

    @staticmethod
    def _exhausted(policy: RetryPolicy) -> Callable[[RetryCallState], AttemptOutcome]:
        def on_exhausted(retry_state: RetryCallState) -> AttemptOutcome:
            failure = retry_state.outcome.result()
            if failure.response is not None:
                return TerminalFailure(
                    reason=f"{failure.reason} after {policy.max_retries} retries",
                    state=failure.state,
                    response=failure.response
                )
            logger.error(
                "Downstream delivery failed",
                retries=policy.max_retries,
                reason=failure.reason,
                state=failure.state.value
            )
            raise DeliveryError(reason=failure.reason, retries=policy.max_retries)
        return on_exhausted


async def deliver(
    request: DeliveryRequest,
    policy: RetryPolicy,
    client: Optional[PushDeliveryClient] = None
) -> DeliveryResponse:
    """Deliver ``request`` with a default PushDeliveryClient unless one is given."""
    return await (client or PushDeliveryClient()).deliver(request, policy)
