"""
Module: delivery.py
Description: Delivery data models for the blob relay.

Defines the request handed to the delivery engine, the retry policy
it runs under, the per-attempt outcome variants and the terminal
response it returns.

Key Components:
- DeliveryRequest: URL, payload and headers for one delivery
- RetryPolicy: Read-only retry/timeout/backoff configuration
- AttemptState: States of a single attempt
- Success / RetryableFailure / TerminalFailure: Attempt outcomes
- DeliveryResponse: Terminal HTTP response with bounded body

Dependencies: pydantic, enum, typing
"""

import json
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Response bodies are only kept for logging, never beyond this many characters.
MAX_BODY_CHARS = 2000

JsonValue = Any
Payload = Union[str, bytes, JsonValue]


class DeliveryRequest(BaseModel):
    """
    One notification to POST downstream.

    Attributes:
        url: Absolute downstream URL
        payload: Text, raw bytes or any JSON-serialisable value
        headers: Sent verbatim with every attempt
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1, description="Downstream URL")
    payload: Payload = Field(default=None, description="Request body")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")

    def body(self) -> bytes:
        """
        Serialise the payload to request bytes.

        Raises:
            TypeError, ValueError: If a structured payload is not JSON serialisable
        """
        if isinstance(self.payload, (bytes, bytearray)):
            return bytes(self.payload)
        if isinstance(self.payload, str):
            return self.payload.encode("utf-8")
        return json.dumps(
            self.payload, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")


class RetryPolicy(BaseModel):
    """Retry configuration, built once at start-up and shared read-only."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0)
    per_attempt_timeout: float = Field(default=8.0, gt=0, description="Seconds")
    backoff_base: float = Field(default=0.4, ge=0, description="Seconds")
    retryable_status_codes: FrozenSet[int] = Field(
        default=frozenset({408, 429, 500, 502, 503, 504})
    )

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.retryable_status_codes


class AttemptState(str, Enum):
    """Lifecycle of a single attempt: PENDING resolves to exactly one other state."""

    PENDING = "pending"
    TIMED_OUT = "timed_out"
    RESPONDED = "responded"
    TRANSPORT_ERROR = "transport_error"


class DeliveryResponse(BaseModel):
    """
    Terminal downstream response.

    Attributes:
        status_code: HTTP status returned by downstream
        body: Response text, truncated to MAX_BODY_CHARS
        elapsed_ms: Time spent on the attempt that produced this response
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: str = ""
    elapsed_ms: float = 0.0

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class Success(BaseModel):
    """2xx response; ends the attempt loop."""

    model_config = ConfigDict(frozen=True)

    response: DeliveryResponse


class RetryableFailure(BaseModel):
    """Transient failure; retried while budget remains."""

    model_config = ConfigDict(frozen=True)

    reason: str
    state: AttemptState
    response: Optional[DeliveryResponse] = None


class TerminalFailure(BaseModel):
    """Failure after which no further attempt is made."""

    model_config = ConfigDict(frozen=True)

    reason: str
    state: AttemptState
    response: Optional[DeliveryResponse] = None


AttemptOutcome = Union[Success, RetryableFailure, TerminalFailure]
