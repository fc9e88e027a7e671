"""
Module: errors.py
Description: Error taxonomy for the blob relay.

Only ConfigurationError, PayloadSerializationError and DeliveryError
leave the delivery engine. DownstreamRejectionError is raised by the
caller when its fail-on-non-2xx policy turns a returned rejection into
an invocation failure.
"""


class RelayError(Exception):
    """Base class for errors that should fail the invocation."""


class ConfigurationError(RelayError):
    """Required configuration is missing or invalid; raised before any network call."""


class PayloadSerializationError(RelayError):
    """The request payload could not be serialised to JSON. Never retried."""


class DeliveryError(RelayError):
    """
    Transport failure that survived the whole retry budget.

    Attributes:
        reason:  Description of the last transport failure (e.g. "timeout (8000ms)").
        retries: Number of retries made after the first attempt.
    """

    def __init__(self, *, reason: str, retries: int) -> None:
        self.reason = reason
        self.retries = retries
        super().__init__(f"Downstream request failed after {retries} retries: {reason}")


class DownstreamRejectionError(RelayError):
    """
    Downstream answered with a non-2xx status and policy treats that as failure.

    Attributes:
        status_code: Final HTTP status returned by downstream.
    """

    def __init__(self, *, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Downstream call failed with {status_code}")
