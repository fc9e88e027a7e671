"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains all data models used by the blob relay:
- BlobNotification: Downstream payload describing a new blob
- DeliveryRequest / RetryPolicy / DeliveryResponse: Delivery engine I/O
- Success / RetryableFailure / TerminalFailure: Attempt outcomes

All models are exported here for convenient importing.
"""

from .blob import BlobNotification
from .delivery import (
    AttemptState,
    DeliveryRequest,
    DeliveryResponse,
    RetryableFailure,
    RetryPolicy,
    Success,
    TerminalFailure,
)

__all__ = [
    "AttemptState",
    "BlobNotification",
    "DeliveryRequest",
    "DeliveryResponse",
    "RetryableFailure",
    "RetryPolicy",
    "Success",
    "TerminalFailure",
]
