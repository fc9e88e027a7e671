"""
Module: blob_watcher.py
Description: Lambda entry point relaying new-blob notifications downstream.

Validates configuration, builds the {"Container", "Name", "Size"}
payload from the trigger, hands it to the delivery engine and applies
the fail-on-non-2xx policy to the result. Any raised error leaves the
event unprocessed so the platform redelivers it.
"""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import unquote_plus

from config.settings import Settings, get_settings
from delivery.errors import ConfigurationError, DeliveryError, DownstreamRejectionError
from delivery.push import PushDeliveryClient
from models.blob import BlobNotification
from models.delivery import DeliveryRequest, DeliveryResponse
from utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def build_headers(settings: Settings) -> Dict[str, str]:
    """Request headers; the function key is only sent when configured."""
    headers = {"content-type": "application/json"}
    if settings.downstream_function_key:
        headers["x-functions-key"] = settings.downstream_function_key
    return headers


def require_downstream_url(settings: Settings) -> str:
    """
    Return the configured downstream URL.

    Raises:
        ConfigurationError: If the URL is missing or not HTTP/HTTPS
    """
    url = settings.downstream_function_url.strip()
    if not url:
        logger.error("Config error: DOWNSTREAM_FUNCTION_URL is not set")
        raise ConfigurationError("Missing DOWNSTREAM_FUNCTION_URL")
    if not url.startswith(('http://', 'https://')):
        logger.error("Config error: DOWNSTREAM_FUNCTION_URL is not an HTTP/HTTPS URL", url=url)
        raise ConfigurationError("DOWNSTREAM_FUNCTION_URL must be a valid HTTP/HTTPS URL")
    return url


async def relay_notification(
    notification: BlobNotification,
    settings: Settings,
    client: Optional[PushDeliveryClient] = None
) -> DeliveryResponse:
    """
    Forward one notification downstream.

    Args:
        notification: Container, name and size of the new blob
        settings: Relay configuration
        client: Delivery client (a default one is created if omitted)

    Returns:
        Terminal downstream response

    Raises:
        ConfigurationError: If the downstream URL is not configured
        DeliveryError: If transport failures exhaust the retry budget
        DownstreamRejectionError: If the response is non-2xx and
            fail_on_non_2xx is set
    """
    url = require_downstream_url(settings)
    client = client or PushDeliveryClient()

    logger.info(
        "New blob detected",
        path=notification.path,
        size=notification.size
    )
    logger.info("Posting to downstream", url=url)

    request = DeliveryRequest(
        url=url,
        payload=notification.to_payload(),
        headers=build_headers(settings)
    )

    try:
        response = await client.deliver(request, settings.retry_policy())
    except DeliveryError as e:
        logger.error("Downstream final error", error=str(e), retries=e.retries)
        raise

    logger.info(
        "Downstream returned",
        status_code=response.status_code,
        body=response.body
    )

    if not response.is_success and settings.fail_on_non_2xx:
        raise DownstreamRejectionError(status_code=response.status_code)

    return response


async def relay_blob(
    blob: Any,
    trigger_metadata: Optional[Dict[str, Any]],
    settings: Settings,
    client: Optional[PushDeliveryClient] = None
) -> DeliveryResponse:
    """Build a notification from a blob trigger and relay it."""
    notification = BlobNotification.from_trigger(blob, trigger_metadata)
    return await relay_notification(notification, settings, client)


def notifications_from_s3_event(event: Dict[str, Any]) -> List[BlobNotification]:
    """
    Convert S3 ObjectCreated records into notifications.

    Object keys arrive URL-encoded and are decoded before forwarding.
    """
    notifications = []
    for record in event.get('Records', []):
        s3 = record.get('s3')
        if not s3:
            continue
        obj = s3.get('object', {})
        notifications.append(BlobNotification(
            container=s3.get('bucket', {}).get('name', ''),
            name=unquote_plus(obj.get('key', '')),
            size=int(obj.get('size') or 0)
        ))
    return notifications


async def _relay_event(
    event: Dict[str, Any],
    settings: Settings,
    client: Optional[PushDeliveryClient]
) -> List[DeliveryResponse]:
    require_downstream_url(settings)

    if 'Records' in event:
        responses = []
        for notification in notifications_from_s3_event(event):
            responses.append(await relay_notification(notification, settings, client))
        return responses

    response = await relay_blob(
        event.get('blob'), event.get('triggerMetadata'), settings, client
    )
    return [response]


def handler(
    event: Dict[str, Any],
    context: Any,
    settings: Optional[Settings] = None,
    client: Optional[PushDeliveryClient] = None
) -> Dict[str, Any]:
    """
    Lambda handler for new-blob notifications.

    Accepts either an S3 ObjectCreated notification or a direct
    invocation of the form {"blob": ..., "triggerMetadata": {...}}.

    Args:
        event: Trigger event
        context: Lambda context
        settings: Relay configuration (loaded from the environment if omitted)
        client: Delivery client override

    Returns:
        Status codes of the downstream responses
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    responses = asyncio.run(_relay_event(event, settings, client))
    return {'statusCodes': [response.status_code for response in responses]}
