"""Entry points for change-feed notifications and bus push deliveries."""

import base64
import binascii

from fastapi import APIRouter, Depends, Request

from common.logging_config import get_logger
from replicator.exceptions import MalformedInputError, MisconfiguredError
from replicator.replication.consumer import ChangeConsumer
from replicator.replication.publisher import ChangePublisher
from replicator.schemas import (
    BusMessageResponse,
    ChangeNotificationResponse,
    ErrorResponse,
    PushEnvelope
)

logger = get_logger(__name__)

router = APIRouter(
    prefix="/events",
    tags=["Events"],
    responses={503: {"model": ErrorResponse}}
)


def _config_error(request: Request) -> MisconfiguredError:
    reason = getattr(request.app.state, "config_error", None) or "replication is not configured"
    return MisconfiguredError(reason)


def get_publisher(request: Request) -> ChangePublisher:
    """Dependency to get the change publisher owned by the application"""
    publisher = getattr(request.app.state, "publisher", None)
    if publisher is None:
        raise _config_error(request)
    return publisher


def get_consumer(request: Request) -> ChangeConsumer:
    """Dependency to get the change consumer owned by the application"""
    consumer = getattr(request.app.state, "consumer", None)
    if consumer is None:
        raise _config_error(request)
    return consumer


@router.post("/change", response_model=ChangeNotificationResponse)
async def receive_change(
    request: Request,
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Handle a local change-feed notification.

    The request body is the raw change event. Malformed notifications are
    acknowledged with status "dropped" so they are not redelivered.

    Raises:
        - 503: Bus or store unavailable, or service misconfigured
    """
    data = await request.body()
    result = await publisher.handle_notification(data)
    return ChangeNotificationResponse(status=result.outcome.value, message_id=result.message_id)


@router.post("/bus", response_model=BusMessageResponse)
async def receive_bus_message(
    envelope: PushEnvelope,
    consumer: ChangeConsumer = Depends(get_consumer)
):
    """
    Handle a message pushed by the bus subscription.

    Raises:
        - 200 with status "dropped": Message data is not valid base64
        - 503: Store unavailable or service misconfigured
    """
    message = envelope.message

    try:
        payload = base64.b64decode(message.data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedInputError(
            f"Bus message data is not base64 [message_id={message.message_id}]"
        ) from e

    outcome = consumer.handle_message(message.attributes, payload)

    logger.debug(
        f"Processed bus message [message_id={message.message_id}, "
        f"ordering_key={message.ordering_key}, outcome={outcome.value}]"
    )

    return BusMessageResponse(status=outcome.value)
