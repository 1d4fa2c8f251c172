"""Pydantic schemas for API requests and responses."""

from replicator.schemas.common import ErrorResponse
from replicator.schemas.events import (
    BusMessageResponse,
    ChangeNotificationResponse,
    PushEnvelope,
    PushMessage
)

__all__ = [
    "BusMessageResponse",
    "ChangeNotificationResponse",
    "ErrorResponse",
    "PushEnvelope",
    "PushMessage"
]
