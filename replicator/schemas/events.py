"""Pydantic schemas for change-feed and bus push endpoints."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PushMessage(BaseModel):
    """Message delivered by a bus push subscription."""
    model_config = ConfigDict(populate_by_name=True)

    attributes: Dict[str, str] = Field(default_factory=dict)
    data: str = ""
    message_id: Optional[str] = Field(default=None, alias="messageId")
    ordering_key: Optional[str] = Field(default=None, alias="orderingKey")


class PushEnvelope(BaseModel):
    """Envelope wrapping a pushed bus message."""
    message: PushMessage
    subscription: Optional[str] = None


class ChangeNotificationResponse(BaseModel):
    """Response model for a processed change-feed notification."""
    status: str
    message_id: Optional[str] = None


class BusMessageResponse(BaseModel):
    """Response model for a processed bus message."""
    status: str
