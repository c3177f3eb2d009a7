# This project was developed with assistance from AI tools.
"""Notification schemas."""

from datetime import datetime

from db.enums import NotificationType
from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    """Single notification."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    type: NotificationType
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Caller's notifications, newest first."""

    data: list[NotificationResponse]
    unread: int
