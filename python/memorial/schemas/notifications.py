"""Notification-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

__all__ = [
    "NotificationOut",
    "NotificationPageOut",
    "UnreadCountOut",
    "MarkAllReadOut",
]


class NotificationOut(BaseModel):
    """Response schema for a notification.

    Note: ``memorial_name`` is not stored on the notification; it is joined
    from the memorial at read time.
    """

    id: UUID
    recipient_id: UUID
    memorial_id: UUID
    memorial_name: str | None = None
    actor_id: UUID
    actor_name: str
    actor_avatar_url: str | None
    type: str
    reaction_types: list[str]
    reaction_count: int
    is_read: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationPageOut(BaseModel):
    notifications: list[NotificationOut]
    total: int
    has_more: bool


class UnreadCountOut(BaseModel):
    unread_count: int


class MarkAllReadOut(BaseModel):
    updated_count: int
