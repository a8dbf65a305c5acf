"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from memorial.schemas.memorial import MemorialOut
from memorial.schemas.notifications import (
    MarkAllReadOut,
    NotificationOut,
    NotificationPageOut,
    UnreadCountOut,
)
from memorial.schemas.reactions import (
    ReactionAction,
    ReactionsOut,
    ReactorListOut,
    ReactorOut,
    ToggleReactionOut,
    ToggleReactionRequest,
)

__all__ = [
    # Memorial schemas
    "MemorialOut",
    # Reaction schemas
    "ReactionAction",
    "ToggleReactionRequest",
    "ReactionsOut",
    "ToggleReactionOut",
    "ReactorOut",
    "ReactorListOut",
    # Notification schemas
    "NotificationOut",
    "NotificationPageOut",
    "UnreadCountOut",
    "MarkAllReadOut",
]
