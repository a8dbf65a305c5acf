"""Notification inbox routes.

All routes require authentication and only ever touch the viewer's own
notifications.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from memorial.api.deps import get_db, get_viewer
from memorial.auth.middleware import Viewer
from memorial.responses import success_response
from memorial.schemas.notifications import MarkAllReadOut, UnreadCountOut
from memorial.services import notifications as notifications_service

router = APIRouter()


@router.get("/notifications")
def list_notifications(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    unread_only: bool = False,
    type: str | None = None,
    memorial_id: UUID | None = None,
    limit: Annotated[int, Query(ge=1)] = notifications_service.DEFAULT_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict:
    """List the viewer's notifications, newest first.

    ``limit`` is capped at NOTIFICATION_PAGE_MAX.

    Errors:
        E_INVALID_ACTIVITY_TYPE (400): Unknown type filter.
    """
    result = notifications_service.list_notifications(
        db,
        viewer.user_id,
        unread_only=unread_only,
        activity_type=type,
        memorial_id=memorial_id,
        limit=limit,
        offset=offset,
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/notifications/count")
def count_unread(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Number of unread notifications for the viewer."""
    count = notifications_service.count_unread_notifications(db, viewer.user_id)
    return success_response(UnreadCountOut(unread_count=count).model_dump(mode="json"))


@router.patch("/notifications/read-all")
def mark_all_read(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    type: str | None = None,
    memorial_id: UUID | None = None,
) -> dict:
    """Mark all of the viewer's unread notifications read, optionally filtered."""
    updated = notifications_service.mark_all_notifications_read(
        db, viewer.user_id, activity_type=type, memorial_id=memorial_id
    )
    return success_response(MarkAllReadOut(updated_count=updated).model_dump(mode="json"))


@router.patch("/notifications/{notification_id}/read")
def mark_read(
    notification_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Mark one of the viewer's notifications read.

    Errors:
        E_NOTIFICATION_NOT_FOUND (404): Unknown, or addressed to someone else.
    """
    notifications_service.mark_notification_read(db, viewer.user_id, notification_id)
    return success_response({"id": str(notification_id), "is_read": True})
