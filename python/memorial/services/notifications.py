"""Notification aggregation and inbox queries.

Activity by one actor on one memorial is folded into a single notification
for the memorial owner instead of one notification per event.

Merge key: (recipient_id, memorial_id, actor_id, type)
Merge window: records whose created_at lies within the last
NOTIFICATION_MERGE_WINDOW_HOURS (default 24). The window is anchored on
created_at, so a merge does not extend it; once a record ages out it is
history and the next activity opens a new record.

On merge:
- the payload kind is added to the accumulated set (no duplicates)
- reaction_count is set to the size of that set
- is_read is forced back to false and updated_at is bumped

Two concurrent recordings for the same key are serialized by a key lock so
they never produce two open records.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from memorial.config import get_settings
from memorial.db.models import ActivityType, Memorial, Notification
from memorial.db.session import transaction
from memorial.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from memorial.logging import get_logger
from memorial.schemas.notifications import NotificationOut, NotificationPageOut
from memorial.services.actors import ActorDisplay
from memorial.services.locks import key_lock

logger = get_logger(__name__)

DEFAULT_MEMORIAL_NAME = "Gedenkseite"
DEFAULT_PAGE_SIZE = 20

_ACTIVITY_TYPES = {activity.value for activity in ActivityType}


def validate_activity_type(activity_type: str) -> str:
    if activity_type not in _ACTIVITY_TYPES:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_ACTIVITY_TYPE,
            f"Invalid notification type. Expected one of: {', '.join(sorted(_ACTIVITY_TYPES))}",
        )
    return activity_type


# =============================================================================
# Aggregation
# =============================================================================


def record_or_merge_notification(
    db: Session,
    *,
    recipient_id: UUID,
    memorial_id: UUID,
    actor_id: UUID,
    actor: ActorDisplay,
    activity_type: str,
    payload_kind: str,
    now: datetime | None = None,
    window: timedelta | None = None,
) -> Notification:
    """Create a notification or fold the activity into the open one.

    Commits its own transaction. Callers that must not fail because of a
    notification wrap this call and log instead of raising.

    Args:
        db: Database session.
        recipient_id: The memorial owner being notified.
        memorial_id: The memorial the activity happened on.
        actor_id: The user who acted.
        actor: Display name and avatar for the actor, snapshotted on write.
        activity_type: One of reaction, condolence_entry, post.
        payload_kind: The detail to accumulate (the reaction kind for reactions).
        now: Current time. Defaults to UTC now.
        window: Merge window. Defaults to the configured window.

    Returns:
        The created or updated notification.

    Raises:
        InvalidRequestError(E_INVALID_ACTIVITY_TYPE): Unknown activity type.
    """
    activity_type = validate_activity_type(activity_type)
    now = now or datetime.now(UTC)
    window = window if window is not None else get_settings().notification_merge_window
    cutoff = now - window

    with key_lock(db, "notification", recipient_id, memorial_id, actor_id, activity_type):
        with transaction(db):
            existing = db.execute(
                select(Notification)
                .where(
                    Notification.recipient_id == recipient_id,
                    Notification.memorial_id == memorial_id,
                    Notification.actor_id == actor_id,
                    Notification.type == activity_type,
                    Notification.created_at >= cutoff,
                )
                .order_by(Notification.created_at.desc())
                .limit(1)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()

            if existing is not None:
                kinds = list(existing.reaction_types or [])
                if payload_kind not in kinds:
                    kinds.append(payload_kind)
                # Assign a new list so the JSON column is flagged dirty
                existing.reaction_types = kinds
                existing.reaction_count = len(kinds)
                existing.is_read = False
                existing.updated_at = now
                notification = existing
                event = "notification_merged"
            else:
                notification = Notification(
                    id=uuid4(),
                    recipient_id=recipient_id,
                    memorial_id=memorial_id,
                    actor_id=actor_id,
                    actor_name=actor.name,
                    actor_avatar_url=actor.avatar_url,
                    type=activity_type,
                    reaction_types=[payload_kind],
                    reaction_count=1,
                    is_read=False,
                    created_at=now,
                    updated_at=now,
                )
                db.add(notification)
                event = "notification_created"

    logger.info(
        event,
        notification_id=str(notification.id),
        recipient_id=str(recipient_id),
        memorial_id=str(memorial_id),
        actor_id=str(actor_id),
        type=activity_type,
        reaction_count=notification.reaction_count,
    )
    return notification


# =============================================================================
# Inbox queries
# =============================================================================


def _memorial_name(first_name: str | None, last_name: str | None) -> str:
    name = " ".join(part for part in (first_name, last_name) if part)
    return name or DEFAULT_MEMORIAL_NAME


def _inbox_filters(
    recipient_id: UUID,
    unread_only: bool,
    activity_type: str | None,
    memorial_id: UUID | None,
) -> list:
    filters = [Notification.recipient_id == recipient_id]
    if unread_only:
        filters.append(Notification.is_read.is_(False))
    if activity_type is not None:
        filters.append(Notification.type == validate_activity_type(activity_type))
    if memorial_id is not None:
        filters.append(Notification.memorial_id == memorial_id)
    return filters


def list_notifications(
    db: Session,
    recipient_id: UUID,
    *,
    unread_only: bool = False,
    activity_type: str | None = None,
    memorial_id: UUID | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> NotificationPageOut:
    """List the recipient's notifications, most recently created first.

    ``limit`` is clamped to NOTIFICATION_PAGE_MAX.

    Raises:
        InvalidRequestError: If limit < 1, offset < 0 or the type is unknown.
    """
    if limit < 1:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "limit must be at least 1")
    if offset < 0:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "offset must not be negative")
    limit = min(limit, get_settings().notification_page_max)

    filters = _inbox_filters(recipient_id, unread_only, activity_type, memorial_id)

    total = db.execute(select(func.count(Notification.id)).where(*filters)).scalar_one()

    rows = db.execute(
        select(Notification, Memorial.first_name, Memorial.last_name)
        .outerjoin(Memorial, Memorial.id == Notification.memorial_id)
        .where(*filters)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()

    notifications = []
    for notification, first_name, last_name in rows:
        out = NotificationOut.model_validate(notification)
        out.memorial_name = _memorial_name(first_name, last_name)
        notifications.append(out)

    return NotificationPageOut(
        notifications=notifications,
        total=total,
        has_more=offset + len(notifications) < total,
    )


def count_unread_notifications(db: Session, recipient_id: UUID) -> int:
    return db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == recipient_id,
            Notification.is_read.is_(False),
        )
    ).scalar_one()


def mark_notification_read(db: Session, recipient_id: UUID, notification_id: UUID) -> None:
    """Mark one of the recipient's notifications read. Idempotent.

    Raises:
        NotFoundError(E_NOTIFICATION_NOT_FOUND): If the notification does not
            exist or belongs to someone else.
    """
    with transaction(db):
        result = db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
            )
            .values(is_read=True)
        )
        if result.rowcount == 0:
            raise NotFoundError(ApiErrorCode.E_NOTIFICATION_NOT_FOUND, "Notification not found")

    logger.info(
        "notification_marked_read",
        notification_id=str(notification_id),
        recipient_id=str(recipient_id),
    )


def mark_all_notifications_read(
    db: Session,
    recipient_id: UUID,
    *,
    activity_type: str | None = None,
    memorial_id: UUID | None = None,
) -> int:
    """Mark every unread notification of the recipient read.

    Returns:
        Number of notifications that changed state.
    """
    filters = _inbox_filters(recipient_id, True, activity_type, memorial_id)
    with transaction(db):
        result = db.execute(update(Notification).where(*filters).values(is_read=True))
        updated = result.rowcount

    logger.info(
        "notifications_marked_read",
        recipient_id=str(recipient_id),
        updated_count=updated,
    )
    return updated
