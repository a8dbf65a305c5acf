"""Reaction interactions on a memorial page.

Orchestrates the toggle flow end to end:

1. Reject a missing actor (401) and an unknown kind (400) before any I/O.
2. Resolve access: unknown memorial is 404; a private memorial the actor
   cannot read renders like an unknown one.
3. Toggle the reaction.
4. On "added", and only when the actor is not the owner, record or merge the
   owner's notification. This step is isolated: its failure is logged and
   never reaches the caller, whose toggle has already been committed.
5. Return the action with fresh counts and the actor's own reactions.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from memorial.auth.middleware import Viewer
from memorial.auth.permissions import require_memorial_access
from memorial.db.models import ActivityType
from memorial.errors import ApiErrorCode, UnauthenticatedError
from memorial.logging import get_logger
from memorial.schemas.reactions import ReactionsOut, ReactorListOut, ToggleReactionOut
from memorial.services.actors import ActorSources, resolve_actor_display
from memorial.services.notifications import record_or_merge_notification
from memorial.services.reactions import (
    get_reaction_counts,
    get_user_reactions,
    list_reactors,
    toggle_reaction,
    validate_reaction_kind,
)

logger = get_logger(__name__)


def handle_toggle(
    db: Session,
    memorial_id: UUID,
    actor: Viewer | None,
    kind: str,
    now: datetime | None = None,
) -> ToggleReactionOut:
    """Toggle the actor's reaction and notify the owner on a new reaction.

    Raises:
        UnauthenticatedError: No actor.
        InvalidRequestError(E_INVALID_REACTION_KIND): Unknown kind.
        NotFoundError(E_MEMORIAL_NOT_FOUND): Unknown memorial.
        AccessDeniedError: The actor may not read the memorial.
    """
    if actor is None:
        raise UnauthenticatedError()
    kind = validate_reaction_kind(kind)

    access = require_memorial_access(db, memorial_id, actor.user_id)
    owner_id = access.memorial.creator_id

    action = toggle_reaction(db, memorial_id, actor.user_id, kind, now=now)

    if action == "added" and actor.user_id != owner_id:
        _notify_owner(db, owner_id, memorial_id, actor, kind, now)

    return ToggleReactionOut(
        action=action,
        counts=get_reaction_counts(db, memorial_id),
        actor_reactions=get_user_reactions(db, memorial_id, actor.user_id),
    )


def _notify_owner(
    db: Session,
    owner_id: UUID,
    memorial_id: UUID,
    actor: Viewer,
    kind: str,
    now: datetime | None,
) -> None:
    try:
        display = resolve_actor_display(ActorSources.for_viewer(db, actor))
        record_or_merge_notification(
            db,
            recipient_id=owner_id,
            memorial_id=memorial_id,
            actor_id=actor.user_id,
            actor=display,
            activity_type=ActivityType.reaction.value,
            payload_kind=kind,
            now=now,
        )
    except Exception:
        db.rollback()
        logger.exception(
            "notification_record_failed",
            error_code=ApiErrorCode.E_DEPENDENCY_FAILURE.value,
            memorial_id=str(memorial_id),
            actor_id=str(actor.user_id),
            kind=kind,
        )


def read_reactions(db: Session, memorial_id: UUID, viewer: Viewer | None) -> ReactionsOut:
    """Counts for a memorial plus the viewer's own reactions (empty when anonymous)."""
    viewer_id = viewer.user_id if viewer is not None else None
    require_memorial_access(db, memorial_id, viewer_id)

    return ReactionsOut(
        counts=get_reaction_counts(db, memorial_id),
        actor_reactions=get_user_reactions(db, memorial_id, viewer_id) if viewer_id else [],
    )


def read_reactors(db: Session, memorial_id: UUID, viewer: Viewer | None) -> ReactorListOut:
    """Who reacted how, grouped per user, plus the counts."""
    viewer_id = viewer.user_id if viewer is not None else None
    require_memorial_access(db, memorial_id, viewer_id)

    return ReactorListOut(
        reactions=list_reactors(db, memorial_id),
        counts=get_reaction_counts(db, memorial_id),
    )
