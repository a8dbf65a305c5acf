"""Reaction store: per-user reactions on memorials.

One row per (memorial, user, kind). Row existence is the "has reacted" state,
so a toggle is either a delete or an insert and never an update.

Race safety:
- A duplicate add is arbitrated by the unique constraint through
  INSERT ... ON CONFLICT DO NOTHING. Losing that race still reports "added",
  because the desired end state (the reaction exists) holds.
- A concurrent remove that finds nothing to delete still reports "removed".

Counts are always aggregated live from the rows and zero-filled for every
kind, in canonical order.
"""

from collections import OrderedDict
from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from memorial.db.dialect import insert_if_absent
from memorial.db.models import REACTION_KINDS, MemorialReaction, User
from memorial.db.session import transaction
from memorial.errors import ApiErrorCode, InvalidRequestError
from memorial.logging import get_logger
from memorial.schemas.reactions import ReactionAction, ReactorOut
from memorial.services.actors import ActorSources, resolve_actor_display

logger = get_logger(__name__)

_KIND_ORDER = {kind: index for index, kind in enumerate(REACTION_KINDS)}


def validate_reaction_kind(kind: object) -> str:
    """Return ``kind`` if it is one of the five reaction kinds.

    Raises:
        InvalidRequestError(E_INVALID_REACTION_KIND): Otherwise.
    """
    if not isinstance(kind, str) or kind not in _KIND_ORDER:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REACTION_KIND,
            f"Invalid reaction kind. Expected one of: {', '.join(REACTION_KINDS)}",
        )
    return kind


def empty_counts() -> dict[str, int]:
    return OrderedDict((kind, 0) for kind in REACTION_KINDS)


def _has_reaction(db: Session, memorial_id: UUID, user_id: UUID, kind: str) -> bool:
    return (
        db.execute(
            select(MemorialReaction.id).where(
                MemorialReaction.memorial_id == memorial_id,
                MemorialReaction.user_id == user_id,
                MemorialReaction.reaction_type == kind,
            )
        ).first()
        is not None
    )


def toggle_reaction(
    db: Session,
    memorial_id: UUID,
    user_id: UUID,
    kind: str,
    now: datetime | None = None,
) -> ReactionAction:
    """Flip the user's reaction of ``kind`` on a memorial.

    Args:
        db: Database session.
        memorial_id: Memorial being reacted to. Existence is the caller's check.
        user_id: The acting user.
        kind: One of the five reaction kinds.
        now: Timestamp for a new row. Defaults to the current UTC time.

    Returns:
        "added" if the reaction exists afterwards because of this call (or a
        concurrent duplicate), "removed" if it was deleted.

    Raises:
        InvalidRequestError(E_INVALID_REACTION_KIND): Unknown kind.
    """
    kind = validate_reaction_kind(kind)
    action: ReactionAction

    with transaction(db):
        if _has_reaction(db, memorial_id, user_id, kind):
            db.execute(
                delete(MemorialReaction).where(
                    MemorialReaction.memorial_id == memorial_id,
                    MemorialReaction.user_id == user_id,
                    MemorialReaction.reaction_type == kind,
                )
            )
            action = "removed"
        else:
            inserted = insert_if_absent(
                db,
                MemorialReaction,
                {
                    "id": uuid4(),
                    "memorial_id": memorial_id,
                    "user_id": user_id,
                    "reaction_type": kind,
                    "created_at": now or datetime.now(UTC),
                },
                ["memorial_id", "user_id", "reaction_type"],
            )
            if not inserted:
                logger.info(
                    "reaction_insert_conflict",
                    memorial_id=str(memorial_id),
                    user_id=str(user_id),
                    kind=kind,
                )
            action = "added"

    logger.info(
        "reaction_toggled",
        memorial_id=str(memorial_id),
        user_id=str(user_id),
        kind=kind,
        action=action,
    )
    return action


def get_reaction_counts(db: Session, memorial_id: UUID) -> dict[str, int]:
    """Live count of reactions per kind, zero-filled, in canonical order."""
    rows = db.execute(
        select(MemorialReaction.reaction_type, func.count(MemorialReaction.id))
        .where(MemorialReaction.memorial_id == memorial_id)
        .group_by(MemorialReaction.reaction_type)
    ).all()

    counts = empty_counts()
    for kind, count in rows:
        if kind in counts:
            counts[kind] = int(count)
    return dict(counts)


def get_user_reactions(db: Session, memorial_id: UUID, user_id: UUID) -> list[str]:
    """Kinds the user currently holds on the memorial, in canonical order."""
    kinds = db.execute(
        select(MemorialReaction.reaction_type).where(
            MemorialReaction.memorial_id == memorial_id,
            MemorialReaction.user_id == user_id,
        )
    ).scalars()
    return sorted(kinds, key=lambda kind: _KIND_ORDER.get(kind, len(_KIND_ORDER)))


def list_reactors(db: Session, memorial_id: UUID) -> list[ReactorOut]:
    """Reactions on a memorial grouped per user, most recent reactor first.

    Each entry carries the user's display name (profile name, then e-mail
    local part, then the placeholder) and their kinds in canonical order.
    """
    rows = db.execute(
        select(MemorialReaction, User)
        .outerjoin(User, User.id == MemorialReaction.user_id)
        .where(MemorialReaction.memorial_id == memorial_id)
        .order_by(MemorialReaction.created_at.desc(), MemorialReaction.id)
    ).all()

    grouped: dict[UUID, dict] = {}
    for reaction, user in rows:
        entry = grouped.get(reaction.user_id)
        if entry is None:
            entry = grouped[reaction.user_id] = {
                "user": user,
                "kinds": [],
                "latest": reaction.created_at,
            }
        entry["kinds"].append(reaction.reaction_type)

    reactors = []
    for user_id, entry in grouped.items():
        display = resolve_actor_display(ActorSources.for_user(entry["user"]))
        reactors.append(
            ReactorOut(
                user_id=user_id,
                user_name=display.name,
                user_avatar_url=display.avatar_url,
                reaction_types=sorted(entry["kinds"], key=_KIND_ORDER.__getitem__),
                latest_reaction_at=entry["latest"],
            )
        )
    return reactors
