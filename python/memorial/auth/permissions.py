"""Access resolution for memorial pages.

These predicates are the single source of truth for memorial visibility.
They are used by routes and services to enforce access control consistently.

All functions:
- Accept an explicit SQLAlchemy Session
- Are pure reads with no side effects, safe to call repeatedly
- Distinguish "unknown memorial" (NotFoundError) from "not allowed"
  (a denied MemorialAccess) so logs can tell them apart

Access rules (resolve_memorial_access):
- Public memorial: everyone may read. Role is creator for the owner, the
  membership role for members, visitor for everyone else (signed out too).
- Private memorial: only the owner or a user with a membership row may read.
  A denied anonymous viewer gets reason "auth-required"; a denied signed-in
  viewer gets reason "denied".

HTTP rendering (require_memorial_access):
- auth-required renders as 401 so the client prompts a sign-in
- denied renders as the same 404 an unknown memorial gets (no existence leak)
"""

from dataclasses import dataclass
from typing import Literal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from memorial.db.models import Memorial, MemorialMember, PrivacyLevel
from memorial.errors import AccessDeniedError, ApiErrorCode, NotFoundError
from memorial.logging import get_logger

logger = get_logger(__name__)

ViewerRole = Literal["creator", "administrator", "member", "visitor", "none"]
AccessReason = Literal["public", "owner", "member", "auth-required", "denied"]


@dataclass(frozen=True)
class MemorialAccess:
    """Outcome of an access decision.

    Attributes:
        allowed: Whether the viewer may read (and act on) the memorial.
        role: The viewer's role on the memorial, "none" when denied.
        reason: Why access was granted or refused.
        memorial: The loaded memorial row.
    """

    allowed: bool
    role: ViewerRole
    reason: AccessReason
    memorial: Memorial


def get_memorial(db: Session, memorial_id: UUID) -> Memorial:
    """Load a memorial or raise NotFoundError.

    Raises:
        NotFoundError(E_MEMORIAL_NOT_FOUND): If no memorial has this id.
    """
    memorial = db.get(Memorial, memorial_id)
    if memorial is None:
        logger.info("memorial_not_found", memorial_id=str(memorial_id))
        raise NotFoundError(ApiErrorCode.E_MEMORIAL_NOT_FOUND, "Memorial not found")
    return memorial


def get_membership_role(db: Session, memorial_id: UUID, user_id: UUID) -> str | None:
    """Return the viewer's membership role on a memorial, or None."""
    return db.execute(
        select(MemorialMember.role).where(
            MemorialMember.memorial_id == memorial_id,
            MemorialMember.user_id == user_id,
        )
    ).scalar_one_or_none()


def resolve_memorial_access(
    db: Session, memorial_id: UUID, viewer_id: UUID | None
) -> MemorialAccess:
    """Decide whether a viewer may read a memorial and which role they hold.

    Args:
        db: Database session.
        memorial_id: The memorial to check.
        viewer_id: The viewer's user id, or None for an anonymous visitor.

    Returns:
        MemorialAccess describing the decision.

    Raises:
        NotFoundError(E_MEMORIAL_NOT_FOUND): If the memorial does not exist.
    """
    memorial = get_memorial(db, memorial_id)

    role: ViewerRole = "none"
    if viewer_id is not None:
        if memorial.creator_id == viewer_id:
            role = "creator"
        else:
            membership_role = get_membership_role(db, memorial_id, viewer_id)
            if membership_role is not None:
                role = membership_role  # type: ignore[assignment]

    if memorial.privacy_level == PrivacyLevel.public.value:
        if role == "none":
            role = "visitor"
        return MemorialAccess(allowed=True, role=role, reason="public", memorial=memorial)

    if role == "creator":
        return MemorialAccess(allowed=True, role=role, reason="owner", memorial=memorial)
    if role != "none":
        return MemorialAccess(allowed=True, role=role, reason="member", memorial=memorial)

    reason: AccessReason = "auth-required" if viewer_id is None else "denied"
    logger.info(
        "memorial_access_denied",
        memorial_id=str(memorial_id),
        viewer_id=str(viewer_id) if viewer_id else None,
        reason=reason,
    )
    return MemorialAccess(allowed=False, role="none", reason=reason, memorial=memorial)


def require_memorial_access(
    db: Session, memorial_id: UUID, viewer_id: UUID | None
) -> MemorialAccess:
    """Resolve access and raise if the viewer is not allowed.

    Raises:
        NotFoundError(E_MEMORIAL_NOT_FOUND): Memorial does not exist.
        AccessDeniedError: Viewer may not read the memorial.
    """
    access = resolve_memorial_access(db, memorial_id, viewer_id)
    if not access.allowed:
        raise AccessDeniedError(access.reason)
    return access
