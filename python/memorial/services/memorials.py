"""Memorial read service."""

from uuid import UUID

from sqlalchemy.orm import Session

from memorial.auth.permissions import require_memorial_access
from memorial.schemas.memorial import MemorialOut


def get_memorial_for_viewer(db: Session, memorial_id: UUID, viewer_id: UUID | None) -> MemorialOut:
    """Return a memorial with the viewer's role on it.

    Raises:
        NotFoundError(E_MEMORIAL_NOT_FOUND): Unknown memorial.
        AccessDeniedError: The viewer may not read the memorial.
    """
    access = require_memorial_access(db, memorial_id, viewer_id)
    memorial = access.memorial
    return MemorialOut(
        id=memorial.id,
        creator_id=memorial.creator_id,
        memorial_type=memorial.memorial_type,
        first_name=memorial.first_name,
        last_name=memorial.last_name,
        display_name=memorial.display_name,
        privacy_level=memorial.privacy_level,
        role=access.role,
        reason=access.reason,
    )
