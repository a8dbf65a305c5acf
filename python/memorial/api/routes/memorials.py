"""Memorial read route."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from memorial.api.deps import get_db, get_optional_viewer
from memorial.auth.middleware import Viewer
from memorial.responses import success_response
from memorial.services import memorials as memorials_service

router = APIRouter()


@router.get("/memorials/{memorial_id}")
def get_memorial(
    memorial_id: UUID,
    viewer: Annotated[Viewer | None, Depends(get_optional_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a memorial and the viewer's role on it.

    Anonymous visitors may read public memorials.

    Errors:
        E_UNAUTHENTICATED (401): Private memorial, no signed-in viewer.
        E_MEMORIAL_NOT_FOUND (404): Unknown memorial, or private and the
            viewer is neither owner nor member.
    """
    result = memorials_service.get_memorial_for_viewer(
        db, memorial_id, viewer.user_id if viewer else None
    )
    return success_response(result.model_dump(mode="json"))
