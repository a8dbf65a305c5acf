"""Reaction API routes.

Routes are transport-only: each calls exactly one service function.

- Reading counts and the reactor list is open to anonymous visitors on
  public memorials.
- Toggling requires authentication.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from memorial.api.deps import get_db, get_optional_viewer, get_viewer
from memorial.auth.middleware import Viewer
from memorial.responses import success_response
from memorial.schemas.reactions import ToggleReactionRequest
from memorial.services import interactions as interactions_service

router = APIRouter()


@router.get("/memorials/{memorial_id}/reactions")
def get_reactions(
    memorial_id: UUID,
    viewer: Annotated[Viewer | None, Depends(get_optional_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Counts for every kind plus the viewer's own reactions.

    Errors:
        E_UNAUTHENTICATED (401): Private memorial, no signed-in viewer.
        E_MEMORIAL_NOT_FOUND (404): Unknown or unreadable memorial.
    """
    result = interactions_service.read_reactions(db, memorial_id, viewer)
    return success_response(result.model_dump(mode="json"))


@router.post("/memorials/{memorial_id}/reactions")
def toggle_reaction(
    memorial_id: UUID,
    request: ToggleReactionRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Toggle one of the viewer's reactions on a memorial.

    Returns the action taken ("added" or "removed"), the live counts and the
    viewer's reactions after the toggle.

    Errors:
        E_UNAUTHENTICATED (401): No signed-in viewer.
        E_INVALID_REACTION_KIND (400): Unknown reaction kind.
        E_MEMORIAL_NOT_FOUND (404): Unknown or unreadable memorial.
    """
    result = interactions_service.handle_toggle(db, memorial_id, viewer, request.kind)
    return success_response(result.model_dump(mode="json"))


@router.get("/memorials/{memorial_id}/reactions/list")
def list_reactions(
    memorial_id: UUID,
    viewer: Annotated[Viewer | None, Depends(get_optional_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Reactions grouped per user, most recent reactor first."""
    result = interactions_service.read_reactors(db, memorial_id, viewer)
    return success_response(result.model_dump(mode="json"))
