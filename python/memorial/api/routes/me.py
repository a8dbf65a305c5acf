"""Current user endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from memorial.auth.middleware import Viewer, get_viewer
from memorial.responses import success_response

router = APIRouter()


@router.get("/me")
async def get_me(viewer: Annotated[Viewer, Depends(get_viewer)]) -> dict:
    """Return the authenticated viewer's id and e-mail."""
    return success_response(
        {
            "user_id": str(viewer.user_id),
            "email": viewer.email,
        }
    )
