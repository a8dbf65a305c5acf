"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from memorial.api.routes.health import router as health_router
from memorial.api.routes.me import router as me_router
from memorial.api.routes.memorials import router as memorials_router
from memorial.api.routes.notifications import router as notifications_router
from memorial.api.routes.reactions import router as reactions_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(me_router, tags=["user"])
    api_router.include_router(memorials_router, tags=["memorials"])
    api_router.include_router(reactions_router, tags=["reactions"])
    api_router.include_router(notifications_router, tags=["notifications"])
    return api_router


__all__ = ["create_api_router"]
