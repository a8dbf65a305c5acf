"""FastAPI dependencies for route handlers.

Common dependencies like database sessions and the viewer.
"""

from memorial.auth.middleware import get_optional_viewer, get_viewer
from memorial.db.session import get_db, get_session_factory

__all__ = ["get_db", "get_optional_viewer", "get_session_factory", "get_viewer"]
