"""Authentication and authorization module.

This module provides:
- Token verification (Supabase JWKS verifier)
- Auth middleware for FastAPI
- Request state with viewer identity
- Memorial access resolution

Note: Test-only verifiers are in tests/support/test_verifier.py
"""

from memorial.auth.middleware import AuthMiddleware, Viewer, get_optional_viewer, get_viewer
from memorial.auth.permissions import (
    MemorialAccess,
    require_memorial_access,
    resolve_memorial_access,
)
from memorial.auth.verifier import SupabaseJwksVerifier, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "get_optional_viewer",
    "MemorialAccess",
    "resolve_memorial_access",
    "require_memorial_access",
    "SupabaseJwksVerifier",
    "TokenVerifier",
]
