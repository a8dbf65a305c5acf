"""Authentication middleware for FastAPI.

Provides:
- AuthMiddleware: Global middleware for bearer token + internal header verification
- get_viewer: Dependency for routes that require an authenticated viewer
- get_optional_viewer: Dependency for routes that also serve anonymous visitors
"""

import hmac
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from memorial.auth.verifier import TokenVerifier
from memorial.errors import ApiError, ApiErrorCode
from memorial.responses import error_response

logger = logging.getLogger(__name__)

# Header names
AUTHORIZATION_HEADER = "authorization"
INTERNAL_HEADER = "x-memorial-internal"

# Paths that don't require authentication
PUBLIC_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

# Read paths a signed-out visitor may call. A bearer token is still verified
# when present; access to private memorials is decided by the access resolver.
ANONYMOUS_READ_PATTERNS = (
    re.compile(r"^/memorials/[^/]+$"),
    re.compile(r"^/memorials/[^/]+/reactions$"),
    re.compile(r"^/memorials/[^/]+/reactions/list$"),
)


@dataclass
class Viewer:
    """Authenticated viewer identity.

    Attributes:
        user_id: The viewer's user ID (from JWT sub claim).
        email: E-mail claim, if the identity provider sent one.
        user_metadata: Identity-provider profile claims (full_name, name, avatar_url).
    """

    user_id: UUID
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, payload: dict[str, Any]) -> "Viewer":
        metadata = payload.get("user_metadata")
        return cls(
            user_id=UUID(payload["sub"]),
            email=payload.get("email") or None,
            user_metadata=metadata if isinstance(metadata, dict) else {},
        )


def allows_anonymous(method: str, path: str) -> bool:
    """Whether a request may proceed without a bearer token."""
    if method != "GET":
        return False
    return any(pattern.match(path) for pattern in ANONYMOUS_READ_PATTERNS)


class AuthMiddleware(BaseHTTPMiddleware):
    """Authentication middleware for FastAPI.

    Enforces:
    - Bearer token authentication on all non-public paths
    - Anonymous access for memorial read paths when no token is sent
    - Internal header verification in staging/prod environments
    - User bootstrap via callback

    Order of checks:
    1. Skip if public path
    2. Verify internal header (if required)
    3. Extract and parse bearer token (or continue anonymously on read paths)
    4. Verify token via TokenVerifier
    5. Call bootstrap callback to ensure the user row exists
    6. Attach Viewer (or None) to request state
    """

    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        requires_internal_header: bool = False,
        internal_secret: str | None = None,
        bootstrap_callback: Callable[[Viewer], None] | None = None,
    ):
        """Initialize the auth middleware.

        Args:
            app: The ASGI application.
            verifier: TokenVerifier implementation for JWT verification.
            requires_internal_header: Whether to enforce X-Memorial-Internal header.
            internal_secret: The expected internal secret value.
            bootstrap_callback: Function(viewer) called after successful auth
                to ensure the user row exists.
        """
        super().__init__(app)
        self.verifier = verifier
        self.requires_internal_header = requires_internal_header
        self.internal_secret = internal_secret
        self.bootstrap_callback = bootstrap_callback

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        """Process the request through auth checks."""
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        if self.requires_internal_header:
            error_response_obj = self._verify_internal_header(request)
            if error_response_obj:
                return error_response_obj

        if not request.headers.get(AUTHORIZATION_HEADER) and allows_anonymous(
            request.method, request.url.path
        ):
            request.state.viewer = None
            return await call_next(request)

        token, error_response_obj = self._extract_bearer_token(request)
        if error_response_obj:
            return error_response_obj

        try:
            payload = self.verifier.verify(token)
        except ApiError as e:
            return self._error_json_response(e.code, e.message, e.status_code)

        viewer = Viewer.from_claims(payload)

        if self.bootstrap_callback:
            try:
                self.bootstrap_callback(viewer)
            except Exception as e:
                logger.exception("Bootstrap failed for user %s: %s", viewer.user_id, e)
                return self._error_json_response(
                    ApiErrorCode.E_INTERNAL,
                    "Internal server error",
                    500,
                )

        request.state.viewer = viewer

        return await call_next(request)

    def _verify_internal_header(self, request: Request) -> JSONResponse | None:
        """Verify the internal header using constant-time comparison.

        Returns:
            JSONResponse if verification fails, None if successful.
        """
        header_value = request.headers.get(INTERNAL_HEADER)

        if header_value is None:
            logger.warning(
                "auth_failure",
                extra={"reason": "internal_header_missing", "request_path": request.url.path},
            )
            return self._error_json_response(
                ApiErrorCode.E_INTERNAL_ONLY,
                "Internal API access required",
                403,
            )

        if not self.internal_secret:
            logger.error("Internal secret not configured but header required")
            return self._error_json_response(
                ApiErrorCode.E_INTERNAL,
                "Internal server error",
                500,
            )

        if not hmac.compare_digest(header_value.encode(), self.internal_secret.encode()):
            logger.warning(
                "auth_failure",
                extra={"reason": "internal_header_mismatch", "request_path": request.url.path},
            )
            return self._error_json_response(
                ApiErrorCode.E_INTERNAL_ONLY,
                "Internal API access required",
                403,
            )

        return None

    def _extract_bearer_token(self, request: Request) -> tuple[str, JSONResponse | None]:
        """Extract bearer token from Authorization header.

        Returns:
            Tuple of (token, error_response). Token is empty string if error.
        """
        auth_header = request.headers.get(AUTHORIZATION_HEADER)

        if not auth_header:
            logger.warning(
                "auth_failure",
                extra={"reason": "missing_header", "request_path": request.url.path},
            )
            return "", self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Authentication required",
                401,
            )

        token = ""
        if auth_header.lower().startswith("bearer "):
            token = auth_header[7:].strip()

        if not token:
            logger.warning(
                "auth_failure",
                extra={"reason": "invalid_header_format", "request_path": request.url.path},
            )
            return "", self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Invalid authorization header format",
                401,
            )

        return token, None

    def _error_json_response(
        self, code: ApiErrorCode, message: str, status_code: int
    ) -> JSONResponse:
        """Create a JSON error response."""
        return JSONResponse(
            status_code=status_code,
            content=error_response(code, message),
        )


def get_optional_viewer(request: Request) -> Viewer | None:
    """FastAPI dependency for routes that serve signed-out visitors too.

    Returns:
        The authenticated Viewer, or None for an anonymous request.
    """
    return getattr(request.state, "viewer", None)


def get_viewer(request: Request) -> Viewer:
    """FastAPI dependency to get the authenticated viewer.

    Raises:
        ApiError: If viewer is not set (anonymous request or middleware didn't run).
    """
    viewer = get_optional_viewer(request)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return viewer

