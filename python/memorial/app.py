"""FastAPI application creation and configuration.

Registers exception handlers, auth middleware, request-id middleware and
routes.

Token Verification:
- All environments use SupabaseJwksVerifier; only env values differ
- Tests pass their own verifier through ``create_app(token_verifier=...)``

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures all requests (including auth failures) get X-Request-ID

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AuthMiddleware (verifies auth, bootstraps the user row, sets viewer)
3. Route handler
4. RequestIDMiddleware (logs, sets response header)
"""

import json

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from memorial.api.routes import create_api_router
from memorial.auth.middleware import AuthMiddleware, Viewer
from memorial.auth.verifier import SupabaseJwksVerifier, TokenVerifier
from memorial.config import get_settings
from memorial.db.session import get_session_factory, session_scope
from memorial.errors import ApiError, ApiErrorCode
from memorial.logging import configure_logging, get_logger
from memorial.middleware.request_id import RequestIDMiddleware
from memorial.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
)
from memorial.services.bootstrap import ensure_user

logger = get_logger(__name__)


def create_bootstrap_callback(session_factory: sessionmaker[Session] | None = None):
    """Create a bootstrap callback that opens its own database session.

    The auth middleware calls it for every authenticated request, before the
    route's own session exists.
    """

    def bootstrap(viewer: Viewer) -> None:
        with session_scope(session_factory or get_session_factory()) as db:
            ensure_user(db, viewer)

    return bootstrap


def create_token_verifier() -> SupabaseJwksVerifier:
    """Create the token verifier from the Supabase settings."""
    settings = get_settings()

    return SupabaseJwksVerifier(
        jwks_url=settings.supabase_jwks_url,  # type: ignore[arg-type]
        issuer=settings.normalized_issuer,  # type: ignore[arg-type]
        audiences=settings.audience_list,
    )


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier: TokenVerifier | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        token_verifier: Optional custom token verifier (for testing).
        session_factory: Session factory for the auth bootstrap. Defaults to
            the application factory.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json)

    app = FastAPI(
        title="Memorial API",
        description="Reactions and owner notifications for memorial pages",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors (including a missing kind)."""
        return JSONResponse(
            status_code=400,
            content=error_response(ApiErrorCode.E_INVALID_REQUEST, "Invalid request"),
        )

    @app.middleware("http")
    async def catch_json_decode_errors(request: Request, call_next):
        """Reject malformed JSON bodies before they reach route handlers."""
        if request.method in ("POST", "PUT", "PATCH"):
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                body = await request.body()
                if body:
                    try:
                        json.loads(body)
                    except json.JSONDecodeError:
                        return JSONResponse(
                            status_code=400,
                            content=error_response(
                                ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body"
                            ),
                        )
        return await call_next(request)

    app.include_router(create_api_router())

    if not skip_auth_middleware:
        app.add_middleware(
            AuthMiddleware,
            verifier=token_verifier or create_token_verifier(),
            requires_internal_header=settings.requires_internal_header,
            internal_secret=settings.memorial_internal_secret,
            bootstrap_callback=create_bootstrap_callback(session_factory),
        )

        logger.info(
            "auth_middleware_enabled",
            env=settings.memorial_env.value,
            internal_header_required=settings.requires_internal_header,
        )

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    Call this AFTER all other middleware is added, so it runs FIRST and every
    response carries X-Request-ID, auth failures included.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
