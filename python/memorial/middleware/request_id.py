"""X-Request-ID middleware for request correlation and access logging.

- Accepts a well-formed incoming X-Request-ID (UUIDs are lowercased) or
  generates a UUID v4
- Binds request id, path and method to the logging context; the user id is
  added once auth has attached a viewer
- Echoes the id on every response, auth failures included
- Emits one ``request_completed`` entry per request

Registered last so it is the outermost middleware.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from memorial.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

# Alphanumeric plus dots, hyphens and underscores
VALID_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

logger = get_logger(__name__)


def normalize_request_id(value: str | None) -> str | None:
    """Return the canonical form of an acceptable request id, else None."""
    if not value or len(value.encode("utf-8")) > MAX_REQUEST_ID_LENGTH:
        return None
    try:
        return str(uuid.UUID(value)) if len(value) == 36 else _plain_id(value)
    except ValueError:
        return _plain_id(value)


def _plain_id(value: str) -> str | None:
    return value if VALID_REQUEST_ID_PATTERN.match(value) else None


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request id to state, logging context and response headers."""

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.monotonic()
        request_id = normalize_request_id(request.headers.get(REQUEST_ID_HEADER)) or str(
            uuid.uuid4()
        )
        request.state.request_id = request_id
        path, method = request.url.path, request.method
        set_request_context(request_id, path=path, method=method)

        try:
            response = await call_next(request)

            viewer = getattr(request.state, "viewer", None)
            if viewer is not None:
                set_request_context(
                    request_id, user_id=str(viewer.user_id), path=path, method=method
                )

            response.headers[REQUEST_ID_HEADER] = request_id

            if self.log_requests:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                )
            return response
        except Exception:
            logger.exception("request_failed")
            raise
        finally:
            clear_request_context()
