"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Authentication errors (401)
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"

    # Authorization errors (403)
    E_FORBIDDEN = "E_FORBIDDEN"
    E_INTERNAL_ONLY = "E_INTERNAL_ONLY"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_MEMORIAL_NOT_FOUND = "E_MEMORIAL_NOT_FOUND"
    E_NOTIFICATION_NOT_FOUND = "E_NOTIFICATION_NOT_FOUND"

    # Conflict errors (409)
    E_CONFLICT = "E_CONFLICT"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_REACTION_KIND = "E_INVALID_REACTION_KIND"
    E_INVALID_ACTIVITY_TYPE = "E_INVALID_ACTIVITY_TYPE"

    # Server errors
    E_DEPENDENCY_FAILURE = "E_DEPENDENCY_FAILURE"  # 502, log-only for notifications
    E_AUTH_UNAVAILABLE = "E_AUTH_UNAVAILABLE"  # 503
    E_INTERNAL = "E_INTERNAL"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_UNAUTHENTICATED: 401,
    ApiErrorCode.E_FORBIDDEN: 403,
    ApiErrorCode.E_INTERNAL_ONLY: 403,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_MEMORIAL_NOT_FOUND: 404,
    ApiErrorCode.E_NOTIFICATION_NOT_FOUND: 404,
    ApiErrorCode.E_CONFLICT: 409,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_INVALID_REACTION_KIND: 400,
    ApiErrorCode.E_INVALID_ACTIVITY_TYPE: 400,
    ApiErrorCode.E_DEPENDENCY_FAILURE: 502,
    ApiErrorCode.E_AUTH_UNAVAILABLE: 503,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class UnauthenticatedError(ApiError):
    """Missing or invalid actor identity."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_UNAUTHENTICATED,
        message: str = "Authentication required",
    ):
        super().__init__(code, message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class ForbiddenError(ApiError):
    """Authorization failure error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_FORBIDDEN, message: str = "Forbidden"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class ConflictError(ApiError):
    """Uniqueness or state conflict error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_CONFLICT, message: str = "Conflict"):
        super().__init__(code, message)


class AccessDeniedError(ApiError):
    """Viewer may not read or act on a memorial.

    Kept distinct from NotFoundError so logs can tell the two apart. The HTTP
    rendering is chosen by ``reason``:

    - ``auth-required``: anonymous viewer, rendered as 401 so the client
      prompts a sign-in.
    - ``denied``: authenticated non-member, rendered as the same 404 an
      unknown memorial gets, so existence is not leaked.
    """

    def __init__(self, reason: str):
        self.reason = reason
        if reason == "auth-required":
            super().__init__(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
        else:
            super().__init__(ApiErrorCode.E_MEMORIAL_NOT_FOUND, "Memorial not found")
