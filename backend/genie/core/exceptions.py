"""
Error taxonomy shared by the API routes and the thread client.

Routes raise these and the app-level handler turns them into
``{"error": message}`` responses; the client raises the same classes when it
decodes a failed response, so callers handle one set of exceptions.
"""

from typing import Optional


class GenieError(Exception):
    """Base class for every expected failure."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(GenieError):
    """Missing, expired or rejected bearer credential."""

    status_code = 401
    default_message = "Unauthorized"


class ValidationError(GenieError):
    """Malformed client input, e.g. an empty thread title."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(GenieError):
    """Resource absent or not owned by the caller.

    Both cases deliberately produce the same signal.
    """

    status_code = 404
    default_message = "Not found"


class NetworkError(GenieError):
    """Transport failure between client and server."""

    status_code = 503
    default_message = "Network unavailable"


class StoreError(GenieError):
    """Backend persistence failure, opaque to the client."""

    status_code = 500
    default_message = "Store error"


_BY_STATUS = {
    400: ValidationError,
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    422: ValidationError,
}


def error_for_status(status_code: int, message: Optional[str] = None) -> GenieError:
    """Map an HTTP status code to the matching exception instance."""
    error_class = _BY_STATUS.get(status_code)
    if error_class is None:
        error_class = StoreError if status_code >= 500 else GenieError
    return error_class(message)
