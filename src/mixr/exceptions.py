"""Exception hierarchy for mixr.

All exceptions inherit from :class:`MixrError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`mixr.exit_codes`.
Errors raised by the endpoint clients derive from :class:`ApiError` and
additionally carry the HTTP ``status`` and the ``operation`` that failed.

Subclass hierarchy::

    MixrError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- ConfigError              (exit 1)
    +-- ApiError                 (exit 1)
        +-- TransportError       (exit 6)
        +-- EmptyPayloadError    (exit 1)
        +-- HttpError            (exit 1)
            +-- AuthError        (exit 3)
            +-- NotFoundError    (exit 4)
            +-- ServerError      (exit 5)

A cache miss is *not* an error: :meth:`~mixr.store.EntityCache.get_one`
returns ``None``.
"""

from __future__ import annotations

from mixr.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class MixrError(Exception):
    """Base exception for all mixr errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(MixrError):
    """Raised for invalid arguments (e.g. a missing recipe id)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(MixrError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class ApiError(MixrError):
    """Base class for failures of an endpoint client operation.

    Args:
        message: Human-readable message; already includes the status code.
        status: HTTP status reported by the transport (500 for
            network-level failures).
        operation: Short name of the failed operation, e.g. ``"get moods"``.
    """

    def __init__(self, message: str, status: int, operation: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.operation = operation


class TransportError(ApiError):
    """Raised when the request never produced an HTTP response (DNS, timeout, refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class EmptyPayloadError(ApiError):
    """Raised when the API answered 2xx but the envelope carried no usable ``data``."""


class HttpError(ApiError):
    """Raised when the API answered with a non-2xx status."""


class AuthError(HttpError):
    """Raised on HTTP 401 / 403 (missing, invalid, or expired token)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(HttpError):
    """Raised when the API returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(HttpError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


def http_error_for_status(message: str, status: int, operation: str = "") -> HttpError:
    """Build the :class:`HttpError` subclass matching *status*."""
    if status in (401, 403):
        return AuthError(message, status, operation)
    if status == 404:
        return NotFoundError(message, status, operation)
    if status >= 500:
        return ServerError(message, status, operation)
    return HttpError(message, status, operation)
