"""Exception hierarchy for the Forge API.

Every client-visible failure is an :class:`ApiError` carrying a stable
machine-readable ``code`` and the HTTP status it maps to. The API layer turns
these into error envelopes; anything that is not an ``ApiError`` is reported
as ``INTERNAL_ERROR``.
"""

from __future__ import annotations

from typing import Any

VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
INVALID_JSON = "INVALID_JSON"
PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
MISSING_FILE = "MISSING_FILE"
INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
EMPTY_FILE = "EMPTY_FILE"
FILE_TOO_LARGE = "FILE_TOO_LARGE"
INVALID_TS = "INVALID_TS"
INVALID_LEVEL = "INVALID_LEVEL"
INVALID_EVENT = "INVALID_EVENT"
INVALID_USER_ANON_ID = "INVALID_USER_ANON_ID"
INVALID_PAYLOAD = "INVALID_PAYLOAD"
FIELD_TOO_LONG = "FIELD_TOO_LONG"
ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
INTERNAL_ERROR = "INTERNAL_ERROR"

# Codes a request model may raise directly through PydanticCustomError.
FIELD_ERROR_CODES = frozenset(
    {
        VALIDATION_ERROR,
        INVALID_TS,
        INVALID_LEVEL,
        INVALID_EVENT,
        INVALID_USER_ANON_ID,
        INVALID_PAYLOAD,
        FIELD_TOO_LONG,
    }
)


class ApiError(Exception):
    """Base class for errors reported to the client through the envelope."""

    status_code: int = 400
    default_code: str = VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the ApiError.

        Args:
            message: Human-readable error message.
            code: Stable error code; defaults to the class ``default_code``.
            status_code: HTTP status; defaults to the class ``status_code``.
            data: Optional structured detail included in the envelope.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code
        self.data = data


class RequestValidationFailed(ApiError):
    """Raised when a request body violates its schema.

    Only the first violated rule is reported.
    """

    def __init__(
        self, message: str, field: str = "", code: str = VALIDATION_ERROR
    ) -> None:
        """Initialize the RequestValidationFailed error.

        Args:
            message: Message of the first failing rule.
            field: Dotted path of the offending field, empty for the body.
            code: Stable error code.
        """
        super().__init__(message, code=code)
        self.field = field


class ContentTypeError(ApiError):
    """Raised when a JSON endpoint receives a non-JSON content type."""

    default_code = INVALID_CONTENT_TYPE


class InvalidJsonError(ApiError):
    """Raised when a JSON body cannot be decoded."""

    default_code = INVALID_JSON


class PayloadTooLargeError(ApiError):
    """Raised when a request body exceeds the configured limit."""

    status_code = 413
    default_code = PAYLOAD_TOO_LARGE


class MediaValidationError(ApiError):
    """Raised when an uploaded media file is missing or unacceptable."""

    default_code = INVALID_FILE_TYPE


class EndpointNotFoundError(ApiError):
    """Raised for API paths that match no route."""

    status_code = 404
    default_code = ENDPOINT_NOT_FOUND


class RateLimitExceededError(ApiError):
    """Raised when a client exceeds its request budget for the window."""

    status_code = 429
    default_code = RATE_LIMIT_EXCEEDED

    def __init__(self, retry_after: int) -> None:
        """Initialize the RateLimitExceededError.

        Args:
            retry_after: Whole seconds until the client's window resets.
        """
        super().__init__(
            "Too many requests. Please try again later.",
            data={"retryAfter": retry_after},
        )
        self.retry_after = retry_after


class InternalServerError(ApiError):
    """Raised for unexpected failures that must surface as a 500."""

    status_code = 500
    default_code = INTERNAL_ERROR
