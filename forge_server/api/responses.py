"""Response envelope for the API.

Every ``/api`` response is rendered through :class:`Envelope` as
``{ok, code?, message?, data?}``. Handlers and exception handlers build a
tagged result (:class:`Ok` or :class:`Err`) or call the shortcuts directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from fastapi.responses import JSONResponse, Response

from forge_server.core.errors import ApiError, RateLimitExceededError


@dataclass(frozen=True)
class Ok:
    """Successful outcome."""

    data: Any = None
    message: str | None = None
    code: str | None = None
    status_code: int = 200


@dataclass(frozen=True)
class Err:
    """Failed outcome."""

    message: str
    code: str | None = None
    status_code: int = 400
    data: Any = None


Result = Union[Ok, Err]


class Envelope:
    """Formatter for the uniform response envelope."""

    @staticmethod
    def body(result: Result) -> dict[str, Any]:
        """Build the envelope document for a result.

        Optional keys are omitted when unset; ``ok`` is always present.

        Args:
            result: Tagged outcome to render.

        Returns:
            dict[str, Any]: The JSON-ready envelope.
        """
        payload: dict[str, Any] = {"ok": isinstance(result, Ok)}
        if result.code is not None:
            payload["code"] = result.code
        if result.message is not None:
            payload["message"] = result.message
        if result.data is not None:
            payload["data"] = result.data
        return payload

    @staticmethod
    def render(
        result: Result, headers: dict[str, str] | None = None
    ) -> JSONResponse:
        """Render a tagged result as a JSON response.

        Args:
            result: Tagged outcome to render.
            headers: Extra response headers.

        Returns:
            JSONResponse: The finished response.
        """
        return JSONResponse(
            status_code=result.status_code,
            content=Envelope.body(result),
            headers=headers,
        )

    @staticmethod
    def success(
        data: Any = None, message: str | None = None, code: str | None = None
    ) -> JSONResponse:
        """Render a 200 success envelope.

        Args:
            data: Optional payload.
            message: Optional human-readable message.
            code: Optional machine-readable code.

        Returns:
            JSONResponse: ``{"ok": true, ...}``.
        """
        return Envelope.render(Ok(data=data, message=message, code=code))

    @staticmethod
    def error(
        message: str,
        code: str | None = None,
        status_code: int = 400,
        data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        """Render an error envelope.

        Args:
            message: Human-readable error message.
            code: Optional machine-readable error code.
            status_code: HTTP status of the response.
            data: Optional structured detail.
            headers: Extra response headers.

        Returns:
            JSONResponse: ``{"ok": false, "message": ..., ...}``.
        """
        return Envelope.render(
            Err(message=message, code=code, status_code=status_code, data=data),
            headers=headers,
        )

    @staticmethod
    def from_exception(exc: ApiError) -> JSONResponse:
        """Render an :class:`ApiError` as an error envelope.

        Rate limit errors also carry a ``Retry-After`` header; validation
        errors with a field path report it as ``data.field``.

        Args:
            exc: The raised API error.

        Returns:
            JSONResponse: The error envelope.
        """
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}

        data = exc.data
        field = getattr(exc, "field", "")
        if data is None and field:
            data = {"field": field}

        return Envelope.error(
            exc.message,
            code=exc.code,
            status_code=exc.status_code,
            data=data,
            headers=headers,
        )

    @staticmethod
    def attachment(
        content: bytes,
        media_type: str,
        content_disposition: str,
        headers: dict[str, str] | None = None,
    ) -> Response:
        """Return a raw binary download outside the JSON envelope.

        Args:
            content: Response body.
            media_type: ``Content-Type`` of the body.
            content_disposition: ``Content-Disposition`` header value.
            headers: Extra response headers.

        Returns:
            Response: The binary response.
        """
        all_headers = {"Content-Disposition": content_disposition}
        all_headers.update(headers or {})
        return Response(content=content, media_type=media_type, headers=all_headers)
