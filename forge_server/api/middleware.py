"""Middleware and exception handlers for the FastAPI application.

This module contains the cross-cutting request pipeline: request timing,
the catch-all error middleware, rate limiting and envelope attachment for
``/api`` paths, and the exception handlers that render errors as envelopes.
"""

from __future__ import annotations

import logging
import time
import traceback
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from forge_server.api.dependencies import get_rate_limiter
from forge_server.api.responses import Envelope
from forge_server.core import errors
from forge_server.core.errors import (
    ApiError,
    EndpointNotFoundError,
    RateLimitExceededError,
)
from forge_server.utils import constants

logger = logging.getLogger(__name__)


def is_api_path(path: str, prefix: str = constants.API_PREFIX) -> bool:
    """Check whether a request path belongs to the JSON API."""
    return path == prefix or path.startswith(prefix + "/")


def client_key(request: Request) -> str:
    """Return the identifier used to rate limit a client."""
    return request.client.host if request.client else "unknown"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def log_unhandled_error(request: Request, exc: BaseException) -> None:
    """Log an unexpected failure together with its request context.

    Args:
        request: The request that failed.
        exc: The exception that escaped the route handler.
    """
    context: dict[str, Any] = {
        "path": request.url.path,
        "method": request.method,
        "client": client_key(request),
        "timestamp": _utc_timestamp(),
        "userAgent": request.headers.get("user-agent"),
        "query": dict(request.query_params),
    }
    if request.method != "GET":
        context["body"] = getattr(request.state, "json_body", None)
    logger.error(
        "Unhandled error on %s %s: %s | context=%s",
        request.method,
        request.url.path,
        exc,
        context,
        exc_info=(type(exc), exc, exc.__traceback__),
    )


def internal_error_response(request: Request, exc: BaseException) -> Response:
    """Render an unexpected failure as a 500 response.

    The exception text is hidden in production; development responses add
    the stack trace and a timestamp. Non-API paths get plain text.

    Args:
        request: The request that failed.
        exc: The exception to report.

    Returns:
        Response: The 500 response.
    """
    log_unhandled_error(request, exc)

    if not is_api_path(request.url.path):
        return PlainTextResponse("Internal Server Error", status_code=500)

    environment = getattr(request.app.state, "environment", constants.FORGE_ENV)
    if environment == constants.ENV_PRODUCTION:
        message = "Internal server error"
    else:
        message = str(exc) or "Internal server error"

    data = None
    if environment == constants.ENV_DEVELOPMENT:
        data = {
            "stack": "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
            "timestamp": _utc_timestamp(),
        }

    return Envelope.error(
        message, code=errors.INTERNAL_ERROR, status_code=500, data=data
    )


async def log_request_timing(request: Request, call_next):
    """Log timing information for each request.

    Args:
        request: The incoming HTTP request
        call_next: The next middleware or route handler

    Returns:
        The HTTP response
    """
    start_time = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start_time

    logger.info(
        "Request %s %s completed in %.3fs with status %s",
        request.method,
        request.url.path,
        duration,
        response.status_code,
    )
    return response


async def handle_unexpected_errors(request: Request, call_next):
    """Turn exceptions that escaped every handler into 500 responses."""
    try:
        return await call_next(request)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return internal_error_response(request, exc)


async def enforce_rate_limit(request: Request, call_next):
    """Apply the fixed-window rate limit to ``/api`` requests."""
    limiter = get_rate_limiter(request)
    if limiter is not None and is_api_path(request.url.path):
        try:
            limiter.check(client_key(request))
        except RateLimitExceededError as exc:
            return Envelope.from_exception(exc)
    return await call_next(request)


async def attach_envelope(request: Request, call_next):
    """Attach an :class:`Envelope` to ``/api`` requests before routing."""
    if is_api_path(request.url.path):
        request.state.envelope = Envelope()
    return await call_next(request)


async def api_error_handler(request: Request, exc: ApiError) -> Response:
    """Render an :class:`ApiError` raised by a route or dependency."""
    if exc.status_code >= 500:
        return internal_error_response(request, exc)
    logger.info(
        "Rejected %s %s with %s (%s): %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
        exc.message,
    )
    return Envelope.from_exception(exc)


async def api_http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """Render routing errors under ``/api`` as envelopes.

    Unknown paths and unsupported methods both report ``ENDPOINT_NOT_FOUND``.
    """
    path = request.url.path
    if not is_api_path(path):
        return await http_exception_handler(request, exc)

    if exc.status_code in (404, 405):
        logger.warning(
            "API endpoint not found: %s %s (client=%s, user-agent=%s)",
            request.method,
            path,
            client_key(request),
            request.headers.get("user-agent"),
        )
        return Envelope.from_exception(
            EndpointNotFoundError(
                "API endpoint not found",
                data={"path": path, "method": request.method},
            )
        )

    return Envelope.error(
        str(exc.detail), status_code=exc.status_code, headers=exc.headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> Response:
    """Render framework-level validation errors as ``VALIDATION_ERROR``."""
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    data = {"field": ".".join(loc)} if loc else None
    return Envelope.error(
        first.get("msg", "Invalid request"),
        code=errors.VALIDATION_ERROR,
        status_code=400,
        data=data,
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the envelope exception handlers.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, api_http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


def add_middleware(app: FastAPI, cors_origins: list[str] | None = None) -> None:
    """Add all middleware to the FastAPI application.

    Middleware added last runs first, so the resulting order is CORS, error
    handling, timing, rate limiting, then envelope attachment.

    Args:
        app: The FastAPI application instance
        cors_origins: Allowed CORS origins; defaults to ``CORS_ORIGINS``.
    """
    app.middleware("http")(attach_envelope)
    app.middleware("http")(enforce_rate_limit)
    app.middleware("http")(log_request_timing)
    app.middleware("http")(handle_unexpected_errors)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else constants.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Export-Files", "Retry-After"],
    )
