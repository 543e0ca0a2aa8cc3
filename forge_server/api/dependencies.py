"""Dependency injection providers for FastAPI routes.

Shared collaborators (transcriber, caption generator, log sink, rate limiter)
are created once by :func:`forge_server.api.app.create_app` and stored on
``app.state``. Tests replace them either through ``create_app`` arguments or
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request

from forge_server.api.responses import Envelope
from forge_server.core.captions import CaptionGenerator
from forge_server.core.errors import ContentTypeError
from forge_server.core.log_sink import NdjsonLogSink
from forge_server.core.rate_limit import RateLimiter
from forge_server.core.transcription import Transcriber
from forge_server.core.validation import parse_json_body, require_json_content_type
from forge_server.utils import constants


def get_envelope(request: Request) -> Envelope:
    """Return the envelope attached to the request by the middleware.

    Returns:
        Envelope: The request's envelope formatter.
    """
    envelope = getattr(request.state, "envelope", None)
    if envelope is None:
        envelope = Envelope()
        request.state.envelope = envelope
    return envelope


def get_transcriber(request: Request) -> Transcriber:
    """Dependency to provide the configured transcriber."""
    return request.app.state.transcriber


def get_caption_generator(request: Request) -> CaptionGenerator:
    """Dependency to provide the configured caption generator."""
    return request.app.state.caption_generator


def get_log_sink(request: Request) -> NdjsonLogSink:
    """Dependency to provide the client log sink."""
    return request.app.state.log_sink


def get_rate_limiter(request: Request) -> RateLimiter | None:
    """Dependency to provide the rate limiter, ``None`` when disabled."""
    return getattr(request.app.state, "rate_limiter", None)


def get_export_mode(request: Request) -> str:
    """Dependency to provide the ZIP export mode (``binary`` or ``base64``)."""
    return request.app.state.export_mode


async def read_json_body(request: Request) -> Any:
    """Read the body of a JSON endpoint.

    The content-type gate runs before the body is decoded. The decoded body
    is kept on ``request.state`` so that error logging can include it.

    Args:
        request: The incoming request.

    Returns:
        Any: The decoded JSON document.

    Raises:
        ContentTypeError: If the request is not ``application/json``.
        PayloadTooLargeError: If the body exceeds the configured limit.
        InvalidJsonError: If the body is malformed.
    """
    require_json_content_type(request.headers.get("content-type"))
    data = parse_json_body(await request.body(), _max_json_body_bytes(request))
    request.state.json_body = data
    return data


async def read_optional_json_object(request: Request) -> dict[str, Any]:
    """Read a body that is treated as an empty object unless it is JSON.

    Non-JSON content types and non-object documents yield ``{}``; malformed
    JSON is still rejected.

    Args:
        request: The incoming request.

    Returns:
        dict[str, Any]: The decoded object or ``{}``.

    Raises:
        PayloadTooLargeError: If the body exceeds the configured limit.
        InvalidJsonError: If a JSON body is malformed.
    """
    try:
        require_json_content_type(request.headers.get("content-type"))
    except ContentTypeError:
        return {}
    data = parse_json_body(await request.body(), _max_json_body_bytes(request))
    request.state.json_body = data
    return data if isinstance(data, dict) else {}


def _max_json_body_bytes(request: Request) -> int:
    return getattr(request.app.state, "max_json_body_bytes", constants.MAX_JSON_BODY_BYTES)
