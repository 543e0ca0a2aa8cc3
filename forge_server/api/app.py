"""FastAPI application factory for the Forge API.

This module provides the main app factory function that creates and configures
the FastAPI application with all necessary routes, middleware and shared
collaborators.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRoute

from forge_server.api.middleware import add_exception_handlers, add_middleware
from forge_server.api.routes import root_router
from forge_server.api.routes import router as api_router
from forge_server.core.captions import CaptionGenerator, MockCaptionGenerator
from forge_server.core.log_sink import NdjsonLogSink
from forge_server.core.rate_limit import InMemoryRateLimitStore, RateLimiter, RateLimitStore
from forge_server.core.transcription import MockTranscriber, Transcriber
from forge_server.utils import constants

logger = logging.getLogger(__name__)


async def run_startup_sequence(app: FastAPI) -> None:
    """Log configuration and available endpoints on startup.

    Args:
        app: FastAPI instance that is being started.
    """
    limiter: RateLimiter | None = app.state.rate_limiter
    logger.info("=" * 50)
    logger.info("Starting %s v%s", app.title, app.version)
    logger.info("Environment: %s", app.state.environment)
    if limiter is None:
        logger.info("Rate limit: disabled")
    else:
        logger.info(
            "Rate limit: %d requests / %gs per client",
            limiter.max_requests,
            limiter.window_seconds,
        )
    logger.info("Export mode: %s", app.state.export_mode)
    logger.info("-" * 50)

    logger.info("Available endpoints:")
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ", ".join(sorted(route.methods))
            logger.info("  %s %s", f"{methods:<10}", route.path)
            if route.description and logger.isEnabledFor(logging.DEBUG):
                logger.debug("    Description: %s", route.description)
    logger.info("=" * 50)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup sequence using FastAPI's lifespan support."""
    await run_startup_sequence(app)
    yield


def create_app(
    *,
    rate_limiter: RateLimiter | None = None,
    rate_limit_store: RateLimitStore | None = None,
    rate_limit_enabled: bool = constants.RATE_LIMIT_ENABLED,
    transcriber: Transcriber | None = None,
    caption_generator: CaptionGenerator | None = None,
    log_sink: NdjsonLogSink | None = None,
    export_mode: str = constants.EXPORT_ZIP_MODE,
    environment: str = constants.FORGE_ENV,
    cors_origins: list[str] | None = None,
    max_json_body_bytes: int = constants.MAX_JSON_BODY_BYTES,
    max_upload_size_bytes: int = constants.MAX_UPLOAD_SIZE_BYTES,
) -> FastAPI:
    """Factory function to create and configure FastAPI application.

    Every keyword argument defaults to the value from
    :mod:`forge_server.utils.constants`.

    Args:
        rate_limiter: Preconfigured limiter; built from the store and
            ``RATE_LIMIT_*`` settings when omitted.
        rate_limit_store: Store for the default limiter.
        rate_limit_enabled: Whether ``/api`` requests are rate limited.
        transcriber: Transcription backend.
        caption_generator: Caption backend.
        log_sink: Client log sink.
        export_mode: ``binary`` or ``base64``.
        environment: Runtime environment controlling 500 response detail.
        cors_origins: Allowed CORS origins.
        max_json_body_bytes: Maximum accepted JSON body size.
        max_upload_size_bytes: Maximum accepted upload size.

    Returns:
        FastAPI: Configured FastAPI application instance

    Raises:
        ValueError: If ``export_mode`` is not supported.
    """
    if export_mode not in constants.SUPPORTED_EXPORT_MODES:
        raise ValueError(
            f"Unsupported export mode {export_mode!r}; "
            f"expected one of {sorted(constants.SUPPORTED_EXPORT_MODES)}"
        )

    app = FastAPI(
        title=constants.API_TITLE,
        description=constants.API_DESCRIPTION,
        version=constants.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if rate_limiter is None and rate_limit_enabled:
        if rate_limit_store is None:
            rate_limit_store = InMemoryRateLimitStore()
        rate_limiter = RateLimiter(
            store=rate_limit_store,
            max_requests=constants.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=constants.RATE_LIMIT_WINDOW_SECONDS,
        )

    app.state.started_at = time.monotonic()
    app.state.rate_limiter = rate_limiter
    app.state.transcriber = transcriber or MockTranscriber()
    app.state.caption_generator = caption_generator or MockCaptionGenerator()
    app.state.log_sink = log_sink or NdjsonLogSink()
    app.state.export_mode = export_mode
    app.state.environment = environment.lower()
    app.state.max_json_body_bytes = max_json_body_bytes
    app.state.max_upload_size_bytes = max_upload_size_bytes

    # Add middleware and error handling
    add_middleware(app, cors_origins=cors_origins)
    add_exception_handlers(app)

    # Include routes
    app.include_router(api_router)
    app.include_router(root_router)

    return app
