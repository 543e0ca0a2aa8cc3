"""API route definitions for the Forge API.

Handlers receive their collaborators through dependency injection, validate
input with :mod:`forge_server.core.validation` and answer through the
request's :class:`~forge_server.api.responses.Envelope`.
"""

import logging
import time
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import PlainTextResponse, Response

from forge_server.api.dependencies import (
    get_caption_generator,
    get_envelope,
    get_export_mode,
    get_log_sink,
    get_transcriber,
    read_json_body,
    read_optional_json_object,
)
from forge_server.api.models import CaptionsRequest, ClientLogRecord, ExportZipRequest
from forge_server.api.responses import Envelope
from forge_server.core.captions import CaptionGenerator
from forge_server.core.export import ZIP_MEDIA_TYPE, build_export_archive
from forge_server.core.log_sink import NdjsonLogSink
from forge_server.core.transcription import Transcriber
from forge_server.core.uploads import validate_media_file
from forge_server.core.validation import validate_payload
from forge_server.utils import constants

logger = logging.getLogger(__name__)

router = APIRouter(prefix=constants.API_PREFIX)
root_router = APIRouter()


@router.get(
    "/health",
    tags=["System"],
    summary="Health check",
    description="Report server version and uptime in whole seconds",
)
async def health(
    request: Request,
    envelope: Envelope = Depends(get_envelope),  # noqa: B008
) -> Response:
    """Return the server version and uptime."""
    uptime = int(time.monotonic() - request.app.state.started_at)
    return envelope.success(
        {"version": request.app.version, "uptime": uptime},
        "Server is healthy",
    )


@router.get(
    "/diag/log-level",
    tags=["System"],
    summary="Log level diagnostics",
    description="No-op diagnostics stub reporting the effective log level",
)
async def diag_log_level(
    envelope: Envelope = Depends(get_envelope),  # noqa: B008
) -> Response:
    log_level = logging.getLevelName(logging.getLogger("forge_server").getEffectiveLevel())
    return envelope.success(
        {
            "message": "Log level diagnostics endpoint - no-op stub",
            "logLevel": log_level,
        },
        "Diagnostics endpoint ready",
    )


@router.post(
    "/transcribe",
    tags=["Transcription"],
    summary="Transcribe media (mock)",
    description="Accept an audio or video upload and return a mock transcript",
)
async def transcribe(
    request: Request,
    file: UploadFile | None = File(None, description="Audio or video file"),  # noqa: B008
    transcriber: Transcriber = Depends(get_transcriber),  # noqa: B008
    envelope: Envelope = Depends(get_envelope),  # noqa: B008
) -> Response:
    """Validate an upload and transcribe it.

    Raises:
        MediaValidationError: If the upload is missing, empty, too large or
            not audio/video.
    """
    media = validate_media_file(file, request.app.state.max_upload_size_bytes)
    logger.info("Transcribing %s (%d bytes)", media.original_name, media.size)

    result = transcriber.transcribe(media)
    return envelope.success(
        {
            "mock": result.mock,
            "language": result.language,
            "text": result.text,
            "fileInfo": media.to_file_info(),
        },
        "Transcription completed successfully",
    )


@router.post(
    "/captions",
    tags=["Captions"],
    summary="Generate captions (mock)",
    description="Derive tweet, Instagram and YouTube captions from a transcript",
)
async def captions(
    body: Any = Depends(read_json_body),  # noqa: B008
    generator: CaptionGenerator = Depends(get_caption_generator),  # noqa: B008
    envelope: Envelope = Depends(get_envelope),  # noqa: B008
) -> Response:
    payload = validate_payload(CaptionsRequest, body)
    logger.debug(
        "Generating captions (tone=%s, maxLen=%d, %d chars)",
        payload.tone,
        payload.max_len,
        len(payload.transcript),
    )
    caption_set = generator.generate(payload.transcript, payload.tone, payload.max_len)
    return envelope.success(
        {"captions": caption_set.to_dict()}, "Captions generated successfully"
    )


@router.post(
    "/exportZip",
    tags=["Export"],
    summary="Export text artifacts as ZIP",
    description=(
        "Bundle transcript and captions into a ZIP archive, returned as a binary "
        "download or base64 inside the envelope depending on EXPORT_ZIP_MODE"
    ),
)
async def export_zip(
    body: Any = Depends(read_json_body),  # noqa: B008
    export_mode: str = Depends(get_export_mode),  # noqa: B008
    envelope: Envelope = Depends(get_envelope),  # noqa: B008
) -> Response:
    """Build the export archive.

    Returns:
        Response: The archive itself in ``binary`` mode, otherwise a success
        envelope with the base64-encoded archive.
    """
    payload = validate_payload(ExportZipRequest, body)
    archive = build_export_archive(
        payload.named_contents(), constants.EXPORT_ZIP_FILENAME
    )

    if export_mode == constants.EXPORT_MODE_BASE64:
        return envelope.success(
            {
                "files": archive.files,
                "zip": archive.to_base64(),
                "contentType": ZIP_MEDIA_TYPE,
                "contentDisposition": archive.content_disposition,
            },
            "ZIP file generated successfully",
        )

    return envelope.attachment(
        archive.content,
        media_type=ZIP_MEDIA_TYPE,
        content_disposition=archive.content_disposition,
        headers={"X-Export-Files": ",".join(quote(name) for name in archive.files)},
    )


@router.post(
    "/log",
    tags=["Logging"],
    summary="Client log sink",
    description="Validate a client log record and emit it as one NDJSON line",
)
async def client_log(
    body: dict[str, Any] = Depends(read_optional_json_object),  # noqa: B008
    sink: NdjsonLogSink = Depends(get_log_sink),  # noqa: B008
    envelope: Envelope = Depends(get_envelope),  # noqa: B008
) -> Response:
    record = validate_payload(ClientLogRecord, body)
    sink.write(record.to_ndjson_entry())
    return envelope.success(message="Log entry recorded successfully")


@root_router.get("/", include_in_schema=False)
async def root_banner() -> PlainTextResponse:
    return PlainTextResponse(f"Forge server is running. Try {constants.API_PREFIX}/health")
