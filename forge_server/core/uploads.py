"""Validation of uploaded media files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO

from fastapi import UploadFile

from forge_server.core import errors
from forge_server.core.errors import MediaValidationError
from forge_server.utils.constants import (
    MAX_UPLOAD_SIZE_BYTES,
    SUPPORTED_UPLOAD_FORMATS,
    SUPPORTED_UPLOAD_MIME_PREFIXES,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedMedia:
    """Metadata of an accepted upload.

    The payload itself stays on the ``UploadFile``; no decoding happens here.
    """

    original_name: str
    size: int
    mime_type: str

    def to_file_info(self) -> dict[str, str | int]:
        """Return the metadata echo sent back to clients."""
        return {
            "originalName": self.original_name,
            "size": self.size,
            "mimeType": self.mime_type,
        }


def measure_stream(stream: BinaryIO) -> int:
    """Return the size in bytes of a seekable stream without reading it.

    Args:
        stream: Seekable binary stream; its position is restored to the start.

    Returns:
        int: Number of bytes in the stream.
    """
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def is_supported_media(filename: str, mime_type: str) -> bool:
    """Check whether a file passes the extension or MIME allow-list.

    Either check is sufficient: an unknown MIME type with a known extension is
    accepted, and vice versa.

    Args:
        filename: Client-supplied file name.
        mime_type: Client-supplied content type.

    Returns:
        bool: ``True`` if the upload is acceptable media.
    """
    file_ext = os.path.splitext(filename.lower())[1]
    if file_ext in SUPPORTED_UPLOAD_FORMATS:
        return True
    return mime_type.lower().startswith(SUPPORTED_UPLOAD_MIME_PREFIXES)


def validate_media_file(
    file: UploadFile | None, max_size_bytes: int = MAX_UPLOAD_SIZE_BYTES
) -> UploadedMedia:
    """Validate an uploaded media file.

    Rules are applied in order and the first failure wins: presence, type,
    non-empty, size limit.

    Args:
        file: The uploaded file, ``None`` when the ``file`` part is absent.
        max_size_bytes: Maximum accepted size.

    Returns:
        UploadedMedia: Metadata of the accepted file.

    Raises:
        MediaValidationError: With ``MISSING_FILE``, ``INVALID_FILE_TYPE``,
            ``EMPTY_FILE`` or ``FILE_TOO_LARGE``.
    """
    if file is None or not file.filename:
        raise MediaValidationError(
            "No file provided. Please upload a file.", code=errors.MISSING_FILE
        )

    filename = file.filename
    mime_type = file.content_type or ""
    if not is_supported_media(filename, mime_type):
        raise MediaValidationError(
            "Invalid file type. Please upload an audio or video file. "
            f"Detected MIME type: {mime_type or 'unknown'}",
            code=errors.INVALID_FILE_TYPE,
        )

    size = file.size if file.size is not None else measure_stream(file.file)
    if size == 0:
        raise MediaValidationError("File is empty", code=errors.EMPTY_FILE)
    if size > max_size_bytes:
        raise MediaValidationError(
            f"File is too large (max {max_size_bytes} bytes)",
            code=errors.FILE_TOO_LARGE,
            status_code=413,
        )

    logger.debug("Accepted upload %s (%d bytes, %s)", filename, size, mime_type)
    return UploadedMedia(original_name=filename, size=size, mime_type=mime_type)
