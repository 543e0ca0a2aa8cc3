"""Utility modules for the Forge API server."""

from forge_server.utils import constants
from forge_server.utils.constants import (
    API_PREFIX,
    EXPORT_MODE_BASE64,
    EXPORT_MODE_BINARY,
    SUPPORTED_UPLOAD_FORMATS,
    SUPPORTED_UPLOAD_MIME_PREFIXES,
)

__all__ = [
    "API_PREFIX",
    "EXPORT_MODE_BASE64",
    "EXPORT_MODE_BINARY",
    "SUPPORTED_UPLOAD_FORMATS",
    "SUPPORTED_UPLOAD_MIME_PREFIXES",
    "constants",
]
