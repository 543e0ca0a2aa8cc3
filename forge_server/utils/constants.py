"""Constants and configuration management for the Forge API server.

This module is the **single source of truth** for application configuration.
Application modules import values from here instead of reading environment
variables directly:

    # Correct
    from forge_server.utils import constants
    limit = constants.RATE_LIMIT_MAX_REQUESTS

    # Incorrect
    limit = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))

Configuration File Locations:

1. Project root `.env`: loaded by env_loader.py, overrides the shell.
2. ~/.config/forge-server/.env: loaded here, overrides both of the above.

Type Conversion Patterns

Boolean Variables:
    FEATURE_ENABLED = os.getenv("FEATURE_ENABLED", "false").lower() == "true"

Integer Variables:
    NUMERIC_SETTING = int(os.getenv("NUMERIC_SETTING", "10"))

List Variables:
    LIST_SETTING = os.getenv("LIST_SETTING", "a,b").split(",")
"""

import os
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Literal

from dotenv import load_dotenv

from forge_server.utils.env_loader import (
    PROJECT_ROOT,
    USER_CONFIG_DIR,
    USER_ENV_EXISTS,
    USER_ENV_FILE,
    debug_print,
)

__all__ = [
    "PROJECT_ROOT",
    "USER_CONFIG_DIR",
]

debug_print(f"constants.py: Checking for user .env at: {USER_ENV_FILE}")
if USER_ENV_EXISTS:
    debug_print("constants.py: Found user .env file. Loading...")
    load_dotenv(USER_ENV_FILE, override=True)
else:
    debug_print("constants.py: User .env file NOT found.")

# API configuration
API_TITLE = "Forge API"
API_DESCRIPTION = (
    "Mock transcription, caption generation, ZIP export and client log sink "
    "behind a uniform response envelope."
)
API_HOST = os.getenv("API_HOST", "0.0.0.0")  # API server host
API_PORT = int(os.getenv("API_PORT", "8787"))  # API server port
API_PREFIX = os.getenv("API_PREFIX", "/api").rstrip("/") or "/api"

try:
    API_VERSION = pkg_version("forge-server")
except PackageNotFoundError:
    API_VERSION = "0.0.0-dev"

# Runtime environment: "development" exposes stack traces in 500 responses,
# "production" hides exception messages entirely.
FORGE_ENV = os.getenv("FORGE_ENV", "development").lower()
ENV_DEVELOPMENT = "development"
ENV_PRODUCTION = "production"

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

# Rate limiting (fixed window, per client address)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
RATE_LIMIT_WINDOW_SECONDS = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# Request size limits
MAX_JSON_BODY_BYTES = int(os.getenv("MAX_JSON_BODY_BYTES", str(5 * 1024 * 1024)))
MAX_UPLOAD_SIZE_BYTES = int(
    os.getenv("MAX_UPLOAD_SIZE_BYTES", str(200 * 1024 * 1024))
)

# Export configuration
EXPORT_MODE_BINARY = "binary"
EXPORT_MODE_BASE64 = "base64"
SUPPORTED_EXPORT_MODES = {EXPORT_MODE_BINARY, EXPORT_MODE_BASE64}

_EXPORT_MODE_ENV = os.getenv("EXPORT_ZIP_MODE", EXPORT_MODE_BINARY).lower()
if _EXPORT_MODE_ENV not in SUPPORTED_EXPORT_MODES:
    # Fallback to binary if the environment variable has an invalid value
    _EXPORT_MODE_ENV = EXPORT_MODE_BINARY
EXPORT_ZIP_MODE: Literal["binary", "base64"] = _EXPORT_MODE_ENV
EXPORT_ZIP_FILENAME = os.getenv("EXPORT_ZIP_FILENAME", "forge_export.zip")

# Supported upload formats (lowercase extensions)
SUPPORTED_AUDIO_FORMATS: set[str] = {
    ".mp3",
    ".wav",
    ".m4a",
    ".aac",
}

SUPPORTED_VIDEO_FORMATS: set[str] = {
    ".mp4",
    ".mov",
    ".avi",
    ".mkv",
}

SUPPORTED_UPLOAD_FORMATS: set[str] = SUPPORTED_AUDIO_FORMATS | SUPPORTED_VIDEO_FORMATS

# MIME prefixes accepted when the extension is not recognised
SUPPORTED_UPLOAD_MIME_PREFIXES: tuple[str, ...] = (
    "audio/",
    "video/",
    "application/octet-stream",
)

# Validation limits
CAPTIONS_TRANSCRIPT_MAX_CHARS = 10_000
CAPTIONS_MAX_LEN_MIN = 10
CAPTIONS_MAX_LEN_MAX = 500
CAPTIONS_MAX_LEN_DEFAULT = 120
CAPTION_TONES = ("default", "professional", "casual", "funny")

EXPORT_TRANSCRIPT_MAX_CHARS = 50_000
EXPORT_CAPTION_MAX_CHARS = 10_000

LOG_FIELD_MAX_CHARS = 100
CLIENT_LOG_LEVELS = ("debug", "info", "warn", "error")

# Mock generation
WATERMARK_PREFIX = "MOCK: "
CAPTION_SLICE_MIN = 20
CAPTION_SLICE_MAX = 180
MOCK_TRANSCRIPT_TEXT = "This is a mock transcript produced by Forge mock server."
MOCK_TRANSCRIPT_LANGUAGE = "en"
