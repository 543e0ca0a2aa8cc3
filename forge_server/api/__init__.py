"""API module for the Forge API.

This module contains the FastAPI application factory, the response envelope
and route definitions.
"""

from forge_server.api.app import create_app
from forge_server.api.dependencies import (
    get_caption_generator,
    get_envelope,
    get_log_sink,
    get_transcriber,
)
from forge_server.api.responses import Envelope

__all__ = [
    "Envelope",
    "create_app",
    "get_caption_generator",
    "get_envelope",
    "get_log_sink",
    "get_transcriber",
]
