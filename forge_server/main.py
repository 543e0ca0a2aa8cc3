"""Main FastAPI application module for the Forge API.

This module serves as the entry point for the FastAPI application,
using the app factory pattern for clean separation of concerns.
"""

import logging

from forge_server.api import create_app

logger = logging.getLogger(__name__)

# Create the FastAPI application using the factory pattern
app = create_app()
