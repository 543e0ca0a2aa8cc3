"""Handles initial environment setup, .env file loading, and debug flag detection.

This module is responsible for:
- Locating the project root and user-specific .env files.
- Loading the project .env so that constants.py sees its values.
- Providing a conditional debug logging helper for the loading sequence.
- Exposing paths and existence flags for .env files to be used by constants.py
  for the user-level override load.
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Assumes this file is in forge_server/utils/
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
PROJECT_ROOT_ENV_FILE = PROJECT_ROOT / ".env"

USER_CONFIG_DIR = Path.home() / ".config" / "forge-server"
USER_ENV_FILE = USER_CONFIG_DIR / ".env"

_cli_debug_mode = "--debug" in sys.argv

PROJECT_ROOT_ENV_EXISTS = PROJECT_ROOT_ENV_FILE.exists()
USER_ENV_EXISTS = USER_ENV_FILE.exists()

if PROJECT_ROOT_ENV_EXISTS:
    load_dotenv(PROJECT_ROOT_ENV_FILE, override=True)

SHOW_DEBUG_PRINTS = _cli_debug_mode or os.getenv("LOG_LEVEL", "").upper() == "DEBUG"

if SHOW_DEBUG_PRINTS:
    logging.getLogger("forge_server").setLevel(logging.DEBUG)


def debug_print(message: str) -> None:
    """Log environment loading messages at DEBUG level if enabled.

    Args:
        message: The message to log.
    """
    if SHOW_DEBUG_PRINTS:
        logger.debug(message)


if PROJECT_ROOT_ENV_EXISTS:
    debug_print(f"Loaded project .env: {PROJECT_ROOT_ENV_FILE}")
else:
    debug_print(f"No project .env found at: {PROJECT_ROOT_ENV_FILE}")
