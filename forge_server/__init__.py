"""Public surface for the Forge API server package."""

from __future__ import annotations

from importlib import metadata

from forge_server.utils import constants


def _resolve_package_version() -> str:
    """Return the package version string for the distribution.

    Returns:
        str: Semantic version read from installed metadata or project constants.
    """
    try:
        return metadata.version("forge-server")
    except metadata.PackageNotFoundError:
        return constants.API_VERSION or "0.0.0-dev"


__version__ = _resolve_package_version()

__all__ = [
    "__version__",
    "constants",
]
