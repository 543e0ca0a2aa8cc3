"""Entry point for running the package as a module.

This module allows running the FastAPI application using:
python -m forge_server
"""

import logging
import logging.config
from pathlib import Path

import click
import uvicorn
import yaml

from forge_server.utils import constants


def load_logging_config(debug: bool = False) -> dict:
    """Load and configure logging from YAML file.

    Args:
        debug: Whether to enable debug logging levels in the YAML config.

    Returns:
        dict: The configured logging dictionary.
    """
    config_path = Path(__file__).parent / "logging_config.yaml"
    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if debug:
        config["root"]["level"] = "DEBUG"
        for logger_config in config.get("loggers", {}).values():
            logger_config["level"] = "DEBUG"

    return config


@click.command(
    context_settings=dict(help_option_names=["-h", "--help"]),
    short_help="Starts the Forge API server.",
)
@click.option(
    "--host",
    default=constants.API_HOST,
    show_default=True,
    help="The host to bind the server to.",
)
@click.option(
    "--port",
    type=int,
    default=constants.API_PORT,
    show_default=True,
    help="The port to bind the server to.",
)
@click.option(
    "--workers",
    type=int,
    default=1,
    show_default=True,
    help="Number of worker processes for Uvicorn.",
)
@click.option(
    "--log-level",
    type=click.Choice(
        ["debug", "info", "warning", "error", "critical"], case_sensitive=False
    ),
    default=constants.LOG_LEVEL.lower(),
    show_default=True,
    help="Set the Uvicorn log level.",
)
@click.option(
    "--reload/--no-reload",
    default=False,
    show_default=True,
    help="Enable/disable auto-reloading on code changes.",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help=(
        "Enable debug mode (sets YAML log config to DEBUG, implies --log-level "
        "debug if not set)."
    ),
)
@click.version_option(version=constants.API_VERSION, prog_name=constants.API_TITLE)
def main(
    host: str,
    port: int,
    workers: int,
    log_level: str,
    reload: bool,
    debug: bool,
):
    """Start the Forge API server with Uvicorn.

    Args:
        host: Hostname or IP address to bind the server to.
        port: TCP port to listen on.
        workers: Number of worker processes to run.
        log_level: Uvicorn log level; raised to ``debug`` by ``--debug``.
        reload: Enable Uvicorn auto-reload for development.
        debug: Raise every logger in the YAML configuration to DEBUG.
    """
    effective_log_level = log_level
    if debug and log_level == constants.LOG_LEVEL.lower():
        effective_log_level = "debug"

    log_config_dict = load_logging_config(debug=debug)
    logging.config.dictConfig(log_config_dict)
    logger = logging.getLogger("forge_server")

    click.echo()
    click.secho(
        f"🚀 Starting {constants.API_TITLE} v{constants.API_VERSION}",
        fg="cyan",
        bold=True,
    )
    click.secho(f"🔗 Listening on: http://{host}:{port}", fg="blue")
    click.secho(
        f"✅ Health check: http://{host}:{port}{constants.API_PREFIX}/health",
        fg="blue",
    )
    click.secho(f"🔧 Environment: {constants.FORGE_ENV}", fg="magenta")

    if workers > 1:
        click.secho(
            f"⚙️  Running with {workers} worker processes "
            "(rate limits are tracked per process).",
            fg="magenta",
        )

    if reload:
        click.secho("🔄 Auto-reload is enabled (for development).", fg="yellow")

    if debug:
        click.secho(
            f"🐛 Debug mode is ON (YAML log levels set to DEBUG, "
            f"Uvicorn log level: {effective_log_level}).",
            fg="bright_red",
        )
    else:
        click.secho(f"🪵  Uvicorn log level: {effective_log_level}", fg="green")

    click.echo("\n✨ Uvicorn is now starting up... (Press CTRL+C to quit)")
    logger.info(
        "Uvicorn server configured to run on %s:%s with log_level='%s'. Reload: %s",
        host,
        port,
        effective_log_level,
        reload,
    )

    uvicorn.run(
        "forge_server.main:app",
        host=host,
        port=port,
        workers=workers,
        log_level=effective_log_level,
        reload=reload,
        log_config=log_config_dict,
    )


if __name__ == "__main__":
    main()  # pylint: disable=no-value-for-parameter
