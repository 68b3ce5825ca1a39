"""Command line entry point for the webhook server."""

import sys

import click
import structlog
import uvicorn

from . import __version__
from .config import ConfigError, ConfigLoader, parse_listen_address
from .logging import configure_logging, get_uvicorn_log_config
from .server import CallbackDispatcher, create_app

logger = structlog.get_logger()


@click.command()
@click.option(
    "--config",
    "-c",
    "config_file",
    envvar="SSHHOOK_CONFIG",
    default="webhook.yaml",
    show_default=True,
    help="Path to the webhook config file.",
)
@click.option(
    "--listen",
    envvar="SSHHOOK_LISTEN",
    default=None,
    help="Listen address (host:port), overrides the config file.",
)
@click.option(
    "--shutdown-timeout",
    envvar="SHUTDOWN_TIMEOUT_SECONDS",
    default=5,
    show_default=True,
    type=int,
    help="Seconds to wait for in-flight callbacks on shutdown.",
)
@click.version_option(__version__)
def main(config_file: str, listen: str | None, shutdown_timeout: int) -> None:
    """Serve password, public key and config callbacks for an SSH gateway."""
    configure_logging()

    # Nothing is served unless the whole directory loads
    try:
        config = ConfigLoader(config_file).load()
        host, port = parse_listen_address(listen or config.listen)
        dispatcher = CallbackDispatcher.from_config(config)
    except ConfigError as e:
        logger.error("Failed to load config", file=config_file, error=str(e))
        sys.exit(1)

    app = create_app(dispatcher)
    logger.info("Webhook server starting", host=host, port=port)

    try:
        uvicorn.run(
            app,
            host=host,
            port=port,
            timeout_graceful_shutdown=shutdown_timeout,
            log_level="info",
            log_config=get_uvicorn_log_config(),
        )
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")

    logger.info("Webhook server stopped")
