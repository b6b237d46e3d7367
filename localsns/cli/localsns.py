import logging
import os

import click

from localsns import __version__, config
from localsns.config import HostAndPort

LOG = logging.getLogger(__name__)


def _setup_cli_debug():
    config.DEBUG = True
    os.environ["DEBUG"] = "1"


@click.group(name="localsns", help="Local emulator of the SNS query API")
@click.version_option(version=__version__, message="%(version)s")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def localsns(debug):
    if debug:
        _setup_cli_debug()


@localsns.command(name="start", help="Start the emulator in the foreground")
@click.option("--host", type=str, help="Host to listen on (overrides GATEWAY_LISTEN)")
@click.option(
    "--port", type=click.IntRange(0, 65535), help="Port to listen on (overrides GATEWAY_LISTEN)"
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    help="Number of threads delivering published messages (overrides SNS_PUBLISH_WORKERS)",
)
def cmd_start(host: str, port: int, workers: int):
    from localsns.logging.setup import setup_logging_from_config
    from localsns.provider import SnsProvider
    from localsns.publisher import PublishDispatcher
    from localsns.registry import TopicRegistry
    from localsns.serving import create_app, serve

    setup_logging_from_config()

    listen = HostAndPort(
        host=host or config.GATEWAY_LISTEN.host,
        port=port if port is not None else config.GATEWAY_LISTEN.port,
    )
    provider = SnsProvider(
        registry=TopicRegistry(),
        publisher=PublishDispatcher(num_thread=workers or config.SNS_PUBLISH_WORKERS),
    )
    try:
        serve(create_app(provider), listen=listen)
    finally:
        LOG.debug("shutting down publish workers")
        provider.on_before_stop()
