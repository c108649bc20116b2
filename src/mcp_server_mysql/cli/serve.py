"""The `serve` command: run the MCP server over stdio or streamable HTTP."""

from __future__ import annotations

import dataclasses
import signal

import click

from mcp_server_mysql.config import TRANSPORTS, ServerConfig
from mcp_server_mysql.log import configure_logging
from mcp_server_mysql.server import create_server


def _terminate(signum, frame) -> None:
    # Unwind like Ctrl-C so the server lifespan closes the pool.
    raise KeyboardInterrupt


@click.command()
@click.option(
    "--transport",
    type=click.Choice(TRANSPORTS),
    default=None,
    help="MCP transport (overrides MCP_TRANSPORT).",
)
@click.option("--port", type=int, default=None, help="HTTP port (overrides PORT).")
def serve(transport: str | None, port: int | None) -> None:
    """Start the MCP server."""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    overrides = {}
    if transport:
        overrides["transport"] = transport
    if port is not None:
        overrides["http_port"] = port
    if overrides:
        config = dataclasses.replace(config, **overrides)

    configure_logging(config.enable_logging, config.log_level)
    server = create_server(config)

    signal.signal(signal.SIGTERM, _terminate)
    try:
        server.run(transport=config.transport)
    except KeyboardInterrupt:
        pass
