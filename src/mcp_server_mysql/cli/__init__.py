"""CLI entry point for `mcp-server-mysql`."""

from __future__ import annotations

import click
from dotenv import load_dotenv

from mcp_server_mysql.cli.serve import serve
from mcp_server_mysql.cli.validate import validate


@click.group()
@click.version_option(package_name="mcp-server-mysql")
def main() -> None:
    """MySQL MCP server with per-schema write permissions."""
    load_dotenv()


main.add_command(serve)
main.add_command(validate)
