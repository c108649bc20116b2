"""The `validate` command: run SQL through admission without touching a database."""

from __future__ import annotations

import json

import click

from mcp_server_mysql.config import ServerConfig
from mcp_server_mysql.errors import SqlParseError
from mcp_server_mysql.log import configure_logging
from mcp_server_mysql.policy import Admission, OperationCategory, PermissionPolicy, admit


def _ordered_categories(admission: Admission) -> list[str]:
    return [c.value for c in OperationCategory if c in admission.categories]


def _render_text(admission: Admission) -> str:
    lines = [
        f"statements: {', '.join(k.value for k in admission.kinds)}",
        f"categories: {', '.join(_ordered_categories(admission))}",
        f"schema: {admission.schema_label}",
    ]
    if admission.allowed:
        lines.append("allowed")
    else:
        lines.append(admission.denial_message())
    return "\n".join(lines)


def _render_json(admission: Admission) -> str:
    return json.dumps(
        {
            "statements": [k.value for k in admission.kinds],
            "categories": _ordered_categories(admission),
            "schema": admission.schema,
            "allowed": admission.allowed,
            "message": admission.denial_message(),
        },
        indent=2,
    )


@click.command()
@click.argument("sql")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format.",
)
def validate(sql: str, output_format: str) -> None:
    """Check SQL against the configured permissions without executing it."""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    configure_logging(config.enable_logging, config.log_level)
    try:
        admission = admit(
            sql,
            policy=PermissionPolicy.from_config(config),
            default_schema=config.default_schema,
            multi_db=config.multi_db,
        )
    except SqlParseError as e:
        click.echo(f"Error: {e}")
        raise SystemExit(1) from e

    if output_format == "json":
        click.echo(_render_json(admission))
    else:
        click.echo(_render_text(admission))
    if not admission.allowed:
        raise SystemExit(1)
