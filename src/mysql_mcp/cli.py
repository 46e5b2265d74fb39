"""Command line interface for mysql-mcp."""

import asyncio
import sys
from importlib.metadata import PackageNotFoundError, version

import click
from rich.console import Console
from rich.table import Table

from mysql_mcp.config import get_settings
from mysql_mcp.db.connection import ConnectionManager
from mysql_mcp.db.errors import ClassifiedError
from mysql_mcp.db.resolver import from_settings, resolve

# stdout is reserved for the stdio transport
console = Console(stderr=True)


def _get_cli_version() -> str:
    """Get installed package version."""
    try:
        return version("mysql-mcp")
    except PackageNotFoundError:
        return "unknown"


@click.group()
@click.version_option(version=_get_cli_version())
def main():
    """mysql-mcp - MySQL query and schema tools over MCP."""
    pass


@main.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "http"]),
    default=None,
    help="Override MCP_TRANSPORT.",
)
def serve(transport: str | None):
    """Start the MCP server."""
    from mysql_mcp.server import main as run_server

    run_server(transport=transport)


@main.command()
@click.option("--url", default=None, help="Connection URL (mysql:// or mysqls://).")
@click.option(
    "--workspace",
    default=None,
    type=click.Path(file_okay=False),
    help="Directory containing a .env file.",
)
def check(url: str | None, workspace: str | None):
    """Resolve the connection configuration and test it once."""
    settings = get_settings()
    try:
        if url or workspace:
            descriptor = resolve(url=url, workspace=workspace)
        else:
            descriptor = from_settings(settings)
    except ClassifiedError as e:
        console.print(f"[red]{e.kind.value}:[/red] {e.message}")
        sys.exit(2)

    table = Table(title="Connection", show_header=False)
    table.add_row("Target", descriptor.safe_repr())
    table.add_row("TLS", "required" if descriptor.tls_required else "off")
    if descriptor.retry is not None:
        table.add_row(
            "Retry",
            f"{descriptor.retry.max_attempts} attempts, {descriptor.retry.delay_ms}ms apart",
        )
    console.print(table)

    manager = ConnectionManager(settings)

    async def probe():
        try:
            await manager.reconfigure(descriptor)
        finally:
            await manager.close()

    try:
        asyncio.run(probe())
    except ClassifiedError as e:
        console.print(f"[red]{e.kind.value}:[/red] {e.message}")
        sys.exit(1)

    console.print(f"[green]Connected to {descriptor.host}[/green]")


if __name__ == "__main__":
    main()
