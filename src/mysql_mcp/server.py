"""FastMCP server for mysql-mcp."""

import logging
import signal
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from mysql_mcp import __version__
from mysql_mcp.config import get_settings
from mysql_mcp.db.connection import get_connection_manager
from mysql_mcp.tools.database import (
    _add_column,
    _connect,
    _create_table,
    _describe_table,
    _execute,
    _list_tables,
    _query,
)

SERVER_NAME = "mysql-server"

INSTRUCTIONS = """
MySQL query and schema server.

- Use `query` for SELECT statements and `execute` for INSERT, UPDATE and DELETE.
- Pass values through `params` with `?` placeholders instead of inlining them.
- Use `list_tables` and `describe_table` to explore the schema.
- Use `create_table` and `add_column` to change it.
- Call `connect` first to target a database other than the one configured in
  the server environment.
"""


@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Server lifespan: release the connection pool on shutdown."""
    logger = logging.getLogger(__name__)
    try:
        yield
    finally:
        await get_connection_manager().close()
        logger.info("Connection manager closed")


def _create_server() -> FastMCP:
    """Create the MCP server and register its tools."""
    server = FastMCP(
        name=SERVER_NAME,
        version=__version__,
        lifespan=server_lifespan,
        instructions=INSTRUCTIONS,
    )

    server.tool(name="connect")(_connect)
    server.tool(name="query")(_query)
    server.tool(name="execute")(_execute)
    server.tool(name="list_tables")(_list_tables)
    server.tool(name="describe_table")(_describe_table)
    server.tool(name="create_table")(_create_table)
    server.tool(name="add_column")(_add_column)

    return server


# Create the server instance
mcp = _create_server()


def _configure_logging():
    """Configure logging before anything else.

    Logs go to stderr; stdout belongs to the stdio transport.
    """
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _handle_sigterm(signum, frame):
    """Turn SIGTERM into a normal exit so cleanup runs."""
    sys.exit(0)


def main(transport: str | None = None):
    """Run the MCP server."""
    _configure_logging()
    signal.signal(signal.SIGTERM, _handle_sigterm)

    settings = get_settings()
    logger = logging.getLogger(__name__)
    transport = transport or settings.mcp_transport

    logger.info(f"MySQL MCP server running on {transport}")
    try:
        if transport == "http":
            mcp.run(
                transport="http",
                host=settings.mcp_host,
                port=settings.mcp_port,
                path=settings.mcp_path,
            )
        else:
            # Default: stdio for local agents
            mcp.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)
    finally:
        get_connection_manager().dispose()


if __name__ == "__main__":
    main()
