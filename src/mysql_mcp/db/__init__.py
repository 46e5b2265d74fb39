"""Database connectivity, configuration resolution and statement handling."""

from mysql_mcp.db.connection import (
    ConnectionManager,
    get_connection_manager,
    reset_connection_manager,
)
from mysql_mcp.db.descriptor import ConnectionDescriptor, RetryPolicy, TLSSettings
from mysql_mcp.db.errors import ClassifiedError, ErrorKind, translate
from mysql_mcp.db.resolver import from_settings, resolve

__all__ = [
    "ClassifiedError",
    "ConnectionDescriptor",
    "ConnectionManager",
    "ErrorKind",
    "RetryPolicy",
    "TLSSettings",
    "from_settings",
    "get_connection_manager",
    "reset_connection_manager",
    "resolve",
    "translate",
]
