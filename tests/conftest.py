"""Shared fixtures."""

import pytest

from mysql_mcp.config import reset_settings
from mysql_mcp.db.connection import reset_connection_manager

_ENV_VARS = (
    "DATABASE_URL",
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_PASSWORD",
    "DB_DATABASE",
    "DB_NAME",
    "DB_SSL",
    "DB_CONNECTION_TIMEOUT",
    "DB_CONNECTION_LIMIT",
    "DB_CONNECT_MAX_ATTEMPTS",
    "DB_CONNECT_RETRY_DELAY",
    "MCP_TRANSPORT",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and .env file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    reset_connection_manager()
    yield
    reset_settings()
    reset_connection_manager()
