"""Configuration for mysql-mcp."""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Database connection (process-wide fallback)
    # ==========================================================================

    database_url: str = Field(
        default="",
        description="Full connection URL (mysql:// or mysqls://); overrides DB_* fields",
    )
    db_host: str = Field(default="localhost", description="MySQL server host")
    db_port: int = Field(default=3306, description="MySQL server port")
    db_user: str = Field(default="root", description="MySQL user")
    db_password: str = Field(default="", description="MySQL password")
    db_database: str = Field(
        default="",
        validation_alias=AliasChoices("db_database", "db_name"),
        description="Database (schema) name",
    )
    db_ssl: bool = Field(default=False, description="Require TLS for the connection")

    # ==========================================================================
    # Pool and retry
    # ==========================================================================

    db_connection_timeout: int = Field(
        default=10000,
        ge=0,
        description="Connect timeout in milliseconds",
    )
    db_connection_limit: int = Field(
        default=10,
        ge=1,
        description="Maximum number of pooled connections",
    )
    db_connect_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Connection attempts before giving up",
    )
    db_connect_retry_delay: int = Field(
        default=1000,
        ge=0,
        description="Delay between connection attempts in milliseconds",
    )

    # ==========================================================================
    # MCP server
    # ==========================================================================

    log_level: str = Field(default="INFO", description="Root log level")
    mcp_transport: Literal["stdio", "http"] = Field(
        default="stdio",
        description="MCP transport: 'stdio' for local, 'http' for remote",
    )
    mcp_host: str = Field(default="127.0.0.1", description="Host to bind MCP HTTP server")
    mcp_port: int = Field(default=8000, description="Port for MCP HTTP server")
    mcp_path: str = Field(default="/mcp", description="Path for MCP HTTP endpoint")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None
