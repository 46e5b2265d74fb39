"""Normalized connection parameters."""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.engine import URL

DEFAULT_PORT = 3306


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry for initial pool establishment."""

    max_attempts: int = 3
    delay_ms: int = 1000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {self.delay_ms}")


@dataclass(frozen=True)
class TLSSettings:
    """TLS options passed through to the driver."""

    ca: str | None = None
    cert: str | None = None
    key: str | None = None
    verify: bool = True

    def to_connect_args(self) -> dict[str, Any]:
        """Build the ``ssl`` dict understood by PyMySQL."""
        ssl: dict[str, Any] = {}
        if self.ca:
            ssl["ca"] = self.ca
        if self.cert:
            ssl["cert"] = self.cert
        if self.key:
            ssl["key"] = self.key
        ssl["check_hostname"] = self.verify
        ssl["verify_mode"] = self.verify
        return ssl


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Everything needed to reach one MySQL database.

    Immutable once built; a new configuration produces a new descriptor.
    """

    host: str
    user: str
    password: str = field(repr=False)
    database: str
    port: int = DEFAULT_PORT
    tls: TLSSettings | None = None
    connect_timeout_ms: int | None = None
    retry: RetryPolicy | None = None
    connection_limit: int | None = None

    @property
    def tls_required(self) -> bool:
        return self.tls is not None

    def to_url(self) -> URL:
        """SQLAlchemy URL for the PyMySQL driver."""
        return URL.create(
            "mysql+pymysql",
            username=self.user or None,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database or None,
        )

    def safe_repr(self) -> str:
        """Human-readable target with the password masked."""
        scheme = "mysqls" if self.tls_required else "mysql"
        auth = f"{self.user}:***@" if self.password else (f"{self.user}@" if self.user else "")
        return f"{scheme}://{auth}{self.host}:{self.port}/{self.database}"
