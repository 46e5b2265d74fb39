"""Database connection management."""

import asyncio
import base64
import logging
from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy import Connection, CursorResult, Engine, create_engine

from mysql_mcp.config import Settings, get_settings
from mysql_mcp.db.descriptor import ConnectionDescriptor, RetryPolicy
from mysql_mcp.db.errors import translate
from mysql_mcp.db.resolver import from_settings, retry_policy_from_settings

logger = logging.getLogger(__name__)

# Largest integer a JSON consumer can represent exactly.
MAX_SAFE_INTEGER = 2**53 - 1

POOL_RECYCLE_SECONDS = 300

EngineFactory = Callable[[ConnectionDescriptor, Settings], Engine]


def create_mysql_engine(descriptor: ConnectionDescriptor, settings: Settings) -> Engine:
    """Create a pooled SQLAlchemy engine for ``descriptor``.

    Idle connections are recycled before the server's wait timeout can drop
    them. Connections are not pinged on checkout; a pool whose server went away
    is only noticed by the next statement that fails.
    """
    timeout_ms = descriptor.connect_timeout_ms or settings.db_connection_timeout
    connect_args: dict[str, Any] = {
        "connect_timeout": max(1, timeout_ms // 1000),
        "charset": "utf8mb4",
    }
    if descriptor.tls is not None:
        connect_args["ssl"] = descriptor.tls.to_connect_args()

    return create_engine(
        descriptor.to_url(),
        pool_size=descriptor.connection_limit or settings.db_connection_limit,
        max_overflow=0,
        pool_timeout=max(1, timeout_ms / 1000),
        pool_recycle=POOL_RECYCLE_SECONDS,
        connect_args=connect_args,
    )


def bind_placeholders(sql: str) -> str:
    """Rewrite ``?`` placeholders into the driver's ``%s`` style.

    Question marks inside quoted strings or identifiers are left alone and
    literal ``%`` signs are doubled so the driver does not read them as
    format markers.
    """
    out: list[str] = []
    quote: str | None = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if ch == "%":
            out.append("%%")
        elif quote is not None:
            out.append(ch)
            if ch == "\\" and quote != "`" and i + 1 < len(sql):
                i += 1
                out.append("%%" if sql[i] == "%" else sql[i])
            elif ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _exec(conn: Connection, sql: str, params: Sequence[Any]) -> CursorResult:
    if params:
        return conn.exec_driver_sql(bind_placeholders(sql), tuple(params))
    # Without parameters the statement must reach the driver untouched.
    return conn.exec_driver_sql(sql, execution_options={"no_parameters": True})


def _check_liveness(engine: Engine) -> None:
    """Acquire one physical connection and hand it straight back."""
    with engine.connect():
        pass


def _jsonable(value: Any) -> Any:
    # BLOB/BINARY/BIT columns
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
        return str(value)
    return value


def _row_to_dict(row: Any) -> dict[str, Any]:
    return {key: _jsonable(value) for key, value in row._mapping.items()}


class ConnectionManager:
    """Owns the current descriptor and its pooled engine.

    The engine is created lazily and then reused for every statement until
    :meth:`close` or :meth:`reconfigure` replaces it. Tool calls run as
    concurrent tasks, so establishment and swaps are serialized by a lock.

    Args:
        settings: Settings used for the environment fallback and pool defaults.
        engine_factory: Builds an engine for a descriptor (swapped out in tests).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        engine_factory: EngineFactory = create_mysql_engine,
    ) -> None:
        self._settings = settings
        self._engine_factory = engine_factory
        self._engine: Engine | None = None
        self._descriptor: ConnectionDescriptor | None = None
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def descriptor(self) -> ConnectionDescriptor | None:
        return self._descriptor

    @property
    def is_ready(self) -> bool:
        return self._engine is not None

    def _retry_policy(self, descriptor: ConnectionDescriptor) -> RetryPolicy:
        return descriptor.retry or retry_policy_from_settings(self.settings)

    async def _establish(self, descriptor: ConnectionDescriptor) -> Engine:
        """Build and liveness-check an engine, retrying per the descriptor's policy.

        Raises:
            ClassifiedError: The last attempt's failure, translated.
        """
        policy = self._retry_policy(descriptor)
        last_error: BaseException | None = None

        for attempt in range(1, policy.max_attempts + 1):
            engine: Engine | None = None
            try:
                engine = self._engine_factory(descriptor, self.settings)
                await asyncio.to_thread(_check_liveness, engine)
                logger.info(f"Connected to MySQL server at {descriptor.host}")
                return engine
            except Exception as e:
                last_error = e
                if engine is not None:
                    engine.dispose()
                if attempt < policy.max_attempts:
                    logger.warning(
                        f"Connection attempt {attempt} failed, "
                        f"retrying in {policy.delay_ms}ms..."
                    )
                    await asyncio.sleep(policy.delay_ms / 1000)

        logger.error(
            f"Failed to connect to {descriptor.safe_repr()} "
            f"after {policy.max_attempts} attempts"
        )
        raise translate(last_error) from last_error

    async def ensure_ready(self) -> Engine:
        """Return the pooled engine, creating it on first use.

        An existing engine is returned as-is without re-validation.
        """
        if self._engine is not None:
            return self._engine

        async with self._lock:
            # Another task may have finished establishing while we waited
            if self._engine is not None:
                return self._engine

            descriptor = self._descriptor or from_settings(self.settings)
            engine = await self._establish(descriptor)
            self._engine = engine
            self._descriptor = descriptor
            return engine

    async def reconfigure(self, descriptor: ConnectionDescriptor) -> Engine:
        """Switch to ``descriptor``.

        The new engine is established before anything is replaced, so a failed
        reconfiguration leaves the previous descriptor and engine in place.
        """
        async with self._lock:
            engine = await self._establish(descriptor)
            previous = self._engine
            self._engine = engine
            self._descriptor = descriptor
        if previous is not None:
            await asyncio.to_thread(previous.dispose)
        return engine

    def _run_query(self, engine: Engine, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        with engine.connect() as conn:
            result = _exec(conn, sql, params)
            if not result.returns_rows:
                return []
            return [_row_to_dict(row) for row in result]

    def _run_execute(self, engine: Engine, sql: str, params: Sequence[Any]) -> dict[str, Any]:
        with engine.begin() as conn:
            result = _exec(conn, sql, params)
            return {
                "affectedRows": result.rowcount,
                "insertId": _jsonable(result.lastrowid),
            }

    async def query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Run a row-returning statement and return rows as dicts."""
        engine = await self.ensure_ready()
        try:
            return await asyncio.to_thread(self._run_query, engine, sql, params or ())
        except Exception as e:
            raise translate(e) from e

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> dict[str, Any]:
        """Run a mutating statement in its own transaction."""
        engine = await self.ensure_ready()
        try:
            return await asyncio.to_thread(self._run_execute, engine, sql, params or ())
        except Exception as e:
            raise translate(e) from e

    def dispose(self) -> None:
        """Close every pooled connection.

        The descriptor is kept, so the next :meth:`ensure_ready` reconnects to
        the same target.
        """
        engine = self._engine
        self._engine = None
        if engine is not None:
            engine.dispose()
            logger.info("MySQL connection pool closed")

    async def close(self) -> None:
        await asyncio.to_thread(self.dispose)


_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    """Get the process-wide connection manager."""
    global _manager
    if _manager is None:
        _manager = ConnectionManager()
    return _manager


def reset_connection_manager() -> None:
    """Dispose and drop the process-wide manager (useful for testing)."""
    global _manager
    if _manager is not None:
        _manager.dispose()
    _manager = None
