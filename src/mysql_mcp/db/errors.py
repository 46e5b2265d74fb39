"""Classification of driver failures into caller-facing error kinds."""

import logging
import socket
from enum import Enum

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST
from pymysql.constants import CR, ER
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Taxonomy attached to every failure surfaced to a tool caller."""

    INVALID_STATEMENT = "InvalidStatement"
    AUTH_FAILED = "AuthFailed"
    CONFIG_ERROR = "ConfigError"
    CONNECTION_ERROR = "ConnectionError"
    CONSTRAINT_ERROR = "ConstraintError"
    INTERNAL_ERROR = "InternalError"
    INVALID_CONFIG = "InvalidConfig"
    MISSING_CONFIG = "MissingConfig"


# JSON-RPC error code reported for each kind.
_MCP_CODES = {
    ErrorKind.INVALID_STATEMENT: INVALID_PARAMS,
    ErrorKind.AUTH_FAILED: INVALID_REQUEST,
    ErrorKind.CONFIG_ERROR: INTERNAL_ERROR,
    ErrorKind.CONNECTION_ERROR: INTERNAL_ERROR,
    ErrorKind.CONSTRAINT_ERROR: INVALID_PARAMS,
    ErrorKind.INTERNAL_ERROR: INTERNAL_ERROR,
    ErrorKind.INVALID_CONFIG: INVALID_PARAMS,
    ErrorKind.MISSING_CONFIG: INVALID_PARAMS,
}

CALLER_ERRORS = frozenset(
    {
        ErrorKind.INVALID_STATEMENT,
        ErrorKind.AUTH_FAILED,
        ErrorKind.CONSTRAINT_ERROR,
        ErrorKind.INVALID_CONFIG,
        ErrorKind.MISSING_CONFIG,
    }
)

_CONNECTION_CODES = frozenset(
    {
        CR.CR_CONNECTION_ERROR,
        CR.CR_CONN_HOST_ERROR,
        CR.CR_UNKNOWN_HOST,
        CR.CR_SERVER_GONE_ERROR,
        CR.CR_SERVER_LOST,
    }
)


class ClassifiedError(Exception):
    """A failure tagged with its :class:`ErrorKind`.

    Args:
        kind: Classification of the failure.
        message: Caller-visible message.
        code: Original driver code (errno or symbolic socket code), if any.
    """

    def __init__(self, kind: ErrorKind, message: str, code: int | str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code

    @property
    def mcp_code(self) -> int:
        """JSON-RPC error code for this kind."""
        return _MCP_CODES[self.kind]

    @property
    def is_caller_error(self) -> bool:
        """True when the failure was caused by the caller's input or config."""
        return self.kind in CALLER_ERRORS

    def __repr__(self) -> str:
        return f"ClassifiedError({self.kind.value}, {self.message!r}, code={self.code!r})"


def _socket_code(error: BaseException | None) -> str | None:
    """Derive ECONNREFUSED/ETIMEDOUT/ENOTFOUND from a socket-level cause."""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        if isinstance(error, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(error, ConnectionRefusedError):
            return "ECONNREFUSED"
        if isinstance(error, TimeoutError):
            return "ETIMEDOUT"
        error = error.__cause__ or error.__context__
    return None


def _driver_code(error: BaseException) -> int | None:
    args = getattr(error, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def _driver_message(error: BaseException) -> str:
    args = getattr(error, "args", ())
    if len(args) >= 2 and isinstance(args[1], str):
        return args[1]
    return str(error)


def translate(error: BaseException) -> ClassifiedError:
    """Map a low-level failure to a :class:`ClassifiedError`.

    ``sqlalchemy.exc.DBAPIError`` wrappers are unwrapped to the PyMySQL
    exception they carry. Already classified errors are returned unchanged.
    """
    if isinstance(error, ClassifiedError):
        return error

    original: BaseException = error
    if isinstance(error, DBAPIError) and error.orig is not None:
        original = error.orig

    # OSError args carry an OS errno, not a MySQL error number.
    code = None if isinstance(original, OSError) else _driver_code(original)
    message = _driver_message(original)

    if code in (ER.PARSE_ERROR, ER.EMPTY_QUERY):
        return ClassifiedError(
            ErrorKind.INVALID_STATEMENT, f"Invalid SQL syntax: {message}", code
        )

    if code == ER.ACCESS_DENIED_ERROR:
        return ClassifiedError(
            ErrorKind.AUTH_FAILED, "Database authentication failed: Invalid credentials", code
        )

    if code == ER.BAD_DB_ERROR:
        return ClassifiedError(
            ErrorKind.CONFIG_ERROR,
            "Database configuration error: Database does not exist",
            code,
        )

    socket_code = _socket_code(original)
    if code in _CONNECTION_CODES or (code is None and socket_code is not None):
        symbolic = socket_code or code
        return ClassifiedError(
            ErrorKind.CONNECTION_ERROR, f"Database connection error: {symbolic}", symbolic
        )

    if code == ER.NO_SUCH_TABLE:
        return ClassifiedError(
            ErrorKind.INVALID_STATEMENT, f"Table does not exist: {message}", code
        )

    if code == ER.DUP_ENTRY:
        return ClassifiedError(
            ErrorKind.CONSTRAINT_ERROR, "Data integrity error: Duplicate entry", code
        )

    logger.error(
        "Unhandled MySQL error: code=%s type=%s message=%s",
        code,
        type(original).__name__,
        message,
        exc_info=original,
    )
    return ClassifiedError(
        ErrorKind.INTERNAL_ERROR, f"Unexpected database error: {message}", code
    )
