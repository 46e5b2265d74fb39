"""Tests for driver error translation."""

import socket

import pymysql
import pytest
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS
from sqlalchemy.exc import OperationalError as SAOperationalError

from mysql_mcp.db.errors import ClassifiedError, ErrorKind, translate


def _raised_from(error, cause):
    """Return ``error`` with ``cause`` attached the way ``raise ... from`` does."""
    try:
        raise error from cause
    except type(error) as e:
        return e


class TestDriverCodes:
    @pytest.mark.parametrize(
        "code,kind",
        [
            (1064, ErrorKind.INVALID_STATEMENT),
            (1065, ErrorKind.INVALID_STATEMENT),
            (1045, ErrorKind.AUTH_FAILED),
            (1049, ErrorKind.CONFIG_ERROR),
            (1146, ErrorKind.INVALID_STATEMENT),
            (1062, ErrorKind.CONSTRAINT_ERROR),
            (2006, ErrorKind.CONNECTION_ERROR),
            (2013, ErrorKind.CONNECTION_ERROR),
            (1213, ErrorKind.INTERNAL_ERROR),
        ],
    )
    def test_kind(self, code, kind):
        error = translate(pymysql.err.OperationalError(code, "message"))
        assert error.kind is kind
        assert error.code == code

    def test_syntax_message_includes_driver_text(self):
        error = translate(
            pymysql.err.ProgrammingError(1064, "You have an error in your SQL syntax")
        )
        assert error.message == "Invalid SQL syntax: You have an error in your SQL syntax"

    def test_auth_message_hides_details(self):
        error = translate(pymysql.err.OperationalError(1045, "Access denied for user 'bob'"))
        assert error.message == "Database authentication failed: Invalid credentials"
        assert "bob" not in error.message

    def test_missing_table_message(self):
        error = translate(pymysql.err.ProgrammingError(1146, "Table 'shop.nope' doesn't exist"))
        assert error.message == "Table does not exist: Table 'shop.nope' doesn't exist"

    def test_duplicate_entry_message(self):
        error = translate(pymysql.err.IntegrityError(1062, "Duplicate entry '1' for key 'PRIMARY'"))
        assert error.message == "Data integrity error: Duplicate entry"

    def test_unknown_code_passes_message_through(self):
        error = translate(pymysql.err.OperationalError(1213, "Deadlock found"))
        assert error.message == "Unexpected database error: Deadlock found"


class TestSocketCodes:
    def test_refused(self):
        error = translate(
            _raised_from(
                pymysql.err.OperationalError(2003, "Can't connect"),
                ConnectionRefusedError(111, "Connection refused"),
            )
        )
        assert error.kind is ErrorKind.CONNECTION_ERROR
        assert error.code == "ECONNREFUSED"
        assert error.message == "Database connection error: ECONNREFUSED"

    def test_unknown_host(self):
        error = translate(
            _raised_from(
                pymysql.err.OperationalError(2003, "Can't connect"),
                socket.gaierror(-2, "Name or service not known"),
            )
        )
        assert error.code == "ENOTFOUND"

    def test_timeout(self):
        error = translate(
            _raised_from(pymysql.err.OperationalError(2003, "Can't connect"), TimeoutError())
        )
        assert error.code == "ETIMEDOUT"

    def test_bare_socket_error(self):
        error = translate(ConnectionRefusedError(111, "Connection refused"))
        assert error.kind is ErrorKind.CONNECTION_ERROR
        assert error.code == "ECONNREFUSED"

    def test_connection_code_without_socket_cause(self):
        error = translate(pymysql.err.OperationalError(2013, "Lost connection"))
        assert error.code == 2013
        assert error.message == "Database connection error: 2013"


class TestUnwrapping:
    def test_sqlalchemy_wrapper_unwrapped(self):
        orig = pymysql.err.OperationalError(1049, "Unknown database 'nope'")
        error = translate(SAOperationalError("SELECT 1", None, orig))
        assert error.kind is ErrorKind.CONFIG_ERROR
        assert error.code == 1049

    def test_classified_error_returned_unchanged(self):
        original = ClassifiedError(ErrorKind.MISSING_CONFIG, "nothing")
        assert translate(original) is original

    def test_non_driver_error_is_internal(self):
        error = translate(ValueError("boom"))
        assert error.kind is ErrorKind.INTERNAL_ERROR
        assert error.code is None
        assert error.message == "Unexpected database error: boom"


class TestClassifiedError:
    def test_mcp_codes(self):
        assert ClassifiedError(ErrorKind.INVALID_STATEMENT, "x").mcp_code == INVALID_PARAMS
        assert ClassifiedError(ErrorKind.CONNECTION_ERROR, "x").mcp_code == INTERNAL_ERROR

    def test_caller_errors(self):
        assert ClassifiedError(ErrorKind.AUTH_FAILED, "x").is_caller_error
        assert not ClassifiedError(ErrorKind.INTERNAL_ERROR, "x").is_caller_error

    def test_str_is_message(self):
        assert str(ClassifiedError(ErrorKind.CONFIG_ERROR, "bad db")) == "bad db"
