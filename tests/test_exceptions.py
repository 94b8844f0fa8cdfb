"""
Tests for ErrorInfo extraction and the error hierarchy.
"""

import sqlite3

import pytest

from sqlsession import (
    ConnectionError,
    ErrorCode,
    ErrorInfo,
    QueryError,
    SessionError,
    TransactionError,
)
from sqlsession.core.exceptions import NO_ERROR


def test_no_error_value():
    assert NO_ERROR == ("00000", None, None)
    assert NO_ERROR.ok


def test_from_pymysql_style_args():
    """PyMySQL errors carry (errno, message) as their args."""
    info = ErrorInfo.from_exception(Exception(1045, "Access denied for user 'app'"))

    assert info == ("HY000", 1045, "Access denied for user 'app'")
    assert not info.ok


def test_from_sqlite_error():
    conn = sqlite3.connect(":memory:")
    try:
        with pytest.raises(sqlite3.OperationalError) as exc_info:
            conn.execute("SELECT * FROM nope")
    finally:
        conn.close()

    info = ErrorInfo.from_exception(exc_info.value)

    assert info.sqlstate == "HY000"
    assert info.driver_code == sqlite3.SQLITE_ERROR
    assert info.message == "no such table: nope"


def test_from_exception_prefers_driver_sqlstate():
    class DriverError(Exception):
        pgcode = "42P01"

    info = ErrorInfo.from_exception(DriverError('relation "nope" does not exist'))

    assert info.sqlstate == "42P01"
    assert info.driver_code is None


def test_from_sqlalchemy_wrapper_unwraps_orig():
    class Wrapper(Exception):
        def __init__(self, orig):
            super().__init__(str(orig))
            self.orig = orig

    info = ErrorInfo.from_exception(Wrapper(Exception(2003, "Can't connect")))

    assert info.driver_code == 2003
    assert info.message == "Can't connect"


def test_error_to_dict():
    info = ErrorInfo("HY000", 1, "no such table: t")
    error = QueryError("Query failed: no such table: t", ErrorCode.QUERY_FAILED, info)

    assert error.to_dict() == {
        "code": "E1002",
        "message": "Query failed: no such table: t",
        "sqlstate": "HY000",
        "driver_code": 1,
        "driver_message": "no such table: t",
    }
    assert error.driver_code == 1
    assert str(error) == "Query failed: no such table: t"


def test_hierarchy():
    assert issubclass(ConnectionError, SessionError)
    assert issubclass(QueryError, SessionError)
    assert issubclass(TransactionError, SessionError)

    error = ConnectionError("down")
    assert error.code == ErrorCode.CONNECTION_FAILED
    assert error.error_info == NO_ERROR
