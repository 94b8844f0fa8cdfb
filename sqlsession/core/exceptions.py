"""
Error types raised by a Session.

Every error carries an ErrorInfo triple describing what the driver
reported, so callers can inspect the SQLSTATE and the driver's own error
code without reaching into SQLAlchemy's exception wrappers.
"""

from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from sqlsession.core.constants import GENERAL_ERROR_SQLSTATE, NO_ERROR_SQLSTATE


class ErrorCode(str, Enum):
    """Error codes attached to SessionError instances."""

    CONNECTION_FAILED = "E1001"
    QUERY_FAILED = "E1002"
    EMPTY_QUERY = "E1003"
    TRANSACTION_FAILED = "E1004"
    INVALID_TRANSACTION_KEYWORD = "E1005"


class ErrorInfo(NamedTuple):
    """
    Last error reported on a connection.

    Attributes:
        sqlstate: Five character SQLSTATE ("00000" when there is no error)
        driver_code: Driver-specific error number, if the driver has one
        message: Driver error message
    """

    sqlstate: str = NO_ERROR_SQLSTATE
    driver_code: Optional[int] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.sqlstate == NO_ERROR_SQLSTATE

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        """
        Build an ErrorInfo from a driver exception.

        Accepts SQLAlchemy's DBAPIError wrappers as well as raw DB-API
        exceptions. PyMySQL reports ``(errno, message)`` args, sqlite3
        exposes ``sqlite_errorcode``, psycopg exposes ``pgcode``.
        """
        orig = getattr(exc, "orig", None) or exc
        sqlstate = (
            getattr(orig, "sqlstate", None)
            or getattr(orig, "pgcode", None)
            or GENERAL_ERROR_SQLSTATE
        )
        code = getattr(orig, "sqlite_errorcode", None)
        message = str(orig)

        args = getattr(orig, "args", ())
        if code is None and args and isinstance(args[0], int):
            code = args[0]
            if len(args) > 1:
                message = str(args[1])

        return cls(sqlstate=str(sqlstate), driver_code=code, message=message)


NO_ERROR = ErrorInfo()


class SessionError(Exception):
    """Base class for all sqlsession errors."""

    def __init__(self,
                 message: str,
                 code: ErrorCode,
                 error_info: Optional[ErrorInfo] = None):
        self.message = message
        self.code = code
        self.error_info = error_info or NO_ERROR
        super().__init__(self.message)

    @property
    def driver_code(self) -> Optional[int]:
        return self.error_info.driver_code

    def to_dict(self) -> Dict[str, Any]:
        """Error information as a plain dict."""
        return {
            "code": self.code.value,
            "message": self.message,
            "sqlstate": self.error_info.sqlstate,
            "driver_code": self.error_info.driver_code,
            "driver_message": self.error_info.message,
        }


class ConnectionError(SessionError):
    """The session could not connect to the database."""

    def __init__(self, message: str, error_info: Optional[ErrorInfo] = None):
        super().__init__(message, ErrorCode.CONNECTION_FAILED, error_info)


class QueryError(SessionError):
    """A query was empty or the driver rejected it."""


class TransactionError(SessionError):
    """A transaction keyword was unknown or a boundary call failed."""
