"""
sqlsession
==========

A small session wrapper around a relational database driver.

Usage:
    from sqlsession import Session

    db = Session("shop", "app", "secret")
    products = db.run("SELECT * FROM products WHERE id = %s", [42])
    db.close()
"""

from sqlsession.config import settings, get_settings
from sqlsession.core.constants import ErrorMode, FetchMode, TransactionAction
from sqlsession.core.exceptions import (
    ConnectionError,
    ErrorCode,
    ErrorInfo,
    QueryError,
    SessionError,
    TransactionError,
)
from sqlsession.database import QueryLogEntry, Session, Statement

__version__ = "0.1.0"

__all__ = [
    "Session",
    "Statement",
    "QueryLogEntry",
    "ErrorInfo",
    "ErrorCode",
    "SessionError",
    "ConnectionError",
    "QueryError",
    "TransactionError",
    "FetchMode",
    "ErrorMode",
    "TransactionAction",
    "settings",
    "get_settings",
]
