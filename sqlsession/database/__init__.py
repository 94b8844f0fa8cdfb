"""Database package."""

from sqlsession.database.engine import build_url, create_db_engine, is_file_based
from sqlsession.database.session import QueryLogEntry, Session
from sqlsession.database.statement import Statement

__all__ = [
    "build_url",
    "create_db_engine",
    "is_file_based",
    "QueryLogEntry",
    "Session",
    "Statement",
]
