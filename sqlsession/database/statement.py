"""
Statement handle.

A Statement pairs SQL text with the driver result of its most recent
execution. Session.prepare() hands one back to the caller; the same
handle is also kept as the session's active statement.
"""

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import text
from sqlalchemy.engine import CursorResult, Row
from sqlalchemy.exc import SQLAlchemyError

from sqlsession.core.constants import FetchMode

if TYPE_CHECKING:
    from sqlsession.database.session import Session

Params = Union[Sequence[Any], Mapping[str, Any]]

SELECT_PATTERN = re.compile(r"SELECT", re.IGNORECASE)


def shape_row(row: Row, mode: FetchMode) -> Any:
    """Convert a driver row into the requested fetch shape."""
    if mode == FetchMode.NUM:
        return tuple(row)
    if mode == FetchMode.BOTH:
        shaped: Dict[Any, Any] = dict(enumerate(row))
        shaped.update(row._mapping)
        return shaped
    return dict(row._mapping)


class Statement:
    """
    A prepared query and the cursor state of its last execution.

    Example:
        stmt = session.prepare("SELECT name FROM users WHERE id = :id")
        stmt.execute({"id": 7})
        row = stmt.fetch()
    """

    def __init__(self, session: "Session", sql: str):
        self.session = session
        self.sql = sql
        self.result: Optional[CursorResult] = None

    def __repr__(self) -> str:
        return f"<Statement(sql={self.sql!r}, executed={self.result is not None})>"

    @property
    def returns_rows(self) -> bool:
        return self.result is not None and self.result.returns_rows

    # ========================================
    # Execution
    # ========================================

    def execute(self, params: Optional[Params] = None) -> Optional[bool]:
        """
        Execute the statement with bound parameters.

        A sequence binds positionally with the driver's own placeholder
        style (``%s`` for PyMySQL, ``?`` for SQLite); a mapping binds by
        name with ``:name`` placeholders. Without parameters the SQL goes
        to the driver untouched.

        Returns:
            True on success, None when the failure was reported through a
            non-raising error mode
        """
        session = self.session
        if self.result is not None:
            self.result.close()
            self.result = None

        try:
            if params is None or len(params) == 0:
                result = session.connection.exec_driver_sql(
                    self.sql, execution_options={"no_parameters": True}
                )
            elif isinstance(params, Mapping):
                result = session.connection.execute(text(self.sql), dict(params))
            else:
                result = session.connection.exec_driver_sql(self.sql, tuple(params))
        except SQLAlchemyError as exc:
            return session._report_query_failure(self.sql, exc)

        self.result = result
        session._after_execute(result)
        return True

    # ========================================
    # Fetching
    # ========================================

    def fetch(self, mode: Optional[FetchMode] = None) -> Any:
        """Next row in the given (or the session's default) fetch mode; None when exhausted."""
        if not self.returns_rows:
            return None
        row = self.result.fetchone()
        if row is None:
            return None
        return shape_row(row, mode or self.session.fetch_mode)

    def fetch_all(self, mode: Optional[FetchMode] = None) -> List[Any]:
        """All remaining rows; an empty list for statements that return no rows."""
        if not self.returns_rows:
            return []
        mode = mode or self.session.fetch_mode
        return [shape_row(row, mode) for row in self.result.fetchall()]

    def fetch_row(self) -> Optional[tuple]:
        return self.fetch(FetchMode.NUM)

    def fetch_assoc(self) -> Optional[Dict[str, Any]]:
        return self.fetch(FetchMode.ASSOC)

    def fetch_array(self) -> Optional[Dict[Any, Any]]:
        return self.fetch(FetchMode.BOTH)

    # ========================================
    # Metadata
    # ========================================

    def affected_rows(self) -> Any:
        """
        Rows touched by the last execution.

        For SELECT statements this returns the first column of the next
        row instead, which is what a ``SELECT COUNT(*) ...`` needs. Drivers
        disagree on what rowcount means after a SELECT, so it is not used
        there.
        """
        if self.result is None:
            return None
        if SELECT_PATTERN.search(self.sql):
            if not self.result.returns_rows:
                return None
            row = self.result.fetchone()
            return row[0] if row is not None else None
        return self.result.rowcount

    def num_fields(self) -> int:
        if not self.returns_rows:
            return 0
        return len(self.result.keys())

    def num_rows(self) -> int:
        """
        Count the remaining rows by fetching them.

        This consumes the cursor: later fetches on the same statement
        return None until it is executed again.
        """
        if not self.returns_rows:
            return 0
        return len(self.result.fetchall())

    def close_cursor(self) -> bool:
        """Release cursor resources; the statement can be executed again."""
        if self.result is not None:
            self.result.close()
            self.result = None
        return True
