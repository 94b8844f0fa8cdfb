"""
Database Session
================

A Session holds one live connection and wraps the driver calls most
applications need: running a query and getting rows back, statement
preparation and fetching, metadata about the last statement, and
transaction boundaries.

Usage:
    from sqlsession import Session

    with Session("shop", "app", "secret") as db:
        rows = db.run("SELECT id, name FROM products WHERE price < %s", [10])
        db.transaction("BEGIN")
        db.run("UPDATE products SET price = price * 2")
        db.transaction("COMMIT")
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, NamedTuple, Optional

from sqlalchemy import String
from sqlalchemy.exc import SQLAlchemyError

from sqlsession.config import Settings, settings as default_settings
from sqlsession.core.constants import (
    DEFAULT_OPTIONS,
    OPTION_ERROR_MODE,
    OPTION_FETCH_MODE,
    TRANSACTION_KEYWORDS,
    ErrorMode,
    FetchMode,
    TransactionAction,
)
from sqlsession.core.exceptions import (
    NO_ERROR,
    ConnectionError,
    ErrorCode,
    ErrorInfo,
    QueryError,
    SessionError,
    TransactionError,
)
from sqlsession.database.engine import build_url, create_db_engine
from sqlsession.database.statement import Params, Statement

logger = logging.getLogger(__name__)

AUTOCOMMIT = "AUTOCOMMIT"


def snapshot_params(params: Optional[Params]) -> Optional[Params]:
    """Copy bound parameters so later changes by the caller do not alter the log."""
    if params is None:
        return None
    if isinstance(params, Mapping):
        return dict(params)
    return tuple(params)


def quote_literal(dbapi_connection: Any, dialect: Any, value: str) -> str:
    """
    Escape and quote a string for inline use in raw SQL.

    A driver escape function such as PyMySQL's Connection.escape is used
    when the DB-API connection has one; it also escapes backslashes.
    Otherwise the dialect's String literal processor doubles single quotes.
    """
    escape = getattr(dbapi_connection, "escape", None)
    if callable(escape):
        return escape(value)
    process = String().dialect_impl(dialect).literal_processor(dialect)
    return process(value)


class QueryLogEntry(NamedTuple):
    """One call to Session.run()."""

    query: str
    params: Optional[Params]


class Session:
    """
    Simplified wrapper around a single database connection.

    Attributes:
        connection: The live SQLAlchemy connection
        total_queries: Number of queries sent through run()
        last_run: Every (query, params) pair passed to run(), in order
        statement: The most recently prepared or run Statement

    Outside an explicit transaction the connection runs in autocommit
    mode. transaction("BEGIN") switches to the dialect's default
    isolation level until the matching COMMIT or ROLLBACK.

    A Session is not safe to share between threads.
    """

    def __init__(
        self,
        db: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
        *,
        driver: Optional[str] = None,
        strict_transactions: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Connect to a database.

        Args:
            db: Database name (a file path for SQLite)
            username: Login user
            password: Login password
            host: Server host (default from settings, 127.0.0.1)
            port: Server port (default from settings, 3306)
            options: Overrides for fetch_mode and error_mode; any other key
                is passed to the driver's connect() call
            driver: SQLAlchemy dialect+driver name (default mysql+pymysql)
            strict_transactions: Reject unknown transaction keywords
                (default from settings, True)
            settings: Settings instance to read defaults from

        Raises:
            ConnectionError: The driver could not connect. Raised whatever
                the error_mode option says.
        """
        self.settings = settings or default_settings
        self.database = db
        self.username = username
        self.host = host or self.settings.host
        self.port = port or self.settings.port
        self.driver = (driver or self.settings.driver).lower()
        self.strict_transactions = (
            self.settings.strict_transactions
            if strict_transactions is None else strict_transactions
        )

        merged = {**DEFAULT_OPTIONS, **(options or {})}
        self.fetch_mode = FetchMode(merged.pop(OPTION_FETCH_MODE))
        self.error_mode = ErrorMode(merged.pop(OPTION_ERROR_MODE))
        self.connect_args = merged

        self.total_queries = 0
        self.last_run: List[QueryLogEntry] = []
        self.statement: Optional[Statement] = None

        self._last_error = NO_ERROR
        self._insert_id: Optional[int] = None
        self._transaction = None

        self.url = build_url(
            self.driver,
            db,
            username=username,
            password=password,
            host=self.host,
            port=self.port,
            charset=self.settings.charset,
        )
        self.engine = None
        self.connection = None
        self._connect()

    def _connect(self) -> None:
        try:
            self.engine = create_db_engine(self.url, self.connect_args, self.settings)
            self.connection = self.engine.connect()
            self._isolation_level = self.connection.default_isolation_level
            self.connection.execution_options(isolation_level=AUTOCOMMIT)
        except (SQLAlchemyError, ImportError) as exc:
            # ImportError: the DB-API module for the driver is not installed
            info = ErrorInfo.from_exception(exc)
            self._last_error = info
            if self.engine is not None:
                self.engine.dispose()
            raise ConnectionError(
                f"Could not connect to {self.dsn}: {info.message}", info
            ) from exc

        logger.debug("Session connected: %s", self.dsn)

    @property
    def dsn(self) -> str:
        """Connection URL with the password masked."""
        return self.url.render_as_string(hide_password=True)

    @property
    def driver_name(self) -> str:
        """DB-API driver in use, e.g. ``pymysql`` or ``pysqlite``."""
        return self.engine.dialect.driver

    def __repr__(self) -> str:
        return f"<Session(dsn='{self.dsn}', total_queries={self.total_queries})>"

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ========================================
    # Error Reporting
    # ========================================

    def _report(self, error: SessionError) -> None:
        """Apply the session's error mode to a failure."""
        if self.error_mode == ErrorMode.EXCEPTION:
            raise error
        if self.error_mode == ErrorMode.WARNING:
            logger.warning("%s %s", error.message, tuple(error.error_info))
        return None

    def _report_query_failure(self, sql: str, exc: SQLAlchemyError) -> None:
        info = ErrorInfo.from_exception(exc)
        self._last_error = info
        logger.debug("Query failed: %s", sql)
        # Drop the autobegun transaction so the next statement starts clean
        if self._transaction is None and self.connection.in_transaction():
            self.connection.rollback()
        return self._report(
            QueryError(f"Query failed: {info.message}", ErrorCode.QUERY_FAILED, info)
        )

    def _after_execute(self, result) -> None:
        self._last_error = NO_ERROR
        if not result.returns_rows:
            # Kept across statements that generate no id, like LAST_INSERT_ID()
            rowid = result.lastrowid
            if rowid:
                self._insert_id = rowid

    def error(self) -> ErrorInfo:
        """Last error recorded on this session as (sqlstate, driver_code, message)."""
        return self._last_error

    # ========================================
    # Queries
    # ========================================

    def update_queries(self) -> None:
        """Count one more query."""
        self.total_queries += 1

    def run(self, query: str, params: Optional[Params] = None) -> Optional[List[Any]]:
        """
        Run a query and return every row.

        The query is counted and logged in last_run before it executes,
        so failed queries show up too. An empty query is neither counted
        nor logged.

        Args:
            query: SQL text
            params: Bound parameters; a sequence for the driver's positional
                placeholders or a mapping for ``:name`` placeholders

        Returns:
            Rows in the session's fetch mode ([] for statements that return
            no rows), or None when a failure was reported without raising

        Raises:
            QueryError: The query was empty or the driver rejected it
        """
        if not query or not query.strip():
            return self._report(
                QueryError("Empty query", ErrorCode.EMPTY_QUERY, self._last_error)
            )

        self.update_queries()
        self.last_run.append(QueryLogEntry(query, snapshot_params(params)))

        statement = self.prepare(query)
        if statement.execute(params) is None:
            return None
        return statement.fetch_all()

    def prepare(self, sql: str) -> Statement:
        """Create a statement and make it the active one."""
        self.statement = Statement(self, sql)
        return self.statement

    def execute(self, params: Optional[Params] = None) -> Optional[bool]:
        """Execute the active statement with bound parameters."""
        if self.statement is None:
            return self._report(
                QueryError("No statement has been prepared", ErrorCode.QUERY_FAILED)
            )
        return self.statement.execute(params)

    def fetch(self) -> Any:
        """Next row of the active statement in the session's fetch mode."""
        if self.statement is not None:
            return self.statement.fetch()

    # ========================================
    # Active Statement Metadata
    # ========================================

    def affected_rows(self) -> Any:
        if self.statement is not None:
            return self.statement.affected_rows()

    def fetch_row(self) -> Optional[tuple]:
        if self.statement is not None:
            return self.statement.fetch_row()

    def fetch_assoc(self) -> Optional[Dict[str, Any]]:
        if self.statement is not None:
            return self.statement.fetch_assoc()

    def fetch_array(self) -> Optional[Dict[Any, Any]]:
        # Keyed by both column position and field name
        if self.statement is not None:
            return self.statement.fetch_array()

    def close_cursor(self) -> Optional[bool]:
        if self.statement is not None:
            return self.statement.close_cursor()

    def num_fields(self) -> Optional[int]:
        if self.statement is not None:
            return self.statement.num_fields()

    def num_rows(self) -> Optional[int]:
        """Row count of the active statement. Consumes its cursor."""
        if self.statement is not None:
            return self.statement.num_rows()

    # ========================================
    # Connection Metadata
    # ========================================

    def insert_id(self) -> Optional[int]:
        """Last auto-generated row id reported by the driver."""
        return self._insert_id

    def get_client_info(self) -> Optional[str]:
        """Version of the client library behind the driver."""
        dbapi = self.engine.dialect.dbapi
        for attr in ("sqlite_version", "__version__", "version"):
            version = getattr(dbapi, attr, None)
            if version:
                return str(version)
        return None

    def get_server_info(self) -> Optional[str]:
        info = self.engine.dialect.server_version_info
        if not info:
            return None
        return ".".join(str(part) for part in info)

    def quote(self, value: Any) -> str:
        """Quote a value as a string literal for inline use in SQL."""
        dbapi_connection = self.connection.connection.dbapi_connection
        return quote_literal(dbapi_connection, self.engine.dialect, str(value))

    # ========================================
    # Transactions
    # ========================================

    def transaction(self, status: str = "BEGIN") -> Optional[bool]:
        """
        Manage a transaction by keyword.

        START, START TRANSACTION and BEGIN begin; END and COMMIT commit;
        ROLLBACK rolls back. Matching is case-insensitive.

        Any other keyword is a TransactionError, unless the session was
        created with strict_transactions=False, in which case it does
        nothing and returns True.
        """
        keyword = (status or "").strip().upper()
        action = TRANSACTION_KEYWORDS.get(keyword)

        if action is None:
            if not self.strict_transactions:
                logger.debug("Ignoring transaction keyword %r", status)
                return True
            return self._report(TransactionError(
                f"Unknown transaction keyword: {status!r}",
                ErrorCode.INVALID_TRANSACTION_KEYWORD,
            ))

        if action == TransactionAction.BEGIN:
            return self.begin()
        if action == TransactionAction.COMMIT:
            return self.commit()
        return self.rollback()

    def in_transaction(self) -> bool:
        return self._transaction is not None

    def begin(self) -> Optional[bool]:
        if self._transaction is not None:
            return self._report(TransactionError(
                "There is already an active transaction", ErrorCode.TRANSACTION_FAILED
            ))
        try:
            # Close the logical autocommit transaction before switching levels
            if self.connection.in_transaction():
                self.connection.commit()
            self.connection.execution_options(isolation_level=self._isolation_level)
            self._transaction = self.connection.begin()
        except SQLAlchemyError as exc:
            self._restore_autocommit()
            return self._report_transaction_failure(exc)

        logger.debug("Transaction started")
        return True

    def commit(self) -> Optional[bool]:
        return self._end_transaction(TransactionAction.COMMIT)

    def rollback(self) -> Optional[bool]:
        return self._end_transaction(TransactionAction.ROLLBACK)

    def _end_transaction(self, action: TransactionAction) -> Optional[bool]:
        if self._transaction is None:
            return self._report(TransactionError(
                "There is no active transaction", ErrorCode.TRANSACTION_FAILED
            ))

        transaction, self._transaction = self._transaction, None
        try:
            if action == TransactionAction.COMMIT:
                transaction.commit()
            else:
                transaction.rollback()
        except SQLAlchemyError as exc:
            self._restore_autocommit()
            return self._report_transaction_failure(exc)

        self._restore_autocommit()
        logger.debug("Transaction finished: %s", action.value)
        return True

    def _restore_autocommit(self) -> None:
        if self.connection.in_transaction():
            self.connection.rollback()
        self.connection.execution_options(isolation_level=AUTOCOMMIT)

    def _report_transaction_failure(self, exc: SQLAlchemyError) -> None:
        info = ErrorInfo.from_exception(exc)
        self._last_error = info
        return self._report(TransactionError(
            f"Transaction failed: {info.message}", ErrorCode.TRANSACTION_FAILED, info
        ))

    # ========================================
    # Lifecycle
    # ========================================

    def close(self) -> None:
        """Release the connection. The session is unusable afterwards."""
        if self.connection is None:
            return
        self.connection.close()
        self.engine.dispose()
        self.connection = None
        self._transaction = None
        self.statement = None
        logger.debug("Session closed: %s", self.dsn)
