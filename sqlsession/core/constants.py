"""
Library-wide constants.

Centralize option keys, keyword tables and enum values here so the
session, statement and engine modules agree on them.
"""

from enum import Enum


# ========================================
# Fetch Modes
# ========================================

class FetchMode(str, Enum):
    """
    Row shapes a statement can hand back.

    Usage:
        session = Session("app", options={"fetch_mode": FetchMode.NUM})
        session.run("SELECT id, name FROM users")  # [(1, 'ann'), ...]
    """

    ASSOC = "ASSOC"
    """Field name -> value dict."""

    NUM = "NUM"
    """Positional tuple."""

    BOTH = "BOTH"
    """Dict keyed by both column position and field name."""


# ========================================
# Error Modes
# ========================================

class ErrorMode(str, Enum):
    """How a session reports driver failures after construction."""

    EXCEPTION = "EXCEPTION"
    """Raise a SessionError subclass (default)."""

    WARNING = "WARNING"
    """Log a warning and return None."""

    SILENT = "SILENT"
    """Return None; the failure is only visible through Session.error()."""


# ========================================
# Transactions
# ========================================

class TransactionAction(str, Enum):
    """Transaction boundary operations."""

    BEGIN = "BEGIN"
    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"


TRANSACTION_KEYWORDS = {
    "START": TransactionAction.BEGIN,
    "START TRANSACTION": TransactionAction.BEGIN,
    "BEGIN": TransactionAction.BEGIN,
    "END": TransactionAction.COMMIT,
    "COMMIT": TransactionAction.COMMIT,
    "ROLLBACK": TransactionAction.ROLLBACK,
}


# ========================================
# Driver Options
# ========================================

OPTION_FETCH_MODE = "fetch_mode"
OPTION_ERROR_MODE = "error_mode"

DEFAULT_OPTIONS = {
    OPTION_FETCH_MODE: FetchMode.ASSOC,
    OPTION_ERROR_MODE: ErrorMode.EXCEPTION,
}

# Dialects addressed by a file name only (no host, port or charset)
FILE_BASED_DIALECTS = ("sqlite",)

# ========================================
# Error Info
# ========================================

NO_ERROR_SQLSTATE = "00000"
GENERAL_ERROR_SQLSTATE = "HY000"
