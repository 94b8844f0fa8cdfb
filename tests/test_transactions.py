"""
Tests for transaction keywords and begin/commit/rollback.
"""

import pytest

from sqlsession import ErrorCode, ErrorMode, TransactionError
from sqlsession.config import Settings

from tests.conftest import open_session


def _names(session):
    return [row["name"] for row in session.run("SELECT name FROM t ORDER BY id")]


# =============================================================================
# Keywords
# =============================================================================
def test_begin_then_rollback_discards_changes(seeded_db):
    assert seeded_db.transaction("BEGIN") is True
    seeded_db.run("INSERT INTO t (y, name) VALUES (?, ?)", [8, "tmp"])
    seeded_db.run("DELETE FROM t WHERE y = 2")
    assert seeded_db.transaction("ROLLBACK") is True

    assert _names(seeded_db) == ["a", "b", "c", "d", "e"]


def test_begin_then_commit_keeps_changes(seeded_db):
    assert seeded_db.transaction("START TRANSACTION") is True
    seeded_db.run("DELETE FROM t WHERE y = 2")
    assert seeded_db.transaction("COMMIT") is True

    assert _names(seeded_db) == ["d", "e"]


@pytest.mark.parametrize("begin, end", [
    ("start", "end"),
    ("Begin", "commit"),
    ("  BEGIN ", "End"),
])
def test_keywords_are_case_insensitive(seeded_db, begin, end):
    assert seeded_db.transaction(begin) is True
    assert seeded_db.in_transaction()
    assert seeded_db.transaction(end) is True
    assert not seeded_db.in_transaction()


def test_default_keyword_begins(seeded_db):
    assert seeded_db.transaction() is True
    assert seeded_db.in_transaction()
    seeded_db.rollback()


def test_unknown_keyword_raises_by_default(seeded_db):
    with pytest.raises(TransactionError) as exc_info:
        seeded_db.transaction("SAVEPOINT")

    assert exc_info.value.code == ErrorCode.INVALID_TRANSACTION_KEYWORD
    assert not seeded_db.in_transaction()


def test_unknown_keyword_is_ignored_when_not_strict():
    session = open_session(strict_transactions=False)
    try:
        assert session.transaction("unknown-keyword") is True
        assert not session.in_transaction()
    finally:
        session.close()


def test_strictness_defaults_to_settings():
    session = open_session(settings=Settings(strict_transactions=False))
    try:
        assert session.strict_transactions is False
        assert session.transaction("whatever") is True
    finally:
        session.close()


def test_unknown_keyword_in_warning_mode_returns_none():
    session = open_session(options={"error_mode": ErrorMode.WARNING})
    try:
        assert session.transaction("SAVEPOINT") is None
    finally:
        session.close()


# =============================================================================
# Boundary misuse
# =============================================================================
def test_begin_twice_raises(seeded_db):
    seeded_db.begin()
    with pytest.raises(TransactionError) as exc_info:
        seeded_db.begin()

    assert exc_info.value.code == ErrorCode.TRANSACTION_FAILED
    assert seeded_db.in_transaction()
    seeded_db.rollback()


@pytest.mark.parametrize("keyword", ["COMMIT", "ROLLBACK"])
def test_ending_without_transaction_raises(seeded_db, keyword):
    with pytest.raises(TransactionError):
        seeded_db.transaction(keyword)


def test_autocommit_resumes_after_transaction(tmp_path):
    path = str(tmp_path / "shop.db")
    with open_session(path) as writer, open_session(path) as reader:
        writer.run("CREATE TABLE t (name TEXT)")

        writer.transaction("BEGIN")
        writer.run("INSERT INTO t (name) VALUES ('rolled back')")
        writer.transaction("ROLLBACK")

        writer.run("INSERT INTO t (name) VALUES ('kept')")
        assert reader.run("SELECT name FROM t") == [{"name": "kept"}]


def test_close_during_transaction_discards_changes(tmp_path):
    path = str(tmp_path / "shop.db")
    with open_session(path) as setup:
        setup.run("CREATE TABLE t (name TEXT)")

    session = open_session(path)
    session.transaction("BEGIN")
    session.run("INSERT INTO t (name) VALUES ('lost')")
    session.close()

    with open_session(path) as reader:
        assert reader.run("SELECT name FROM t") == []
