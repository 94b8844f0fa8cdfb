import pytest

from sqlsession import Session


def open_session(db=":memory:", **kwargs):
    """Open a Session on SQLite so tests need no database server."""
    return Session(db, driver="sqlite", **kwargs)


@pytest.fixture
def db():
    """Empty in-memory session."""
    session = open_session()
    yield session
    session.close()


@pytest.fixture
def seeded_db():
    """
    In-memory session with table ``t`` holding five rows.

    Three rows have y = 2, two have y = 3. Counters are reset after
    seeding so tests start from a clean query log.
    """
    session = open_session()
    session.run(
        "CREATE TABLE t ("
        " id INTEGER PRIMARY KEY AUTOINCREMENT,"
        " x INTEGER NOT NULL DEFAULT 0,"
        " y INTEGER NOT NULL,"
        " name TEXT)"
    )
    for name, y in [("a", 2), ("b", 2), ("c", 2), ("d", 3), ("e", 3)]:
        session.run("INSERT INTO t (y, name) VALUES (?, ?)", [y, name])

    session.total_queries = 0
    session.last_run.clear()
    yield session
    session.close()
