"""Pytest configuration and fixtures."""
import threading
import time

import psycopg2
import psycopg2.pool
import pytest

from bookfinder.database import MemoryDatabase


def _record(title, lexile, categories, **overrides):
    """Build a raw catalog result shaped like the Book Finder API's."""
    record = {
        "title": title,
        "book_type": "Trade Paperback",
        "measurements": {"english": {"lexile": lexile}},
        "page_count": 120,
        "categories": {str(i): name for i, name in enumerate(categories)},
        "authors": {"0": "Jane Doe"},
        "published_works": [{"cover_art_url": f"https://covers.example.com/{title}.jpg"}],
        "language": "English",
        "canonical_isbn": "9780000000001",
        "summary": f"About {title}",
    }
    record.update(overrides)
    return record


@pytest.fixture
def store():
    """An empty in-memory store."""
    return MemoryDatabase()


@pytest.fixture
def complete_record():
    """A raw result with every field present."""
    return {
        "title": "The Westing Game",
        "book_type": "Trade Paperback",
        "measurements": {"english": {"lexile": 750, "ar": 5.3}},
        "page_count": 182,
        "categories": {"0": "Mystery & Suspense", "1": "General Literature"},
        "authors": {"0": "Ellen Raskin"},
        "published_works": [
            {"cover_art_url": "https://covers.example.com/westing.jpg"},
            {"cover_art_url": "https://covers.example.com/westing-hc.jpg"},
        ],
        "language": "English",
        "canonical_isbn": "9780142401200",
        "summary": "Sixteen heirs compete to solve a puzzle.",
    }


@pytest.fixture
def make_record():
    """Factory for raw catalog results."""
    return _record


class FakePostgres:
    """Just enough of a PostgreSQL server for ``Database``'s statements."""

    def __init__(self):
        self.lock = threading.Lock()
        self.rows = []
        self.executed = []
        self.next_id = 1
        self.fail_on = None
        self.delay = 0
        self.in_use = 0
        self.peak_in_use = 0
        self.commits = 0
        self.rollbacks = 0

    def run(self, sql, params):
        self.executed.append((" ".join(sql.split()), params))
        statement = sql.split()[0].upper()
        if self.fail_on == statement:
            raise psycopg2.OperationalError("server closed the connection unexpectedly")
        time.sleep(self.delay)

        with self.lock:
            if statement == "INSERT":
                self.rows.append((self.next_id,) + tuple(params))
                self.next_id += 1
                return 1, []
            if statement == "DELETE":
                before = len(self.rows)
                if params:
                    self.rows = [row for row in self.rows if row[1] != params[0]]
                else:
                    self.rows = []
                return before - len(self.rows), []
            if statement == "SELECT" and "COUNT(*)" in sql:
                return 1, [(len(self.rows),)]
            if statement == "SELECT":
                # Columns after (id, search_id); lexile is the third of them.
                matching = sorted(
                    (row for row in self.rows if row[1] == params[0]),
                    key=lambda row: (row[4], row[0])
                )
                return len(matching), [row[2:] for row in matching]
            return 0, []


class FakeCursor:
    def __init__(self, server):
        self.server = server
        self.rowcount = -1
        self._rows = []

    def execute(self, sql, params=None):
        self.rowcount, self._rows = self.server.run(sql, params)

    def fetchall(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass


class FakeConnection:
    def __init__(self, server):
        self.server = server

    def cursor(self):
        return FakeCursor(self.server)

    def commit(self):
        self.server.commits += 1

    def rollback(self):
        self.server.rollbacks += 1


def _fake_pool_class(server):
    class FakePool:
        """Mimics ThreadedConnectionPool's limit on checked-out connections."""

        def __init__(self, minconn, maxconn, dsn):
            self.maxconn = maxconn

        def getconn(self):
            with server.lock:
                if server.in_use >= self.maxconn:
                    raise psycopg2.pool.PoolError("connection pool exhausted")
                server.in_use += 1
                server.peak_in_use = max(server.peak_in_use, server.in_use)
            return FakeConnection(server)

        def putconn(self, conn):
            with server.lock:
                server.in_use -= 1

        def closeall(self):
            pass

    return FakePool


@pytest.fixture
def fake_postgres(monkeypatch):
    """Route ``Database``'s connection pool to an in-process fake server."""
    server = FakePostgres()
    monkeypatch.setattr(psycopg2.pool, "ThreadedConnectionPool", _fake_pool_class(server))
    return server
