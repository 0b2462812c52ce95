"""Database layer for search result sets."""
import psycopg2
from psycopg2 import pool
from typing import Optional, List, Dict, Tuple
import threading
import logging

from bookfinder.models import Book

logger = logging.getLogger(__name__)

BOOK_COLUMNS = (
    "title, book_type, lexile, page_count, categories, authors, "
    "cover_art_url, language, isbn, summary"
)


class PersistError(Exception):
    """A book could not be saved to the store."""


class Database:
    """PostgreSQL store with connection pooling.

    Rows are tagged with the search id of the request that produced them so
    concurrent searches never see each other's books.
    """

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        self.max_conn = max_conn
        self.connection_pool = psycopg2.pool.ThreadedConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )
        logger.info("Database connection pool created successfully")

    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS books (
                        id SERIAL PRIMARY KEY,
                        search_id VARCHAR(64) NOT NULL,
                        title TEXT NOT NULL,
                        book_type TEXT NOT NULL,
                        lexile INTEGER NOT NULL,
                        page_count INTEGER NOT NULL,
                        categories TEXT[] NOT NULL,
                        authors TEXT[] NOT NULL,
                        cover_art_url TEXT NOT NULL,
                        language TEXT NOT NULL,
                        isbn TEXT NOT NULL,
                        summary TEXT NOT NULL
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_search_lexile
                    ON books (search_id, lexile)
                """)

                conn.commit()
                logger.info("Database schema initialized successfully")

        finally:
            self.connection_pool.putconn(conn)

    def clear(self, search_id: Optional[str] = None) -> bool:
        """
        Delete one search's books, or every book when no id is given.

        Errors are logged, never raised.

        Returns:
            True if the delete went through
        """
        try:
            conn = self.connection_pool.getconn()
        except pool.PoolError as e:
            logger.error(f"Error deleting documents: {e}")
            return False

        try:
            with conn.cursor() as cur:
                if search_id is None:
                    cur.execute("DELETE FROM books")
                else:
                    cur.execute("DELETE FROM books WHERE search_id = %s", (search_id,))
                deleted = cur.rowcount
                conn.commit()
                logger.info(f"Documents deleted: {deleted}")
                return True
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Error deleting documents: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def insert_book(self, book: Book, search_id: str) -> bool:
        """
        Insert a book into a search's result set.

        Returns:
            True if successful, False otherwise
        """
        try:
            conn = self.connection_pool.getconn()
        except pool.PoolError as e:
            logger.error(f"Error saving book {book.title}: {e}")
            return False

        try:
            with conn.cursor() as cur:
                cur.execute(f"""
                    INSERT INTO books (search_id, {BOOK_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """, (
                    search_id, book.title, book.book_type, book.lexile,
                    book.page_count, book.categories, book.authors,
                    book.cover_art_url, book.language, book.isbn, book.summary
                ))
                conn.commit()
                return True
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Error saving book {book.title}: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def find_all_sorted_by_difficulty(self, search_id: str) -> List[Book]:
        """Return a search's books by ascending lexile, ties in insertion order."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(f"""
                    SELECT {BOOK_COLUMNS}
                    FROM books
                    WHERE search_id = %s
                    ORDER BY lexile ASC, id ASC
                """, (search_id,))
                rows = cur.fetchall()
                return [Book(*row) for row in rows]
        finally:
            self.connection_pool.putconn(conn)

    def count(self) -> int:
        """Count stored books across all searches."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM books")
                return cur.fetchone()[0]
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class MemoryDatabase:
    """In-process store with the same interface as ``Database``."""

    # No connection pool; saves are only bounded by the caller.
    max_conn = None

    def __init__(self):
        self._lock = threading.Lock()
        self._result_sets: Dict[str, List[Tuple[int, Book]]] = {}
        self._next_position = 0

    def init_schema(self):
        """Nothing to create."""
        pass

    def clear(self, search_id: Optional[str] = None) -> bool:
        """Delete one search's books, or every book when no id is given."""
        with self._lock:
            if search_id is None:
                deleted = sum(len(rows) for rows in self._result_sets.values())
                self._result_sets.clear()
            else:
                deleted = len(self._result_sets.pop(search_id, []))
        logger.info(f"Documents deleted: {deleted}")
        return True

    def insert_book(self, book: Book, search_id: str) -> bool:
        """Append a book to a search's result set."""
        with self._lock:
            self._result_sets.setdefault(search_id, []).append((self._next_position, book))
            self._next_position += 1
        return True

    def find_all_sorted_by_difficulty(self, search_id: str) -> List[Book]:
        """Return a search's books by ascending lexile, ties in insertion order."""
        with self._lock:
            rows = list(self._result_sets.get(search_id, []))
        rows.sort(key=lambda row: (row[1].lexile, row[0]))
        return [book for _, book in rows]

    def count(self) -> int:
        """Count stored books across all searches."""
        with self._lock:
            return sum(len(rows) for rows in self._result_sets.values())

    def close(self):
        """Drop every result set."""
        self.clear()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def open_store(config):
    """Build the store named by ``STORE_BACKEND``."""
    if config.STORE_BACKEND == "postgres":
        db = Database(config.DATABASE_URL)
        db.init_schema()
        return db
    if config.STORE_BACKEND == "memory":
        return MemoryDatabase()
    raise ValueError(f"Unknown STORE_BACKEND: {config.STORE_BACKEND}")
