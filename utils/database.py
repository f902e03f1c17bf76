"""
Database connection utilities for PostgreSQL
"""

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from utils.logging_utils import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages a pool of PostgreSQL connections shared by request threads
    """

    def __init__(self, connection_string: str, min_connections: int = 1, max_connections: int = 10):
        """
        Initialize database manager. The pool is opened on first use.

        Args:
            connection_string: PostgreSQL connection URL or DSN
            min_connections: Connections kept open by the pool
            max_connections: Upper bound on simultaneous connections
        """
        if not connection_string:
            raise ValueError("Database connection string not provided")

        self.connection_string = connection_string
        self.min_connections = min_connections
        self.max_connections = max_connections
        self.pool: Optional[ThreadedConnectionPool] = None

    def _connect(self):
        """Open the connection pool"""
        try:
            self.pool = ThreadedConnectionPool(
                self.min_connections,
                self.max_connections,
                self.connection_string,
            )
            logger.info("✅ Connected to PostgreSQL database (pool %d-%d)", self.min_connections, self.max_connections)
        except Exception as e:
            logger.error("❌ Failed to connect to PostgreSQL: %s", e)
            raise

    def _ensure_pool(self):
        """Ensure the connection pool is open"""
        if self.pool is None or self.pool.closed:
            self._connect()

    @contextmanager
    def get_cursor(self, cursor_factory=None):
        """
        Context manager for database cursors. Commits on success,
        rolls back on error and always returns the connection to the pool.

        Args:
            cursor_factory: Cursor factory (e.g., RealDictCursor)
        """
        self._ensure_pool()
        conn = self.pool.getconn()
        cursor = conn.cursor(cursor_factory=cursor_factory)
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            self.pool.putconn(conn)

    def execute_query(self, query: str, params: tuple = None, fetch_one: bool = False) -> Optional[Any]:
        """
        Execute a query and return its rows

        Args:
            query: SQL query string
            params: Query parameters
            fetch_one: Return a single row (or None) instead of a list

        Returns:
            Row dict, list of row dicts, or None
        """
        with self.get_cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(query, params)
            if fetch_one:
                result = cur.fetchone()
                return dict(result) if result else None
            return [dict(row) for row in cur.fetchall()]

    def execute_returning(self, query: str, params: tuple = None) -> Dict[str, Any]:
        """
        Execute an INSERT ... RETURNING statement in its own transaction

        Returns:
            The returned row as a dict
        """
        row = self.execute_query(query, params, fetch_one=True)
        if row is None:
            raise RuntimeError("Statement did not return a row")
        return row

    def execute_script(self, statements: List[str]) -> None:
        """Run several statements in one transaction (schema setup)"""
        with self.get_cursor() as cur:
            for statement in statements:
                cur.execute(statement)

    def close(self):
        """Close every pooled connection"""
        if self.pool is not None and not self.pool.closed:
            self.pool.closeall()
            logger.info("✅ Closed PostgreSQL connection pool")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
