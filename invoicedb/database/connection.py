"""
Database connection management for MySQL and PostgreSQL.

- One DatabaseConnection is built at startup and shared by every record store
- Each thread lazily opens its own driver connection (DB-API connections are
  not safe to share across threads)
- Driver connections run in autocommit mode: standalone statements are durable
  immediately, multi-statement work goes through an explicit Transaction
"""

import threading
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence
from contextlib import contextmanager
import logging

from .dialects import Dialect
from .exceptions import DatabaseConnectivityError, TransactionError

logger = logging.getLogger(__name__)


class Transaction:
    """
    A transaction scope opened by DatabaseConnection.begin().

    Whoever calls begin() owns the scope and is the only one allowed to
    commit or roll it back. Record stores that receive a Transaction only
    execute statements through it.
    """

    def __init__(
        self,
        connection: Any,
        dialect: Dialect,
        on_error: Optional[Callable[[Any, Exception], None]] = None,
    ):
        self._conn = connection
        self.dialect = dialect
        self._on_error = on_error
        self._committed = False
        self._rolled_back = False

    @property
    def is_active(self) -> bool:
        return not self._committed and not self._rolled_back

    def _check_active(self) -> None:
        if self._committed:
            raise TransactionError("Transaction already committed")
        if self._rolled_back:
            raise TransactionError("Transaction already rolled back")

    @contextmanager
    def _cursor(self) -> Generator[Any, None, None]:
        cursor = self._conn.cursor()
        try:
            yield cursor
        except Exception as e:
            if self._on_error is not None:
                self._on_error(self._conn, e)
            raise
        finally:
            cursor.close()

    @contextmanager
    def get_cursor(self) -> Generator[Any, None, None]:
        """Cursor bound to this transaction. Never commits on its own."""
        self._check_active()
        with self._cursor() as cursor:
            yield cursor

    def execute_insert(self, query: str, params: Sequence[Any] = ()) -> int:
        """
        Execute an INSERT inside the transaction and return the generated id.

        Args:
            query: INSERT statement of the transaction's dialect
            params: Query parameters

        Returns:
            ID of the inserted row
        """
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return self.dialect.last_insert_id(cursor)

    def commit(self) -> None:
        with self.get_cursor() as cursor:
            cursor.execute("COMMIT")
        self._committed = True

    def rollback(self) -> None:
        self._check_active()
        # Mark first: a failed ROLLBACK leaves nothing to retry on this scope
        self._rolled_back = True
        with self._cursor() as cursor:
            cursor.execute("ROLLBACK")


class DatabaseConnection:
    """
    Shared database handle for one backend.

    Features:
    - Thread-local driver connections, reopened once the driver reports them dead
    - Single-statement helpers for the record stores
    - Explicit transactions through begin()
    """

    def __init__(self, dialect: Dialect, params: Any, timeout: int = 10):
        """
        Initialize database connection manager.

        Args:
            dialect: Backend dialect used to connect and to read generated ids
            params: Connection settings of that backend
            timeout: Connect timeout in seconds
        """
        self.dialect = dialect
        self.params = params
        self.timeout = timeout

        # Thread-local storage for connections
        self._local = threading.local()

        # Every driver connection still owned by this handle, across threads
        self._connections: List[Any] = []
        self._lock = threading.Lock()

        logger.info(
            f"Database connection initialized: {dialect.name}://"
            f"{params.host}:{params.port}/{params.db}"
        )

    def _create_connection(self) -> Any:
        """Open a new driver connection through the dialect."""
        return self.dialect.connect(self.params, self.timeout)

    def get_connection(self) -> Any:
        """
        Get a thread-local database connection.
        Creates new connection if needed for current thread, or if the
        cached one has been closed or broken.
        """
        conn = getattr(self._local, 'connection', None)
        if conn is not None and not self.dialect.is_open(conn):
            logger.warning(f"Discarding dead database connection for thread {threading.get_ident()}")
            self._discard(conn)
            conn = None

        if conn is None:
            conn = self._create_connection()
            self._local.connection = conn
            with self._lock:
                self._connections.append(conn)
            logger.debug(f"Created new database connection for thread {threading.get_ident()}")

        return conn

    def _discard(self, conn: Any) -> None:
        """Forget conn so the next call on its thread opens a fresh one."""
        with self._lock:
            if conn in self._connections:
                self._connections.remove(conn)
        if getattr(self._local, 'connection', None) is conn:
            self._local.connection = None

        try:
            conn.close()
        except Exception as e:
            logger.debug(f"Closing dropped database connection failed: {e}")

    def _on_error(self, conn: Any, error: Exception) -> None:
        """Drop conn when error shows the server is gone; the error still propagates."""
        if self.dialect.is_disconnect(error) or not self.dialect.is_open(conn):
            logger.warning(f"Lost {self.dialect.name} connection: {error}")
            self._discard(conn)

    def ping(self) -> None:
        """
        Open the current thread's connection and run a trivial query.

        Raises:
            DatabaseConnectivityError: If the database cannot be reached
        """
        try:
            with self.get_cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchall()
        except Exception as e:
            raise DatabaseConnectivityError(
                f"can't reach {self.dialect.name} database: {e}") from e

        logger.info(f"Connected to {self.dialect.name}")

    @contextmanager
    def get_cursor(self) -> Generator[Any, None, None]:
        """Context manager for single-statement cursor operations."""
        conn = self.get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
        except Exception as e:
            self._on_error(conn, e)
            raise
        finally:
            cursor.close()

    def begin(self) -> Transaction:
        """
        Start a transaction on the current thread's connection.

        Returns:
            Transaction scope; the caller must commit or roll it back
        """
        with self.get_cursor() as cursor:
            cursor.execute("BEGIN")
        return Transaction(self.get_connection(), self.dialect, on_error=self._on_error)

    def execute_script(self, script: str) -> None:
        """
        Execute a statement without parameters (DDL).

        Args:
            script: SQL statement to execute
        """
        with self.get_cursor() as cursor:
            cursor.execute(script)

    def execute_query(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """
        Execute a SELECT query and return results.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            List of rows as dictionaries
        """
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def execute_update(self, query: str, params: Sequence[Any] = ()) -> int:
        """
        Execute an UPDATE/DELETE query.

        Returns:
            Number of affected rows
        """
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.rowcount

    def execute_insert(self, query: str, params: Sequence[Any] = ()) -> int:
        """
        Execute an INSERT query and return the generated ID.

        Args:
            query: SQL INSERT query of this connection's dialect
            params: Query parameters

        Returns:
            ID of the inserted row
        """
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return self.dialect.last_insert_id(cursor)

    def close_connection(self) -> None:
        """Close the current thread's database connection."""
        conn: Optional[Any] = getattr(self._local, 'connection', None)
        if conn is not None:
            with self._lock:
                if conn in self._connections:
                    self._connections.remove(conn)
            conn.close()
            self._local.connection = None
            logger.debug(f"Closed database connection for thread {threading.get_ident()}")

    def close_all_connections(self) -> None:
        """
        Close the driver connections of every thread.

        A thread that keeps using this handle afterwards finds its cached
        connection closed and opens a new one.
        """
        with self._lock:
            connections, self._connections = self._connections, []
        self._local.connection = None

        for conn in connections:
            if not self.dialect.is_open(conn):
                continue
            try:
                conn.close()
            except Exception as e:
                logger.warning(f"Failed to close {self.dialect.name} connection: {e}")

        logger.debug(f"Closed {len(connections)} database connections")
