"""
Database connection factory utilities for riskpulse.

Provides centralized management of the PostgreSQL connection pool with
proper lifecycle management. The PoolManager singleton ensures the pool is
closed on application exit.

Includes retry logic for transient connection failures using tenacity. Only
connection acquisition is retried; statements themselves never are.
"""

from __future__ import annotations

import atexit
import threading
from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from psycopg import Connection, sql
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from riskpulse.config import Settings, get_settings
from riskpulse.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


class PoolManager:
    """
    Thread-safe singleton for managing the database connection pool.

    Handles lifecycle management with automatic cleanup via atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._pool: Optional[ConnectionPool] = None
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_pool(self, min_size: Optional[int] = None, max_size: Optional[int] = None) -> ConnectionPool:
        """
        Get or create the synchronous connection pool.

        Parameters
        ----------
        min_size : int | None
            Minimum number of idle connections to keep. Defaults to settings.
        max_size : int | None
            Maximum total connections in the pool. Defaults to settings.

        Returns
        -------
        ConnectionPool
            The managed pool instance.
        """
        with self._lock:
            if self._pool is None:
                settings = get_settings()
                self._pool = ConnectionPool(
                    conninfo=build_dsn(settings),
                    min_size=min_size or settings.db_pool_min_size,
                    max_size=max_size or settings.db_pool_max_size,
                    open=True,
                )
                log.debug("Connection pool opened", extra={"max_size": self._pool.max_size})
            return self._pool

    @contextmanager
    def connection(self) -> Generator[Connection, None, None]:
        """
        Context manager for obtaining a connection from the pool.

        The transaction is committed when the block exits cleanly and rolled
        back otherwise.
        """
        pool = self.get_pool()
        with pool.connection() as conn:
            yield conn

    def close_all(self) -> None:
        """
        Close the managed pool and release resources.

        This is called automatically on exit via atexit hook.
        """
        with self._lock:
            if self._pool is not None:
                try:
                    self._pool.close()
                except psycopg.Error as exc:
                    log.warning("Error while closing connection pool: %s", exc)
                finally:
                    self._pool = None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for one-off operations such as schema setup. Prefer the pool for
    repeated use.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def apply_statement_timeout(cur: psycopg.Cursor, timeout_ms: int) -> None:
    """Bound every statement of the current transaction to `timeout_ms`."""
    if timeout_ms > 0:
        cur.execute(
            sql.SQL("SET LOCAL statement_timeout = {}").format(sql.Literal(int(timeout_ms)))
        )


__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
]
