"""
PostgreSQL backend: connection pool, catalog queries and the read-only query guard.

The guard runs every statement inside a transaction and always rolls it back,
so nothing it does is committed. It cannot stop statements that act outside
the transaction (session-level SET, or commands that refuse to run inside one).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from .config import ServerConfig
from .errors import BackendFailure, RollbackFailure

logger = logging.getLogger(__name__)

TABLES_SQL = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = %s ORDER BY table_name"
)
COLUMNS_SQL = (
    "SELECT column_name, data_type FROM information_schema.columns "
    "WHERE table_schema = %s AND table_name = %s ORDER BY ordinal_position"
)


def _execute_and_roll_back(conn, sql: str, params: Optional[Sequence[Any]]) -> List[Dict[str, Any]]:
    # Pool connections are not in autocommit mode, so psycopg2 opens a
    # transaction before the first statement.
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params)
            rows = cur.fetchall() if cur.description is not None else []
        return [dict(row) for row in rows]
    except psycopg2.Error as e:
        raise BackendFailure((e.pgerror or str(e)).strip()) from e
    finally:
        try:
            conn.rollback()
        except Exception as e:
            logger.warning("%s", RollbackFailure(e))


def _acquire(pool):
    # PoolError and connection failures are both psycopg2.Error subclasses
    try:
        return pool.getconn()
    except psycopg2.Error as e:
        raise BackendFailure(f"Could not connect to the database: {str(e).strip()}") from e


async def _run_to_completion(func, *args, discard=None):
    """
    Run func in a worker thread and return its result.

    Threads cannot be interrupted, so a cancelled caller still waits for func
    to finish before the cancellation propagates. A result nobody will use is
    handed to ``discard``.
    """
    task = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is None and discard is not None:
            discard(task.result())
        raise


class Database:
    """Process-wide connection pool with an init()/shutdown() lifecycle."""

    def __init__(self, config: ServerConfig, pool_factory=ThreadedConnectionPool):
        if not config.database_url:
            raise ValueError("A database URL is required")
        self.dsn = config.database_url
        self.schema = config.db_schema
        self.min_size = config.pool_min_size
        self.max_size = config.pool_max_size
        self._pool_factory = pool_factory
        self._pool = None
        self._slots: Optional[asyncio.Semaphore] = None

    async def init(self) -> None:
        self._pool = await asyncio.to_thread(self._pool_factory, self.min_size, self.max_size, self.dsn)
        # psycopg2 pools raise when exhausted; the semaphore makes callers wait instead
        self._slots = asyncio.Semaphore(self.max_size)
        logger.info("Connection pool ready (max %d connections)", self.max_size)

    async def shutdown(self) -> None:
        if self._pool is not None:
            await asyncio.to_thread(self._pool.closeall)
            self._pool = None
            logger.info("Connection pool closed")

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Any]:
        """Borrow one pooled connection; it is returned exactly once on every exit path."""
        if self._pool is None:
            raise RuntimeError("Database.init() has not been called")
        pool = self._pool
        async with self._slots:
            conn = await _run_to_completion(_acquire, pool, discard=pool.putconn)
            try:
                yield conn
            finally:
                pool.putconn(conn)

    async def run_read_only(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Execute sql in a transaction that is always rolled back and return its rows."""
        async with self.connection() as conn:
            # The connection goes back to the pool only after the rollback has run
            return await _run_to_completion(_execute_and_roll_back, conn, sql, params)

    async def list_tables(self) -> List[str]:
        rows = await self.run_read_only(TABLES_SQL, (self.schema,))
        return [row["table_name"] for row in rows]

    async def table_columns(self, table: str) -> List[Dict[str, Any]]:
        return await self.run_read_only(COLUMNS_SQL, (self.schema, table))
