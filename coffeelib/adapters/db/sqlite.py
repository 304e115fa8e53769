"""
SQLite connection manager (aiosqlite-backed).

Critical guarantee:
- The adapter never raises to callers; it returns `Result(...)`.

The catalog has a single writer, so one connection is shared. Write statements
and transactions are serialized with an asyncio lock; statements issued inside
`atransaction()` are routed to the open transaction through a context variable
and do not take the lock again.
"""

from __future__ import annotations

import asyncio
import contextvars
import random
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from ...config import DB_QUERY_TIMEOUT, DB_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = max(1000, int(float(DB_TIMEOUT) * 1000))
# Negative cache_size is in KiB. -16000 ~= 16 MiB cache.
SQLITE_CACHE_SIZE_KIB = -16000

_IN_TX: contextvars.ContextVar[bool] = contextvars.ContextVar("coffeelib_db_in_tx", default=False)


class Sqlite:
    """
    Async SQLite adapter.

    Usage:
        db = Sqlite(path)
        rows = await db.aquery("SELECT * FROM folders WHERE display_path = ?", ("/",))
        async with db.atransaction() as tx:
            await db.aexecute("INSERT ...", (...))
        if not tx.ok:
            ...
    """

    def __init__(self, db_path: str | Path, timeout: float = DB_TIMEOUT, query_timeout: float | None = DB_QUERY_TIMEOUT):
        self.db_path = Path(db_path)
        self._timeout = float(timeout)
        self._query_timeout = float(query_timeout or 0.0)
        self._conn: Optional[aiosqlite.Connection] = None
        self._init_lock: Optional[asyncio.Lock] = None
        self._write_lock: Optional[asyncio.Lock] = None
        self._lock_retry_attempts = 6
        self._lock_retry_base_seconds = 0.05
        self._lock_retry_max_seconds = 0.75

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def _apply_connection_pragmas(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA cache_size={SQLITE_CACHE_SIZE_KIB}")
        await conn.execute("PRAGMA temp_store=MEMORY")
        await conn.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
        await conn.execute("PRAGMA foreign_keys=ON")

    async def _create_connection(self) -> aiosqlite.Connection:
        # Autocommit mode; transactions are managed explicitly (BEGIN/COMMIT).
        conn = await aiosqlite.connect(str(self.db_path), timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        await self._apply_connection_pragmas(conn)
        return conn

    async def _ensure_initialized_async(self) -> aiosqlite.Connection:
        if self._conn is not None:
            return self._conn
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        async with self._init_lock:
            if self._conn is None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = await self._create_connection()
                self._write_lock = asyncio.Lock()
                logger.info("Database initialized: %s", self.db_path)
        return self._conn

    async def aclose(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.close()
        except sqlite3.Error as exc:
            logger.debug("Error while closing database: %s", exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_locked_error(exc: Exception) -> bool:
        msg = str(exc).lower()
        return "database is locked" in msg or "database table is locked" in msg or "busy" in msg

    async def _sleep_backoff(self, attempt: int) -> None:
        base = self._lock_retry_base_seconds * (2 ** attempt)
        delay = min(self._lock_retry_max_seconds, base) * (0.5 + random.random() / 2)
        await asyncio.sleep(delay)

    @staticmethod
    def _is_write_sql(query: str) -> bool:
        q = str(query or "").lstrip()
        if not q:
            return False
        head = q.split(None, 1)[0].upper()
        return head not in ("SELECT", "PRAGMA", "WITH", "EXPLAIN")

    @staticmethod
    def _rows_to_dicts(rows: Any) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return [dict(r) for r in rows]

    async def _with_query_timeout(self, coro):
        timeout = self._query_timeout
        if timeout > 0:
            try:
                return await asyncio.wait_for(coro, timeout=timeout)
            except asyncio.TimeoutError:
                return Result.Err(ErrorCode.TIMEOUT, "Database operation timed out")
        return await coro

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _execute_with_retry(self, conn: aiosqlite.Connection, query: str, params: Optional[tuple], fetch: bool) -> Result[Any]:
        for attempt in range(self._lock_retry_attempts + 1):
            try:
                async with conn.execute(query, params or ()) as cursor:
                    if fetch:
                        rows = await cursor.fetchall()
                        return Result.Ok(self._rows_to_dicts(rows))
                    rowcount = cursor.rowcount
                    return Result.Ok(rowcount if rowcount is not None else 0)
            except sqlite3.OperationalError as exc:
                if self._is_locked_error(exc) and attempt < self._lock_retry_attempts:
                    await self._sleep_backoff(attempt)
                    continue
                raise
        return Result.Err(ErrorCode.DB_ERROR, "Query failed after retries")

    async def _execute_async(self, query: str, params: Optional[tuple], fetch: bool) -> Result[Any]:
        try:
            conn = await self._ensure_initialized_async()
            if self._is_write_sql(query) and not _IN_TX.get() and self._write_lock is not None:
                async with self._write_lock:
                    return await self._execute_with_retry(conn, query, params, fetch)
            return await self._execute_with_retry(conn, query, params, fetch)
        except sqlite3.IntegrityError as exc:
            logger.warning("Integrity error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Integrity error: {exc}")
        except sqlite3.OperationalError as exc:
            logger.error("Operational error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Operational error: {exc}")
        except sqlite3.Error as exc:
            logger.error("Database error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))
        except (OSError, ValueError) as exc:
            logger.error("Unexpected database error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    async def aexecute(self, query: str, params: Optional[tuple] = None, fetch: bool = False) -> Result[Any]:
        """Execute one SQL statement. Writes return the affected row count."""
        return await self._with_query_timeout(self._execute_async(query, params, fetch))

    async def aquery(self, sql: str, params: Optional[tuple] = None) -> Result[List[Dict[str, Any]]]:
        """Execute a SELECT query and return rows as dicts."""
        return await self.aexecute(sql, params, fetch=True)

    async def aexecutemany(self, query: str, params_list: List[tuple]) -> Result[int]:
        if not params_list:
            return Result.Ok(0)
        try:
            conn = await self._ensure_initialized_async()
            if _IN_TX.get() or self._write_lock is None:
                await conn.executemany(query, params_list)
            else:
                async with self._write_lock:
                    await conn.executemany(query, params_list)
            return Result.Ok(len(params_list))
        except sqlite3.Error as exc:
            logger.error("executemany failed: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    async def aexecutescript(self, script: str) -> Result[bool]:
        try:
            conn = await self._ensure_initialized_async()
            assert self._write_lock is not None
            async with self._write_lock:
                await conn.executescript(script)
            return Result.Ok(True)
        except sqlite3.Error as exc:
            logger.error("executescript failed: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    async def ahas_table(self, table_name: str) -> bool:
        res = await self.aquery(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (table_name,),
        )
        return bool(res.ok and res.data)

    async def aget_schema_version(self) -> int:
        if not await self.ahas_table("metadata"):
            return 0
        res = await self.aquery("SELECT value FROM metadata WHERE key = 'schema_version'")
        if not res.ok or not res.data:
            return 0
        try:
            return int(res.data[0].get("value") or 0)
        except (TypeError, ValueError):
            return 0

    async def aset_schema_version(self, version: int) -> Result[bool]:
        return await self.aexecute(
            "INSERT OR REPLACE INTO metadata (key, value) VALUES ('schema_version', ?)",
            (str(version),),
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @staticmethod
    def _begin_stmt_for_mode(mode: str) -> str:
        begin_stmt = "BEGIN IMMEDIATE"
        if isinstance(mode, str) and mode.lower() in ("deferred", "immediate", "exclusive"):
            begin_stmt = f"BEGIN {mode.upper()}"
        elif isinstance(mode, str) and mode.strip() == "":
            begin_stmt = "BEGIN"
        return begin_stmt

    async def _run_with_lock_retry(self, conn: aiosqlite.Connection, statement: str) -> None:
        for attempt in range(self._lock_retry_attempts + 1):
            try:
                await conn.execute(statement)
                return
            except sqlite3.OperationalError as exc:
                if self._is_locked_error(exc) and attempt < self._lock_retry_attempts:
                    await self._sleep_backoff(attempt)
                    continue
                raise

    @asynccontextmanager
    async def atransaction(self, mode: str = "immediate"):
        """
        Async context manager for a DB transaction.

        Yields a `Result` describing the transaction state. If BEGIN fails the
        yielded result is already an error and the body should not write. A
        failed COMMIT flips the yielded result to an error after the block.
        Exceptions raised in the body roll back and propagate.
        """
        tx_state: Result[bool] = Result.Ok(True)
        try:
            conn = await self._ensure_initialized_async()
        except (sqlite3.Error, OSError) as exc:
            yield Result.Err(ErrorCode.DB_ERROR, f"Failed to open database: {exc}")
            return
        assert self._write_lock is not None
        lock = self._write_lock

        await lock.acquire()
        try:
            try:
                await self._run_with_lock_retry(conn, self._begin_stmt_for_mode(mode))
            except sqlite3.Error as exc:
                yield Result.Err(ErrorCode.DB_ERROR, f"Failed to begin transaction: {exc}")
                return

            token = _IN_TX.set(True)
            try:
                yield tx_state
            except BaseException:
                try:
                    await conn.rollback()
                except sqlite3.Error as rb_exc:
                    logger.warning("Rollback failed: %s", rb_exc)
                raise
            finally:
                _IN_TX.reset(token)

            try:
                await self._run_with_lock_retry(conn, "COMMIT")
            except sqlite3.Error as exc:
                try:
                    await conn.rollback()
                except sqlite3.Error:
                    logger.debug("Rollback after failed commit also failed", exc_info=True)
                tx_state.ok = False
                tx_state.code = ErrorCode.DB_ERROR.value
                tx_state.error = f"Commit failed: {exc}"
        finally:
            lock.release()
