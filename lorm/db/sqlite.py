"""
Lorm SQLite executor via aiosqlite.

The connection runs in autocommit mode; ``transaction()`` opens an explicit
BEGIN ... COMMIT block. Statements using numbered ``$N`` markers are bound
by position through a name mapping (``{"1": v1, "2": v2}``).
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

import aiosqlite

from ..faults import DatabaseFault
from ..models.dialects import Dialect
from .executor import Executor

logger = logging.getLogger("lorm.db.sqlite")

__all__ = ["SQLiteExecutor"]

_NUMBERED_MARKER = re.compile(r"\$\d+")


def _parameters(sql: str, args: List[Any]) -> Union[Dict[str, Any], Sequence[Any]]:
    if args and _NUMBERED_MARKER.search(sql):
        return {str(i): value for i, value in enumerate(args, 1)}
    return args


class SQLiteExecutor(Executor):
    """
    SQLite executor over a single aiosqlite connection.

    Features:
    - Foreign key enforcement
    - RETURNING rows are read before the statement completes
    - Explicit transactions via ``async with executor.transaction():``
    """

    dialect = Dialect.SQLITE

    def __init__(self, connection: Any, *, echo: Optional[bool] = None):
        super().__init__(echo=echo)
        self._connection = connection
        self._in_transaction = False

    @classmethod
    async def connect(cls, url: str = "sqlite:///:memory:", *, echo: Optional[bool] = None, **options) -> SQLiteExecutor:
        """Open a connection for a ``sqlite:///path`` URL (or a bare path)."""
        db_path = cls._parse_url(url)
        try:
            connection = await aiosqlite.connect(db_path, isolation_level=None, **options)
            connection.row_factory = aiosqlite.Row
            await connection.execute("PRAGMA foreign_keys=ON")
        except Exception as exc:
            raise DatabaseFault("connect", str(exc), metadata={"path": db_path}) from exc
        logger.info(f"SQLite connected: {db_path}")
        return cls(connection, echo=echo)

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("SQLite disconnected")

    def _conn(self) -> Any:
        if self._connection is None:
            raise DatabaseFault("connection", "executor is closed")
        return self._connection

    # ── Primitives ───────────────────────────────────────────────────

    async def _execute(self, sql: str, args: List[Any]) -> int:
        async with self._conn().execute(sql, _parameters(sql, args)) as cursor:
            return cursor.rowcount

    async def _fetch_all(self, sql: str, args: List[Any]) -> List[Dict[str, Any]]:
        async with self._conn().execute(sql, _parameters(sql, args)) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def _fetch_row(self, sql: str, args: List[Any]) -> Optional[Dict[str, Any]]:
        # Drain the cursor so INSERT/UPDATE ... RETURNING runs to completion
        rows = await self._fetch_all(sql, args)
        return rows[0] if rows else None

    # ── Transactions ─────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLiteExecutor]:
        """
        Run the enclosed statements atomically.

        Usage:
            async with db.transaction():
                await user.save(db)
                await post.save(db)
        """
        if self._in_transaction:
            raise DatabaseFault("begin", "transaction already in progress")
        conn = self._conn()
        await conn.execute("BEGIN")
        self._in_transaction = True
        try:
            yield self
            await conn.execute("COMMIT")
        except BaseException:
            await conn.execute("ROLLBACK")
            raise
        finally:
            self._in_transaction = False

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @staticmethod
    def _parse_url(url: str) -> str:
        """Extract file path from sqlite URL."""
        for prefix in ("sqlite:///", "sqlite://"):
            if url.startswith(prefix):
                path = url[len(prefix):]
                return path or ":memory:"
        return url.replace("sqlite:", "").lstrip("/") or ":memory:"
