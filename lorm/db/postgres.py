"""
Lorm PostgreSQL executor via asyncpg.

Requires asyncpg:
    pip install lorm[postgres]
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from ..faults import DatabaseFault
from ..models.dialects import Dialect
from .executor import Executor

logger = logging.getLogger("lorm.db.postgres")

__all__ = ["PostgresExecutor"]

# Try importing async postgres driver
try:
    import asyncpg
    _HAS_ASYNCPG = True
except ImportError:
    asyncpg = None  # type: ignore
    _HAS_ASYNCPG = False


def _mask_url(url: str) -> str:
    """Hide the password in a connection URL for logging."""
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    creds, host = rest.rsplit("@", 1)
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


def _affected(status: str) -> int:
    """Row count from an asyncpg command status such as ``DELETE 3``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


class PostgresExecutor(Executor):
    """
    PostgreSQL executor over an asyncpg pool (or a single connection).

    Outside ``transaction()`` every statement acquires a pooled connection;
    inside, all statements run on the connection pinned by the transaction.
    """

    dialect = Dialect.POSTGRES

    def __init__(self, pool: Any, *, echo: Optional[bool] = None):
        super().__init__(echo=echo)
        self._pool = pool
        self._txn_conn: Any = None

    @classmethod
    async def connect(cls, url: str, *, echo: Optional[bool] = None, **options) -> PostgresExecutor:
        if not _HAS_ASYNCPG:
            raise ImportError(
                "asyncpg is required for PostgreSQL support.\n"
                "Install: pip install lorm[postgres]"
            )
        min_size = options.pop("pool_min_size", 1)
        max_size = options.pop("pool_max_size", 10)
        try:
            pool = await asyncpg.create_pool(url, min_size=min_size, max_size=max_size, **options)
        except Exception as exc:
            raise DatabaseFault("connect", str(exc), metadata={"url": _mask_url(url)}) from exc
        logger.info(f"PostgreSQL connected via asyncpg: {_mask_url(url)}")
        return cls(pool, echo=echo)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("PostgreSQL disconnected")

    @asynccontextmanager
    async def _acquire(self) -> AsyncIterator[Any]:
        if self._txn_conn is not None:
            yield self._txn_conn
            return
        if self._pool is None:
            raise DatabaseFault("connection", "executor is closed")
        if not hasattr(self._pool, "acquire"):
            # A bare asyncpg connection
            yield self._pool
            return
        async with self._pool.acquire() as conn:
            yield conn

    # ── Primitives ───────────────────────────────────────────────────

    async def _execute(self, sql: str, args: List[Any]) -> int:
        async with self._acquire() as conn:
            return _affected(await conn.execute(sql, *args))

    async def _fetch_all(self, sql: str, args: List[Any]) -> List[Dict[str, Any]]:
        async with self._acquire() as conn:
            rows = await conn.fetch(sql, *args)
        return [dict(row) for row in rows]

    async def _fetch_row(self, sql: str, args: List[Any]) -> Optional[Dict[str, Any]]:
        async with self._acquire() as conn:
            row = await conn.fetchrow(sql, *args)
        return dict(row) if row is not None else None

    # ── Transactions ─────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresExecutor]:
        """Pin one connection and run the enclosed statements atomically."""
        if self._txn_conn is not None:
            raise DatabaseFault("begin", "transaction already in progress")
        async with self._acquire() as conn:
            self._txn_conn = conn
            try:
                async with conn.transaction():
                    yield self
            finally:
                self._txn_conn = None

    @property
    def in_transaction(self) -> bool:
        return self._txn_conn is not None
