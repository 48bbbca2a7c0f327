"""
Lorm Executor — the one collaborator contract the engine talks to.

    execute(sql, args)        -> affected row count
    fetch_one(sql, args)      -> row (RecordNotFoundFault when there is none)
    fetch_optional(sql, args) -> row or None
    fetch_all(sql, args)      -> list of rows

Rows are mappings from column name to driver value. Every driver error is
surfaced as a ``DatabaseFault``; faults raised below pass through as-is.
Nothing is retried.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..faults import DatabaseFault, Fault, RecordNotFoundFault
from ..models.dialects import Dialect

logger = logging.getLogger("lorm.db")

__all__ = ["Executor", "Row"]

Row = Mapping[str, Any]


class Executor(ABC):
    """
    Base class for database executors.

    Subclasses implement the ``_execute`` / ``_fetch_all`` / ``_fetch_row``
    primitives against their driver; this class adds statement logging and
    fault wrapping.
    """

    dialect: Dialect = Dialect.SQLITE

    def __init__(self, *, echo: Optional[bool] = None):
        if echo is None:
            from ..config import get_config
            echo = get_config().echo_sql
        self.echo = echo

    # ── Driver primitives ────────────────────────────────────────────

    @abstractmethod
    async def _execute(self, sql: str, args: List[Any]) -> int:
        ...

    @abstractmethod
    async def _fetch_all(self, sql: str, args: List[Any]) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def _fetch_row(self, sql: str, args: List[Any]) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @abstractmethod
    def transaction(self) -> Any:
        """Async context manager running the enclosed statements atomically."""
        ...

    # ── Contract ─────────────────────────────────────────────────────

    def _log(self, sql: str, args: Sequence[Any]) -> None:
        level = logging.INFO if self.echo else logging.DEBUG
        if logger.isEnabledFor(level):
            logger.log(level, f"{sql} -- args={list(args)!r}")

    async def _call(self, operation: str, primitive, sql: str, args: Optional[Sequence[Any]]):
        bound = list(args or [])
        self._log(sql, bound)
        try:
            return await primitive(sql, bound)
        except Fault:
            raise
        except Exception as exc:
            raise DatabaseFault(
                operation,
                str(exc) or type(exc).__name__,
                metadata={"sql": sql[:200], "driver_error": type(exc).__name__},
            ) from exc

    async def execute(self, sql: str, args: Optional[Sequence[Any]] = None) -> int:
        """Run a statement; returns the affected row count."""
        return await self._call("execute", self._execute, sql, args)

    async def fetch_all(self, sql: str, args: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        return await self._call("fetch_all", self._fetch_all, sql, args)

    async def fetch_optional(self, sql: str, args: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        return await self._call("fetch_optional", self._fetch_row, sql, args)

    async def fetch_one(self, sql: str, args: Optional[Sequence[Any]] = None) -> Dict[str, Any]:
        """Fetch exactly one row; no row is a ``RecordNotFoundFault``."""
        row = await self._call("fetch_one", self._fetch_row, sql, args)
        if row is None:
            raise RecordNotFoundFault("fetch_one", metadata={"sql": sql[:200]})
        return row

    async def __aenter__(self) -> Executor:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
