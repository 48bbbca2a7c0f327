"""
Lorm Database — executors implementing the engine's single collaborator
contract (execute / fetch_one / fetch_optional / fetch_all).

Provides:
- Executor: abstract base with statement logging and fault wrapping
- SQLiteExecutor (aiosqlite, default) and PostgresExecutor (asyncpg)
- connect(url): open the executor matching the URL scheme
"""

from __future__ import annotations

from typing import Any, Optional

from ..faults import ConfigFault
from .executor import Executor, Row
from .postgres import PostgresExecutor
from .sqlite import SQLiteExecutor

__all__ = ["Executor", "Row", "SQLiteExecutor", "PostgresExecutor", "connect", "detect_driver"]


def detect_driver(url: str) -> str:
    """Detect database driver from URL scheme."""
    if url.startswith("sqlite"):
        return "sqlite"
    elif url.startswith("postgresql") or url.startswith("postgres"):
        return "postgres"
    elif url.startswith("mysql"):
        return "mysql"
    raise ConfigFault("database_url", f"unsupported database URL scheme: {url!r}")


async def connect(url: Optional[str] = None, *, echo: Optional[bool] = None, **options: Any) -> Executor:
    """
    Open an executor for ``url`` (defaults to the configured ``database_url``).

    Usage:
        async with await connect("sqlite:///:memory:") as db:
            await User(email="a@b.c").save(db)
    """
    if url is None:
        from ..config import get_config
        url = get_config().database_url
        if not url:
            raise ConfigFault("database_url", "no database URL given or configured")

    driver = detect_driver(url)
    if driver == "sqlite":
        return await SQLiteExecutor.connect(url, echo=echo, **options)
    if driver == "postgres":
        return await PostgresExecutor.connect(url, echo=echo, **options)
    raise ConfigFault("database_url", f"no executor available for the '{driver}' driver")
