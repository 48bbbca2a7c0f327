"""
Shared test fixtures and helpers for the lorm test suite.
"""

from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from lorm.config import reset_config
from lorm.db import Executor, SQLiteExecutor
from lorm.models.dialects import Dialect


# ============================================================================
# Schema
# ============================================================================

USERS_DDL = """
CREATE TABLE users
(
    id         TEXT PRIMARY KEY NOT NULL,
    email      VARCHAR          NOT NULL UNIQUE,
    count      INTEGER,
    created_at DATETIME         NOT NULL,
    updated_at DATETIME         NOT NULL
)
"""

POSTS_DDL = """
CREATE TABLE posts
(
    id      TEXT PRIMARY KEY NOT NULL,
    content TEXT             NOT NULL UNIQUE,
    user_id TEXT             NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(id)
)
"""

ALT_USERS_DDL = """
CREATE TABLE alt_users
(
    id         INTEGER PRIMARY KEY NOT NULL,
    email      VARCHAR          NOT NULL UNIQUE,
    count      INTEGER,
    created_at DATETIME         NOT NULL DEFAULT(DATETIME('now')),
    updated_at DATETIME         NOT NULL
)
"""


# ============================================================================
# Executors
# ============================================================================


class RecordingExecutor(Executor):
    """
    In-memory executor that records every statement and replays canned rows.

    ``responses`` is consumed in order, one entry (a list of row dicts) per
    fetch call.
    """

    def __init__(self, responses: Optional[List[List[Dict[str, Any]]]] = None, dialect: Dialect = Dialect.SQLITE):
        super().__init__(echo=False)
        self.dialect = dialect
        self.calls: List[tuple] = []
        self.responses = list(responses or [])

    def _next(self) -> List[Dict[str, Any]]:
        return self.responses.pop(0) if self.responses else []

    async def _execute(self, sql, args):
        self.calls.append(("execute", sql, args))
        return 1

    async def _fetch_all(self, sql, args):
        self.calls.append(("fetch_all", sql, args))
        return self._next()

    async def _fetch_row(self, sql, args):
        self.calls.append(("fetch_row", sql, args))
        rows = self._next()
        return rows[0] if rows else None

    async def close(self):
        pass

    def transaction(self):
        raise NotImplementedError


@pytest.fixture
def recorder():
    """Factory for RecordingExecutor instances."""
    return RecordingExecutor


@pytest_asyncio.fixture
async def db():
    executor = await SQLiteExecutor.connect("sqlite:///:memory:", echo=False)
    for ddl in (USERS_DDL, POSTS_DDL, ALT_USERS_DDL):
        await executor.execute(ddl)
    yield executor
    await executor.close()


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Every test starts from the default configuration."""
    for key in ("LORM_DIALECT", "LORM_DATABASE_URL", "LORM_ECHO_SQL"):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()
