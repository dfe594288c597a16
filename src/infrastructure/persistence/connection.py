"""
infrastructure.persistence.connection - Async SQLite connection manager.

Wraps aiosqlite with a context manager: one connection per unit of work,
commit on success, rollback on exception.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiosqlite

from domain.exceptions import DomainError

logger = logging.getLogger(__name__)


class AsyncSQLiteConnection:
    """Async SQLite connection provider with auto-commit/rollback."""

    def __init__(self, db_path: str, busy_timeout: float = 5.0):
        self._db_path = db_path
        self._busy_timeout = busy_timeout

    @property
    def db_path(self) -> str:
        return self._db_path

    @asynccontextmanager
    async def acquire(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an async SQLite connection with FK support.

        With ``immediate=True`` the transaction starts with BEGIN IMMEDIATE,
        taking the write lock up front so read-check-write sequences are
        serialized against other writers.

        Commits on success, rolls back on exception.
        """
        async with aiosqlite.connect(self._db_path, timeout=self._busy_timeout) as conn:
            await conn.execute("PRAGMA foreign_keys = ON")
            conn.row_factory = aiosqlite.Row
            if immediate:
                await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except DomainError as exc:
                await conn.rollback()
                logger.debug("Transaction rolled back: %s", exc.kind)
                raise
            except Exception:
                await conn.rollback()
                logger.exception("Database operation failed, transaction rolled back.")
                raise
