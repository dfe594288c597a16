"""
infrastructure.persistence.user_repo - SQLite user repository.

Implements UserRepository port. User ids are opaque strings shared with the
reference data pools; save() upserts on id.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from domain.entities import User
from domain.models import Role
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteUserRepository:
    """Async SQLite implementation of UserRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, user: User) -> str:
        now = datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            await conn.execute(
                """INSERT INTO users
                   (id, name, role, address, latitude, longitude, phone_number, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                       name = excluded.name,
                       address = excluded.address,
                       latitude = excluded.latitude,
                       longitude = excluded.longitude,
                       phone_number = excluded.phone_number""",
                (user.id, user.name, Role(user.role).value, user.address,
                 user.latitude, user.longitude, user.phone_number, now),
            )
        return user.id

    async def get_by_id(self, user_id: str) -> Optional[User]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM users WHERE id = ?",
                (user_id,),
            )
            return self._row_to_user(rows[0]) if rows else None

    @staticmethod
    def _row_to_user(row) -> User:
        return User(
            id=row["id"],
            name=row["name"] or "",
            role=Role(row["role"]),
            address=row["address"] or "",
            latitude=row["latitude"],
            longitude=row["longitude"],
            phone_number=row["phone_number"] or "",
            created_at=row["created_at"] or "",
        )
