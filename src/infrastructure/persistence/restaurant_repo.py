"""
infrastructure.persistence.restaurant_repo - SQLite restaurant repository.

Implements RestaurantRepository port.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from domain.entities import Restaurant
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteRestaurantRepository:
    """Async SQLite implementation of RestaurantRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, restaurant: Restaurant) -> int:
        now = datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """INSERT INTO restaurants
                   (manager_id, name, address, latitude, longitude, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (restaurant.manager_id, restaurant.name, restaurant.address,
                 restaurant.latitude, restaurant.longitude, now),
            )
            return cursor.lastrowid

    async def get_by_id(self, restaurant_id: int) -> Optional[Restaurant]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM restaurants WHERE id = ?",
                (restaurant_id,),
            )
            return self.row_to_entity(rows[0]) if rows else None

    async def get_by_manager(self, manager_id: str) -> Optional[Restaurant]:
        """The donor's first restaurant (lowest id)."""
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM restaurants WHERE manager_id = ? ORDER BY id LIMIT 1",
                (manager_id,),
            )
            return self.row_to_entity(rows[0]) if rows else None

    @staticmethod
    def row_to_entity(row) -> Restaurant:
        return Restaurant(
            id=row["id"],
            manager_id=row["manager_id"],
            name=row["name"] or "",
            address=row["address"] or "",
            latitude=row["latitude"],
            longitude=row["longitude"],
            created_at=row["created_at"] or "",
        )
