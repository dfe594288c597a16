"""
infrastructure.persistence.donation_repo - SQLite donation repository.

Implements DonationRepository port. Status changes are compare-and-set
(``WHERE status = expected``) so a concurrent writer makes the update a
no-op instead of overwriting its change.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

import aiosqlite

from domain.entities import Donation, Restaurant
from domain.models import DonationStatus, DonationWithRestaurant
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.restaurant_repo import SQLiteRestaurantRepository

logger = logging.getLogger(__name__)


class SQLiteDonationRepository:
    """Async SQLite implementation of DonationRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, donation: Donation) -> int:
        now = datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """INSERT INTO donations
                   (restaurant_id, item_name, category, quantity, expiration_date,
                    status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (donation.restaurant_id, donation.item_name, donation.category,
                 donation.quantity, donation.expiration_date.isoformat(),
                 DonationStatus(donation.status).value, now, now),
            )
            return cursor.lastrowid

    async def get_by_id(self, donation_id: int) -> Optional[Donation]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM donations WHERE id = ?",
                (donation_id,),
            )
            return self.row_to_entity(rows[0]) if rows else None

    async def get_restaurant(self, donation_id: int) -> Optional[Restaurant]:
        """The restaurant that owns ``donation_id``."""
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT r.* FROM restaurants r
                   JOIN donations d ON d.restaurant_id = r.id
                   WHERE d.id = ?""",
                (donation_id,),
            )
            return SQLiteRestaurantRepository.row_to_entity(rows[0]) if rows else None

    async def compare_and_set_status(
        self,
        donation_id: int,
        expected: DonationStatus,
        new_status: DonationStatus,
    ) -> bool:
        async with self._conn.acquire() as conn:
            return await self.set_status_in(conn, donation_id, expected, new_status)

    @staticmethod
    async def set_status_in(
        conn: aiosqlite.Connection,
        donation_id: int,
        expected: DonationStatus,
        new_status: DonationStatus,
    ) -> bool:
        """Conditional status update on an already-open transaction.

        Returns False when the row is missing or not in ``expected``.
        """
        cursor = await conn.execute(
            """UPDATE donations SET status = ?, updated_at = ?
               WHERE id = ? AND status = ?""",
            (new_status.value, datetime.now().isoformat(), donation_id, expected.value),
        )
        return cursor.rowcount == 1

    async def list_available(self, today: date) -> list[DonationWithRestaurant]:
        """AVAILABLE, unexpired donations, newest first."""
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT d.*, r.name AS restaurant_name, r.address AS restaurant_address,
                          r.latitude AS restaurant_latitude, r.longitude AS restaurant_longitude
                   FROM donations d
                   JOIN restaurants r ON d.restaurant_id = r.id
                   WHERE d.status = ? AND d.expiration_date > ?
                   ORDER BY d.created_at DESC, d.id DESC""",
                (DonationStatus.AVAILABLE.value, today.isoformat()),
            )
            return [self._row_to_listing(r) for r in rows]

    @staticmethod
    def row_to_entity(row) -> Donation:
        return Donation(
            id=row["id"],
            restaurant_id=row["restaurant_id"],
            item_name=row["item_name"],
            category=row["category"] or "",
            quantity=row["quantity"],
            expiration_date=date.fromisoformat(row["expiration_date"]),
            status=DonationStatus(row["status"]),
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )

    @staticmethod
    def _row_to_listing(row) -> DonationWithRestaurant:
        return DonationWithRestaurant(
            donation_id=row["id"],
            restaurant_id=row["restaurant_id"],
            restaurant_name=row["restaurant_name"] or "",
            restaurant_address=row["restaurant_address"] or "",
            item_name=row["item_name"],
            category=row["category"] or "",
            quantity=row["quantity"],
            expiration_date=date.fromisoformat(row["expiration_date"]),
            status=DonationStatus(row["status"]),
            created_at=row["created_at"] or "",
            latitude=row["restaurant_latitude"],
            longitude=row["restaurant_longitude"],
        )
