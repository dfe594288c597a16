"""
infrastructure.persistence.match_repo - SQLite match + audit trail repository.

Implements MatchRepository port. Every status change and its MatchLog row
are written in one BEGIN IMMEDIATE transaction, together with the matching
donation status change where there is one:

    create_with_claim:  INSERT match (PENDING)  + donation AVAILABLE → REQUESTED + log
    transition:         UPDATE match (expected → new) [+ donation REQUESTED → CONFIRMED] + log

A failure at any step rolls back the whole unit.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

import aiosqlite

from domain.entities import Match, MatchLog
from domain.exceptions import (
    DonationNotAvailableError,
    DuplicateMatchError,
    InvalidTransitionError,
    NotFoundError,
)
from domain.models import DonationStatus, MatchDetail, MatchStatus
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.donation_repo import SQLiteDonationRepository

logger = logging.getLogger(__name__)

_DETAIL_QUERY = """
    SELECT m.id AS match_id, m.donation_id, m.status, m.recipient_id, m.food_bank_id,
           m.created_at, m.updated_at,
           u.name AS recipient_name, u.address AS recipient_address,
           r.name AS restaurant_name, r.address AS restaurant_address,
           d.item_name, d.category, d.quantity, d.expiration_date
    FROM matches m
    JOIN donations d ON d.id = m.donation_id
    JOIN restaurants r ON r.id = d.restaurant_id
    LEFT JOIN users u ON u.id = m.recipient_id
    WHERE m.status = ?
"""


class SQLiteMatchRepository:
    """Async SQLite implementation of MatchRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get_by_id(self, match_id: int) -> Optional[Match]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM matches WHERE id = ?",
                (match_id,),
            )
            return self._row_to_entity(rows[0]) if rows else None

    async def get_by_donation(self, donation_id: int) -> Optional[Match]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM matches WHERE donation_id = ?",
                (donation_id,),
            )
            return self._row_to_entity(rows[0]) if rows else None

    async def create_with_claim(self, match: Match, log: MatchLog) -> int:
        """Insert a PENDING match and claim its donation in one transaction.

        Raises:
            DuplicateMatchError: the donation already has a match.
            NotFoundError: the donation row does not exist.
            DonationNotAvailableError: the donation left AVAILABLE meanwhile.
        """
        now = datetime.now().isoformat()
        async with self._conn.acquire(immediate=True) as conn:
            try:
                cursor = await conn.execute(
                    """INSERT INTO matches
                       (donation_id, recipient_id, food_bank_id, status, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (match.donation_id, match.recipient_id, match.food_bank_id,
                     MatchStatus.PENDING.value, now, now),
                )
            except aiosqlite.IntegrityError as exc:
                if "UNIQUE" in str(exc).upper():
                    raise DuplicateMatchError(
                        f"Donation {match.donation_id} already has a match."
                    ) from exc
                raise NotFoundError(f"Donation {match.donation_id} not found.") from exc
            match_id = cursor.lastrowid

            claimed = await SQLiteDonationRepository.set_status_in(
                conn, match.donation_id, DonationStatus.AVAILABLE, DonationStatus.REQUESTED,
            )
            if not claimed:
                raise DonationNotAvailableError(
                    f"Donation {match.donation_id} is no longer available."
                )

            await self._insert_log(conn, match_id, log, now)
            return match_id

    async def transition(
        self,
        match_id: int,
        expected: MatchStatus,
        log: MatchLog,
        food_bank_id: Optional[str] = None,
        confirm_donation: bool = False,
    ) -> bool:
        """Move a match from ``expected`` to ``log.new_status``.

        ``food_bank_id`` (when given) overwrites the stored assignment.
        With ``confirm_donation`` the owning donation moves
        REQUESTED → CONFIRMED in the same transaction.

        Returns False, writing nothing, when the match is not in ``expected``.
        """
        now = datetime.now().isoformat()
        async with self._conn.acquire(immediate=True) as conn:
            cursor = await conn.execute(
                """UPDATE matches
                   SET status = ?, food_bank_id = COALESCE(?, food_bank_id), updated_at = ?
                   WHERE id = ? AND status = ?""",
                (log.new_status.value, food_bank_id, now, match_id, expected.value),
            )
            if cursor.rowcount != 1:
                return False

            if confirm_donation:
                rows = await conn.execute_fetchall(
                    "SELECT donation_id FROM matches WHERE id = ?",
                    (match_id,),
                )
                donation_id = rows[0]["donation_id"]
                confirmed = await SQLiteDonationRepository.set_status_in(
                    conn, donation_id, DonationStatus.REQUESTED, DonationStatus.CONFIRMED,
                )
                if not confirmed:
                    raise InvalidTransitionError(
                        f"Donation {donation_id} cannot move to CONFIRMED."
                    )

            await self._insert_log(conn, match_id, log, now)
            return True

    async def get_logs(self, match_id: int) -> list[MatchLog]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM match_logs WHERE match_id = ? ORDER BY id",
                (match_id,),
            )
            return [self._row_to_log(r) for r in rows]

    async def list_details(
        self,
        status: MatchStatus,
        food_bank_id: Optional[str] = None,
    ) -> list[MatchDetail]:
        query = _DETAIL_QUERY
        params: list[object] = [status.value]
        if food_bank_id is not None:
            query += " AND m.food_bank_id = ?"
            params.append(food_bank_id)
        query += " ORDER BY m.created_at, m.id"

        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(query, params)
            return [self._row_to_detail(r) for r in rows]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _insert_log(
        conn: aiosqlite.Connection, match_id: int, log: MatchLog, now: str,
    ) -> None:
        await conn.execute(
            """INSERT INTO match_logs
               (match_id, actor_id, previous_status, new_status, notes, created_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (match_id, log.actor_id,
             log.previous_status.value if log.previous_status else None,
             log.new_status.value, log.notes, now),
        )

    @staticmethod
    def _row_to_entity(row) -> Match:
        return Match(
            id=row["id"],
            donation_id=row["donation_id"],
            recipient_id=row["recipient_id"],
            food_bank_id=row["food_bank_id"],
            status=MatchStatus(row["status"]),
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )

    @staticmethod
    def _row_to_log(row) -> MatchLog:
        previous = row["previous_status"]
        return MatchLog(
            id=row["id"],
            match_id=row["match_id"],
            actor_id=row["actor_id"],
            previous_status=MatchStatus(previous) if previous else None,
            new_status=MatchStatus(row["new_status"]),
            notes=row["notes"] or "",
            created_at=row["created_at"] or "",
        )

    @staticmethod
    def _row_to_detail(row) -> MatchDetail:
        return MatchDetail(
            match_id=row["match_id"],
            donation_id=row["donation_id"],
            status=MatchStatus(row["status"]),
            recipient_id=row["recipient_id"],
            recipient_name=row["recipient_name"] or "",
            recipient_address=row["recipient_address"] or "",
            restaurant_name=row["restaurant_name"] or "",
            restaurant_address=row["restaurant_address"] or "",
            item_name=row["item_name"],
            category=row["category"] or "",
            quantity=row["quantity"],
            expiration_date=date.fromisoformat(row["expiration_date"]),
            food_bank_id=row["food_bank_id"],
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )
