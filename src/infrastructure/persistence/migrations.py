"""
infrastructure.persistence.migrations - Database schema creation.

Called once at startup by the factory or the CLI.
"""

from __future__ import annotations

import logging

from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_TABLES = [
    """CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        role TEXT NOT NULL CHECK (role IN ('DONOR', 'RECIPIENT', 'FOOD_BANK')),
        address TEXT,
        latitude REAL,
        longitude REAL,
        phone_number TEXT,
        created_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS restaurants (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        manager_id TEXT NOT NULL,
        name TEXT NOT NULL,
        address TEXT NOT NULL,
        latitude REAL,
        longitude REAL,
        created_at TEXT,
        FOREIGN KEY (manager_id) REFERENCES users(id) ON DELETE CASCADE
    )""",
    """CREATE TABLE IF NOT EXISTS donations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        restaurant_id INTEGER NOT NULL,
        item_name TEXT NOT NULL,
        category TEXT,
        quantity INTEGER NOT NULL CHECK (quantity > 0),
        expiration_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'AVAILABLE'
            CHECK (status IN ('AVAILABLE', 'REQUESTED', 'CONFIRMED')),
        created_at TEXT,
        updated_at TEXT,
        FOREIGN KEY (restaurant_id) REFERENCES restaurants(id) ON DELETE CASCADE
    )""",
    # donation_id UNIQUE: at most one match per donation, even under
    # concurrent inserts.
    """CREATE TABLE IF NOT EXISTS matches (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        donation_id INTEGER NOT NULL UNIQUE,
        recipient_id TEXT NOT NULL,
        food_bank_id TEXT,
        status TEXT NOT NULL DEFAULT 'PENDING'
            CHECK (status IN ('PENDING', 'ACCEPTED', 'REJECTED', 'COMPLETED')),
        created_at TEXT,
        updated_at TEXT,
        FOREIGN KEY (donation_id) REFERENCES donations(id) ON DELETE CASCADE,
        CHECK (status != 'ACCEPTED' OR food_bank_id IS NOT NULL)
    )""",
    """CREATE TABLE IF NOT EXISTS match_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL,
        actor_id TEXT NOT NULL,
        previous_status TEXT,
        new_status TEXT NOT NULL,
        notes TEXT,
        created_at TEXT,
        FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE CASCADE
    )""",
    "CREATE INDEX IF NOT EXISTS idx_restaurants_manager ON restaurants(manager_id)",
    "CREATE INDEX IF NOT EXISTS idx_donations_status ON donations(status)",
    "CREATE INDEX IF NOT EXISTS idx_donations_expiration ON donations(expiration_date)",
    "CREATE INDEX IF NOT EXISTS idx_matches_status ON matches(status)",
    "CREATE INDEX IF NOT EXISTS idx_matches_food_bank ON matches(food_bank_id)",
    "CREATE INDEX IF NOT EXISTS idx_match_logs_match ON match_logs(match_id)",
]


async def run_migrations(connection: AsyncSQLiteConnection) -> None:
    """Create all tables if they don't exist.

    Safe to call multiple times (uses IF NOT EXISTS).
    """
    async with connection.acquire() as conn:
        for ddl in _TABLES:
            await conn.execute(ddl)
    logger.info("All tables created (or already exist).")
