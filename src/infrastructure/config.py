"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from environment or passed
explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the food allocation service.

    No module-level globals: construct via from_env() or pass explicitly
    in tests.
    """
    project_root: Path

    # Database
    db_path: str = "food_share.db"
    db_busy_timeout: float = 5.0

    # ── Reference data (object storage CSV exports) ─────────────
    # Base URL of the bucket (https://...), a file:// URL or a plain
    # directory path. Pool paths are appended to it.
    reference_data_base_url: str = ""
    restaurants_csv_path: str = "csv/Restaurants.csv"
    recipients_csv_path: str = "csv/Recipient.csv"
    foodbanks_csv_path: str = "csv/Foodbank.csv"
    reference_data_timeout: float = 10.0

    # Nearby searches
    nearby_default_limit: int = 10
    nearby_max_limit: int = 100

    # Logging
    log_level: str = "INFO"

    @property
    def reference_data_paths(self) -> dict[str, str]:
        """Pool name → object path, keyed like ReferencePool values."""
        return {
            "restaurants": self.restaurants_csv_path,
            "recipients": self.recipients_csv_path,
            "foodbanks": self.foodbanks_csv_path,
        }

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from the environment (and a .env file if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent

        return cls(
            project_root=root,
            db_path=os.getenv("DB_PATH", "food_share.db"),
            db_busy_timeout=float(os.getenv("DB_BUSY_TIMEOUT", "5.0")),
            reference_data_base_url=os.getenv("REFERENCE_DATA_BASE_URL", ""),
            restaurants_csv_path=os.getenv("RESTAURANTS_CSV_PATH", "csv/Restaurants.csv"),
            recipients_csv_path=os.getenv("RECIPIENTS_CSV_PATH", "csv/Recipient.csv"),
            foodbanks_csv_path=os.getenv("FOODBANKS_CSV_PATH", "csv/Foodbank.csv"),
            reference_data_timeout=float(os.getenv("REFERENCE_DATA_TIMEOUT", "10.0")),
            nearby_default_limit=int(os.getenv("NEARBY_DEFAULT_LIMIT", "10")),
            nearby_max_limit=int(os.getenv("NEARBY_MAX_LIMIT", "100")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
