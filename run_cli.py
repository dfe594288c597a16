"""
Run the food-share allocation CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Examples:
    python run_cli.py init-db
    python run_cli.py act-as r-1 --role RECIPIENT
    python run_cli.py donations --lat 37.5 --lng 127.0
    python run_cli.py claim 1

Environment variables (all optional):
    DB_PATH                  SQLite database file path (default: food_share.db)
    DB_BUSY_TIMEOUT          Seconds to wait on a locked database (default: 5.0)
    REFERENCE_DATA_BASE_URL  Bucket URL, file:// URL or directory holding the CSV exports
    RESTAURANTS_CSV_PATH     Restaurant pool path (default: csv/Restaurants.csv)
    RECIPIENTS_CSV_PATH      Recipient pool path (default: csv/Recipient.csv)
    FOODBANKS_CSV_PATH       Food-bank pool path (default: csv/Foodbank.csv)
    REFERENCE_DATA_TIMEOUT   Seconds per pool fetch (default: 10.0)
    NEARBY_DEFAULT_LIMIT     Default result count for nearby (default: 10)
    NEARBY_MAX_LIMIT         Largest accepted nearby limit (default: 100)
    LOG_LEVEL                Logging level (default: INFO)
    FOOD_SHARE_HOME          Where the act-as identity is stored (default: ~/.food-share)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
