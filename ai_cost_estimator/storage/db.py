"""
Database connection management.

Provides SQLite connection for the profile store.
"""

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = ".ai-cost-estimator.db"


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Create and return a SQLite database connection.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection
    """
    path = Path(db_path)
    return sqlite3.connect(str(path))
