"""
Repository pattern for profile state.

Loads and saves the last-used form values. Anything missing or corrupted
is replaced by defaults; loading never fails.
"""

import json
import logging
import sqlite3
from typing import Any, Optional

from ai_cost_estimator.core.usage import DEFAULT_USAGE, UsageInput

from .db import DEFAULT_DB_PATH, get_connection
from .models import KEY_CREDENTIAL, KEY_USAGE, text_key, usage_from_dict, usage_to_dict

logger = logging.getLogger(__name__)


class ProfileStore:
    """Key/value store for a single local profile.

    Values are stored as JSON text in the ``profile_state`` table.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the store with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize_schema(self) -> None:
        """Create the profile_state table if it doesn't exist."""
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profile_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def load_usage(self) -> UsageInput:
        """Load the last saved usage input, or defaults."""
        raw = self._read(KEY_USAGE)
        if raw is None:
            return DEFAULT_USAGE
        try:
            return usage_from_dict(raw)
        except (ValueError, TypeError, OverflowError) as e:
            logger.warning("Stored usage is invalid, using defaults: %s", e)
            return DEFAULT_USAGE

    def save_usage(self, usage: UsageInput) -> None:
        self._write(KEY_USAGE, usage_to_dict(usage))

    def load_text(self, field: str) -> str:
        """Load the last saved text body for a field, or an empty string."""
        raw = self._read(text_key(field))
        if raw is None:
            return ""
        if not isinstance(raw, str):
            logger.warning("Stored text for %s is not a string, ignoring it", field)
            return ""
        return raw

    def save_text(self, field: str, text: str) -> None:
        self._write(text_key(field), text)

    def load_credential(self) -> Optional[str]:
        """Load the saved API credential, if any."""
        raw = self._read(KEY_CREDENTIAL)
        if raw is None:
            return None
        if not isinstance(raw, str) or not raw.strip():
            logger.warning("Stored credential is invalid, ignoring it")
            return None
        return raw

    def save_credential(self, credential: Optional[str]) -> None:
        """Save the API credential; None removes it."""
        if credential is None:
            self._delete(KEY_CREDENTIAL)
        else:
            self._write(KEY_CREDENTIAL, credential)

    def clear(self) -> None:
        """Remove every stored value."""
        self.initialize_schema()
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM profile_state")
            conn.commit()
        finally:
            conn.close()

    def _read(self, key: str) -> Any:
        """Read and decode one value; None when missing or unreadable."""
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as e:
            logger.warning("Profile store %s cannot be opened: %s", self.db_path, e)
            return None
        try:
            row = conn.execute(
                "SELECT value FROM profile_state WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.DatabaseError as e:
            # Missing table or a file that is not a database
            logger.warning("Profile store %s is unreadable: %s", self.db_path, e)
            return None
        finally:
            conn.close()

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except (TypeError, ValueError) as e:
            logger.warning("Stored value for %s is corrupted: %s", key, e)
            return None

    def _write(self, key: str, value: Any) -> None:
        self.initialize_schema()
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT OR REPLACE INTO profile_state (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
            conn.commit()
        finally:
            conn.close()

    def _delete(self, key: str) -> None:
        self.initialize_schema()
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM profile_state WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()


def get_store(db_path: str = DEFAULT_DB_PATH) -> ProfileStore:
    """Get a profile store for the given database path."""
    return ProfileStore(db_path)
