"""SQLite-backed key-value store and the saved project library."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from config.exceptions import DatabaseError
from models.library import LibraryEntry

logger = logging.getLogger(__name__)

LIBRARY_KEY = "library"
BALANCE_KEY = "credit_balance"

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class Database:
    """Local per-user key-value store.

    Values are JSON documents. The library is a single array-valued key
    that is read whole and overwritten whole on every save or delete.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def _init_db(self):
        with self._get_conn() as conn:
            conn.executescript(_CREATE_TABLES_SQL)

    # ---- Key-value access ----

    def get_value(self, key: str, default: Any = None) -> Any:
        with self._get_conn() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        if not row:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise DatabaseError(f"Corrupt value stored under '{key}'", {"error": str(e)}) from e

    def set_value(self, key: str, value: Any):
        payload = json.dumps(value, ensure_ascii=False)
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
                "updated_at=CURRENT_TIMESTAMP",
                (key, payload),
            )

    def delete_value(self, key: str):
        with self._get_conn() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    # ---- Credit balance ----

    def get_balance(self) -> Optional[int]:
        value = self.get_value(BALANCE_KEY)
        return int(value) if value is not None else None

    def set_balance(self, balance: int):
        self.set_value(BALANCE_KEY, int(balance))

    # ---- Library ----

    def _read_library(self) -> list[LibraryEntry]:
        raw = self.get_value(LIBRARY_KEY, [])
        if not isinstance(raw, list):
            raise DatabaseError("Library record is not an array", {"type": type(raw).__name__})
        return [LibraryEntry.from_dict(item) for item in raw]

    def _write_library(self, entries: list[LibraryEntry]):
        self.set_value(LIBRARY_KEY, [e.to_dict() for e in entries])

    def list_entries(self) -> list[LibraryEntry]:
        """Return all saved entries, most recently updated first."""
        entries = self._read_library()
        return sorted(entries, key=lambda e: e.updated_at or datetime.min, reverse=True)

    def get_entry(self, entry_id: str) -> Optional[LibraryEntry]:
        for entry in self._read_library():
            if entry.id == entry_id:
                return entry
        return None

    def save_entry(self, entry: LibraryEntry) -> LibraryEntry:
        """Insert or replace the entry with the same project id."""
        if not entry.id:
            raise DatabaseError("Library entries require a project id")
        entry.updated_at = datetime.now()
        others = [e for e in self._read_library() if e.id != entry.id]
        self._write_library([entry] + others)
        logger.info("Library entry %s saved (%d entries total)", entry.id, len(others) + 1)
        return entry

    def delete_entry(self, entry_id: str) -> bool:
        entries = self._read_library()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            return False
        self._write_library(remaining)
        logger.info("Library entry %s deleted", entry_id)
        return True
