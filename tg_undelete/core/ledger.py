"""Migration ledger: the persistent old-id to new-id mapping.

The ledger is the single source of truth for resumability.  Each archived
message that was ever attempted has exactly one row.  A row is created (or
touched) *before* the publish call and updated with the outcome afterwards,
so a crash mid-publish leaves a visible pending marker.  Rows are never
deleted; entries whose retries exceed the ceiling simply stop being selected.

Only this module writes ledger state.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Callable

from tg_undelete.constants import LEDGER_TABLE
from tg_undelete.exceptions import (
    LedgerConflictError,
    LedgerEntryNotFoundError,
    LedgerError,
)
from tg_undelete.types import LedgerEntry, LedgerSummary
from tg_undelete.utils.logging import log_with_context

_CREATE_TABLE_SQL = f"""
    CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
        ID INTEGER PRIMARY KEY,
        OldID INTEGER UNIQUE,
        NewID INTEGER,
        Retries INTEGER DEFAULT 0,
        UpdatedAt INTEGER
    )
"""


class MigrationLedger:
    """SQLite-backed ledger of migration attempts and outcomes."""

    def __init__(
        self,
        db_path: str | Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Open the ledger and create its table if absent.

        Args:
            db_path: SQLite file holding the ledger table (may be the archive).
            clock: Source of "now" in unix seconds (injectable for tests).
        """
        self.db_path = str(db_path)
        self._clock = clock
        try:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            with self._conn:
                self._conn.execute(_CREATE_TABLE_SQL)
        except sqlite3.Error as e:
            raise LedgerError(f"Unable to open ledger at {self.db_path}: {e}") from e
        log_with_context(logging.DEBUG, f"Ledger ready at {self.db_path}")

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> MigrationLedger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _now(self) -> int:
        return int(self._clock())

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run a write statement and commit it."""
        try:
            with self._conn:
                return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise LedgerError(f"Ledger write failed: {e}") from e

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise LedgerError(f"Ledger query failed: {e}") from e

    def _query_one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        rows = self._query(sql, params)
        return rows[0] if rows else None

    # -- Writes ---------------------------------------------------------------

    def record_attempt(self, old_id: int) -> None:
        """Ensure an entry exists for *old_id* and refresh its timestamp.

        New entries start with ``retries=0`` and no new id.  Existing entries
        keep their new id and retry count; only ``UpdatedAt`` advances.
        """
        self._execute(
            f"""
            INSERT INTO {LEDGER_TABLE} (OldID, Retries, UpdatedAt)
            VALUES (?, 0, ?)
            ON CONFLICT(OldID) DO UPDATE SET UpdatedAt = excluded.UpdatedAt
            """,
            (old_id, self._now()),
        )

    def record_success(self, old_id: int, new_id: int) -> None:
        """Set the new id for *old_id*; the mapping is written exactly once.

        Raises:
            LedgerEntryNotFoundError: If ``record_attempt`` was never called.
            LedgerConflictError: If the entry is already mapped elsewhere.
        """
        cursor = self._execute(
            f"""
            UPDATE {LEDGER_TABLE}
            SET NewID = ?, UpdatedAt = ?
            WHERE OldID = ? AND NewID IS NULL
            """,
            (new_id, self._now(), old_id),
        )
        if cursor.rowcount:
            return

        entry = self.get_entry(old_id)
        if entry is None:
            raise LedgerEntryNotFoundError(old_id)
        if entry.new_id != new_id:
            raise LedgerConflictError(
                f"Message {old_id} is already mapped to {entry.new_id}, refusing {new_id}"
            )

    def record_failure(self, old_id: int) -> None:
        """Increment the retry count of a pending entry.

        Migrated entries are left untouched.

        Raises:
            LedgerEntryNotFoundError: If ``record_attempt`` was never called.
        """
        cursor = self._execute(
            f"""
            UPDATE {LEDGER_TABLE}
            SET Retries = Retries + 1, UpdatedAt = ?
            WHERE OldID = ? AND NewID IS NULL
            """,
            (self._now(), old_id),
        )
        if cursor.rowcount:
            return

        entry = self.get_entry(old_id)
        if entry is None:
            raise LedgerEntryNotFoundError(old_id)
        log_with_context(
            logging.DEBUG,
            f"Ignoring failure for already migrated message {old_id}",
            old_id=old_id,
            new_id=entry.new_id,
        )

    # -- Reads ----------------------------------------------------------------

    def resolve_new_id(self, old_id: int) -> int | None:
        """Return the new id *old_id* was migrated to, if any."""
        row = self._query_one(
            f"SELECT NewID FROM {LEDGER_TABLE} WHERE OldID = ?", (old_id,)
        )
        if row is None:
            return None
        return row["NewID"]

    def next_pending_id(self, retry_ceiling: int) -> int | None:
        """Return the stalest unmigrated entry still under the retry ceiling."""
        row = self._query_one(
            f"""
            SELECT OldID
            FROM {LEDGER_TABLE}
            WHERE NewID IS NULL
            AND Retries <= ?
            ORDER BY UpdatedAt ASC, Retries ASC, OldID ASC
            LIMIT 1
            """,
            (retry_ceiling,),
        )
        if row is None:
            return None
        return row["OldID"]

    def get_entry(self, old_id: int) -> LedgerEntry | None:
        row = self._query_one(
            f"""
            SELECT OldID, NewID, Retries, UpdatedAt
            FROM {LEDGER_TABLE}
            WHERE OldID = ?
            """,
            (old_id,),
        )
        if row is None:
            return None
        return _entry_from_row(row)

    def contains(self, old_id: int) -> bool:
        """True if *old_id* was ever attempted."""
        row = self._query_one(
            f"SELECT 1 FROM {LEDGER_TABLE} WHERE OldID = ?", (old_id,)
        )
        return row is not None

    def summary(self, retry_ceiling: int) -> LedgerSummary:
        row = self._query_one(
            f"""
            SELECT COUNT(*) AS total,
                   COUNT(NewID) AS migrated,
                   SUM(CASE WHEN NewID IS NULL AND Retries <= ? THEN 1 ELSE 0 END) AS pending,
                   SUM(CASE WHEN NewID IS NULL AND Retries > ? THEN 1 ELSE 0 END) AS failed
            FROM {LEDGER_TABLE}
            """,
            (retry_ceiling, retry_ceiling),
        )
        assert row is not None  # aggregate queries always yield a row
        return LedgerSummary(
            total=row["total"],
            migrated=row["migrated"],
            pending=row["pending"] or 0,
            permanently_failed=row["failed"] or 0,
        )

    def permanently_failed(self, retry_ceiling: int) -> list[LedgerEntry]:
        """Entries excluded from selection for exceeding the retry ceiling."""
        rows = self._query(
            f"""
            SELECT OldID, NewID, Retries, UpdatedAt
            FROM {LEDGER_TABLE}
            WHERE NewID IS NULL
            AND Retries > ?
            ORDER BY OldID ASC
            """,
            (retry_ceiling,),
        )
        return [_entry_from_row(row) for row in rows]


def _entry_from_row(row: sqlite3.Row) -> LedgerEntry:
    return LedgerEntry(
        old_id=row["OldID"],
        new_id=row["NewID"],
        retries=row["Retries"] or 0,
        updated_at=row["UpdatedAt"] or 0,
    )
