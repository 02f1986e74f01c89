"""Work selection: which archived message to attempt next."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tg_undelete.types import ArchiveCursor
from tg_undelete.utils.logging import log_with_context

if TYPE_CHECKING:
    from tg_undelete.core.ledger import MigrationLedger
    from tg_undelete.services.archive import MessageReader


class WorkSelector:
    """Two-level priority queue over ledger and archive state.

    Pending ledger entries (attempted, unmigrated, under the retry ceiling)
    are always drained first.  Only then is the oldest archived message with
    no ledger row at all ("vacant" work) selected.  ``next`` returning None
    means there is nothing left to do.

    The selector keeps a cursor into the archive's chronological order.
    Every archived message before the cursor has a ledger row, which holds
    because the ledger only grows and vacant work is handed out in order.
    """

    def __init__(
        self,
        ledger: MigrationLedger,
        reader: MessageReader,
        retry_ceiling: int,
    ) -> None:
        self._ledger = ledger
        self._reader = reader
        self._retry_ceiling = retry_ceiling
        self._cursor: ArchiveCursor | None = None

    def next(self) -> int | None:
        """Return the next archived message id to attempt, or None when done."""
        pending_id = self._ledger.next_pending_id(self._retry_ceiling)
        if pending_id is not None:
            log_with_context(
                logging.DEBUG,
                f"Selected pending message {pending_id}",
                old_id=pending_id,
                selection="pending",
            )
            return pending_id

        vacant_id = self.next_vacant_id()
        if vacant_id is not None:
            log_with_context(
                logging.DEBUG,
                f"Selected vacant message {vacant_id}",
                old_id=vacant_id,
                selection="vacant",
            )
        return vacant_id

    def next_vacant_id(self) -> int | None:
        """Oldest eligible archived message that was never attempted."""
        candidate = self._reader.next_archived_id_from(self._cursor)
        while candidate is not None and self._ledger.contains(candidate.id):
            self._cursor = candidate
            candidate = self._reader.next_archived_id_from(candidate)
        if candidate is None:
            return None
        return candidate.id
