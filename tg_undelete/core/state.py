"""
Run state container for the Telegram undelete migration.

Mutable per-run tracking, kept apart from the immutable configuration
(MigrationContext) and from the durable ledger.  Nothing here is persisted;
a restarted run recomputes everything it needs from the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tg_undelete.types import ItemOutcome, MigrationSummary


def _default_migration_summary() -> MigrationSummary:
    """Return a fresh MigrationSummary with zeroed counters."""
    return MigrationSummary(
        processed=0,
        published=0,
        failed=0,
        permanently_failed=0,
        orphaned_replies=0,
    )


@dataclass
class MigrationState:
    """Holds the counters and notable ids of one engine run."""

    summary: MigrationSummary = field(default_factory=_default_migration_summary)
    # old id -> new id for everything published during this run
    published_ids: dict[int, int] = field(default_factory=dict)
    permanently_failed_ids: list[int] = field(default_factory=list)
    # old ids sent without reply linkage because the target had no new id
    orphaned_reply_ids: list[int] = field(default_factory=list)
    last_old_id: int | None = None

    def record(self, old_id: int, outcome: ItemOutcome, new_id: int | None = None) -> None:
        """Account for the outcome of one processed message."""
        self.last_old_id = old_id
        if outcome is ItemOutcome.ALREADY_MIGRATED:
            return

        self.summary["processed"] += 1
        if outcome is ItemOutcome.PUBLISHED:
            self.summary["published"] += 1
            if new_id is not None:
                self.published_ids[old_id] = new_id
            return

        self.summary["failed"] += 1
        if outcome is ItemOutcome.PERMANENTLY_FAILED:
            self.summary["permanently_failed"] += 1
            self.permanently_failed_ids.append(old_id)

    def record_orphaned_reply(self, old_id: int) -> None:
        self.summary["orphaned_replies"] += 1
        self.orphaned_reply_ids.append(old_id)

    @property
    def has_failures(self) -> bool:
        return self.summary["failed"] > 0

    @property
    def success_rate(self) -> float:
        """Percentage of processed messages that were published.

        Returns 100.0 if nothing was processed.
        """
        processed = self.summary["processed"]
        if processed == 0:
            return 100.0
        return (self.summary["published"] / processed) * 100.0
