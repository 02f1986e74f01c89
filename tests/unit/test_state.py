"""Unit tests for the MigrationState dataclass."""

from __future__ import annotations

import pytest

from tg_undelete.core.state import MigrationState, _default_migration_summary
from tg_undelete.types import ItemOutcome


class TestDefaults:
    def test_summary_is_zeroed(self):
        assert _default_migration_summary() == {
            "processed": 0,
            "published": 0,
            "failed": 0,
            "permanently_failed": 0,
            "orphaned_replies": 0,
        }

    def test_instances_do_not_share_state(self):
        a = MigrationState()
        b = MigrationState()
        a.record(1, ItemOutcome.PUBLISHED, 10)
        assert b.summary["processed"] == 0
        assert b.published_ids == {}


class TestRecord:
    """Tests for MigrationState.record()."""

    def test_published(self):
        state = MigrationState()
        state.record(7, ItemOutcome.PUBLISHED, new_id=70)

        assert state.summary["processed"] == 1
        assert state.summary["published"] == 1
        assert state.published_ids == {7: 70}
        assert state.last_old_id == 7

    def test_failed(self):
        state = MigrationState()
        state.record(7, ItemOutcome.FAILED)

        assert state.summary["failed"] == 1
        assert state.summary["permanently_failed"] == 0
        assert state.permanently_failed_ids == []

    def test_permanently_failed_counts_as_failed(self):
        state = MigrationState()
        state.record(7, ItemOutcome.PERMANENTLY_FAILED)

        assert state.summary["failed"] == 1
        assert state.summary["permanently_failed"] == 1
        assert state.permanently_failed_ids == [7]

    def test_already_migrated_is_not_processed(self):
        state = MigrationState()
        state.record(7, ItemOutcome.ALREADY_MIGRATED)

        assert state.summary["processed"] == 0
        assert state.last_old_id == 7

    def test_orphaned_reply(self):
        state = MigrationState()
        state.record_orphaned_reply(8)
        state.record_orphaned_reply(9)

        assert state.summary["orphaned_replies"] == 2
        assert state.orphaned_reply_ids == [8, 9]


class TestDerived:
    def test_no_failures(self):
        state = MigrationState()
        state.record(1, ItemOutcome.PUBLISHED, 2)
        assert not state.has_failures

    def test_has_failures(self):
        state = MigrationState()
        state.record(1, ItemOutcome.FAILED)
        assert state.has_failures

    def test_success_rate_without_work(self):
        assert MigrationState().success_rate == 100.0

    def test_success_rate(self):
        state = MigrationState()
        state.record(1, ItemOutcome.PUBLISHED, 11)
        state.record(2, ItemOutcome.FAILED)
        state.record(2, ItemOutcome.PUBLISHED, 12)
        state.record(3, ItemOutcome.PUBLISHED, 13)

        assert state.success_rate == pytest.approx(75.0)
