"""
Migration engine for the Telegram undelete migration tool.

Drives the select -> read -> resolve reply -> publish -> record loop until the
work selector runs dry.  Processing is strictly sequential so that a reply is
never published before the message it answers has been recorded.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import requests
from tqdm import tqdm

from tg_undelete.core.ledger import MigrationLedger
from tg_undelete.core.migration_logging import (
    log_migration_failure,
    log_migration_success,
)
from tg_undelete.core.selector import WorkSelector
from tg_undelete.core.state import MigrationState
from tg_undelete.exceptions import ArchiveError, LedgerError, MigrationAbortedError
from tg_undelete.services.archive import MessageReader
from tg_undelete.services.media import MediaResolver
from tg_undelete.services.publisher import PublisherAdapter
from tg_undelete.services.telegram_adapter import TelegramAdapter
from tg_undelete.types import ItemOutcome
from tg_undelete.utils.logging import log_with_context

if TYPE_CHECKING:
    from tg_undelete.core.context import MigrationContext


class MigrationEngine:
    """Republishes archived messages into the channel, resumably."""

    def __init__(
        self,
        ctx: MigrationContext,
        ledger: MigrationLedger,
        reader: MessageReader,
        publisher: PublisherAdapter,
        selector: WorkSelector | None = None,
        show_progress: bool = False,
    ) -> None:
        self.ctx = ctx
        self.ledger = ledger
        self.reader = reader
        self.publisher = publisher
        self.selector = selector or WorkSelector(ledger, reader, ctx.retry_ceiling)
        self.show_progress = show_progress
        self.state = MigrationState()

    def run(self, limit: int | None = None) -> MigrationState:
        """Process messages until there is no work left or *limit* is reached.

        Args:
            limit: Maximum number of messages to process in this run.

        Returns:
            The run state with per-run counters.

        Raises:
            MigrationAbortedError: On archive or ledger errors, which are fatal.
        """
        start = time.time()
        total = self.reader.count_archived()
        already_migrated = self.ledger.summary(self.ctx.retry_ceiling)["migrated"]
        log_with_context(
            logging.INFO,
            f"Starting migration: {already_migrated}/{total} messages already migrated",
            total=total,
            migrated=already_migrated,
        )

        try:
            with tqdm(
                total=total,
                initial=already_migrated,
                desc="Migrating messages",
                unit="msg",
                disable=not self.show_progress,
            ) as pbar:
                while limit is None or self.state.summary["processed"] < limit:
                    outcome = self._step()
                    if outcome is None:
                        log_with_context(
                            logging.INFO, "No pending or vacant messages left"
                        )
                        break
                    if outcome is ItemOutcome.PUBLISHED:
                        pbar.update(1)
        except (MigrationAbortedError, KeyboardInterrupt) as e:
            log_migration_failure(self.state, e, time.time() - start)
            raise

        log_migration_success(self.state, time.time() - start)
        return self.state

    def _step(self) -> ItemOutcome | None:
        old_id = None
        try:
            old_id = self.selector.next()
            if old_id is None:
                return None
            return self.process_message(old_id)
        except (ArchiveError, LedgerError) as e:
            where = f"message {old_id}" if old_id is not None else "work selection"
            raise MigrationAbortedError(f"Migration aborted at {where}: {e}") from e

    def process_message(self, old_id: int) -> ItemOutcome:
        """Run one attempt for the archived message *old_id*.

        The ledger attempt marker is committed before the publish call, and
        the outcome is recorded right after it.

        Raises:
            MessageNotFoundError: If the archive has no such message.
            LedgerError: If the ledger cannot record the attempt or outcome.
        """
        message = self.reader.fetch(old_id)

        entry = self.ledger.get_entry(old_id)
        if entry is not None and entry.is_migrated:
            log_with_context(
                logging.INFO,
                f"Message {old_id} already migrated as {entry.new_id}, skipping",
                old_id=old_id,
                new_id=entry.new_id,
            )
            self.state.record(old_id, ItemOutcome.ALREADY_MIGRATED)
            return ItemOutcome.ALREADY_MIGRATED

        log_with_context(
            logging.INFO,
            f"Processing {message.author_name}/{message.id}",
            old_id=old_id,
        )

        reply_to_new_id = None
        orphaned = False
        if message.reply_to_id is not None:
            reply_to_new_id = self.ledger.resolve_new_id(message.reply_to_id)
            if reply_to_new_id is None:
                log_with_context(
                    logging.INFO,
                    f"Reply target {message.reply_to_id} of message {old_id} is not "
                    "migrated, sending without reply link",
                    old_id=old_id,
                    reply_to_old_id=message.reply_to_id,
                )
                orphaned = True

        self.ledger.record_attempt(old_id)
        new_id = self.publisher.dispatch(message, reply_to_new_id)

        if new_id is not None:
            self.ledger.record_success(old_id, new_id)
            if orphaned:
                self.state.record_orphaned_reply(old_id)
            log_with_context(
                logging.DEBUG,
                f"Message {old_id} migrated as {new_id}",
                old_id=old_id,
                new_id=new_id,
            )
            self.state.record(old_id, ItemOutcome.PUBLISHED, new_id)
            return ItemOutcome.PUBLISHED

        self.ledger.record_failure(old_id)
        entry = self.ledger.get_entry(old_id)
        retries = entry.retries if entry is not None else 0
        ceiling = self.ctx.retry_ceiling

        if entry is not None and entry.is_permanently_failed(ceiling):
            log_with_context(
                logging.ERROR,
                f"Message {old_id} failed {retries} times, giving up on it",
                old_id=old_id,
                retries=retries,
            )
            self.state.record(old_id, ItemOutcome.PERMANENTLY_FAILED)
            return ItemOutcome.PERMANENTLY_FAILED

        log_with_context(
            logging.WARNING,
            f"Failed to process message {old_id} (retry {retries}/{ceiling})",
            old_id=old_id,
            retries=retries,
        )
        self.state.record(old_id, ItemOutcome.FAILED)
        return ItemOutcome.FAILED


@contextmanager
def open_engine(
    ctx: MigrationContext,
    session: requests.Session | None = None,
    show_progress: bool = False,
) -> Iterator[MigrationEngine]:
    """Wire up an engine for *ctx* and close its connections afterwards."""
    config = ctx.config
    owns_session = session is None
    http = session or requests.Session()
    telegram = TelegramAdapter(
        http,
        ctx.chat_id,
        api_base_url=config.api_base_url,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
        send_interval=config.send_interval,
    )
    publisher = PublisherAdapter(ctx, telegram, MediaResolver(ctx.media_dir))

    with MessageReader(ctx.archive_path, tz=ctx.display_timezone) as reader:
        with MigrationLedger(ctx.ledger_path) as ledger:
            try:
                yield MigrationEngine(
                    ctx, ledger, reader, publisher, show_progress=show_progress
                )
            finally:
                if owns_session:
                    http.close()
