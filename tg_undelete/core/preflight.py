"""Read-only preflight scan of an archive before migrating it."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tqdm import tqdm

from tg_undelete.exceptions import ArchiveError, MediaNotFoundError
from tg_undelete.types import MediaKind
from tg_undelete.utils.logging import log_with_context

if TYPE_CHECKING:
    from tg_undelete.core.context import MigrationContext
    from tg_undelete.services.archive import MessageReader
    from tg_undelete.services.media import MediaResolver

TEXT_KIND = "text"


@dataclass
class PreflightReport:
    """What a migration of the archive would run into."""

    total: int = 0
    kind_counts: Counter[str] = field(default_factory=Counter)
    missing_media_ids: list[int] = field(default_factory=list)
    oversized_ids: list[int] = field(default_factory=list)
    unreadable: dict[int, str] = field(default_factory=dict)

    @property
    def has_problems(self) -> bool:
        return bool(self.missing_media_ids or self.unreadable)


def scan_archive(
    ctx: MigrationContext,
    reader: MessageReader,
    resolver: MediaResolver,
    show_progress: bool = False,
) -> PreflightReport:
    """Walk every eligible archived message and check its attachment.

    Nothing is published and the ledger is not touched.  Oversized documents
    are reported but are not problems, since they migrate as a text notice.
    """
    report = PreflightReport()
    ids = reader.iter_archived_ids()
    for old_id in tqdm(
        ids,
        total=reader.count_archived(),
        desc="Scanning archive",
        unit="msg",
        disable=not show_progress,
    ):
        report.total += 1
        try:
            message = reader.fetch(old_id)
        except ArchiveError as e:
            report.unreadable[old_id] = str(e)
            log_with_context(
                logging.WARNING, f"Cannot read message {old_id}: {e}", old_id=old_id
            )
            continue

        media = message.media
        if media is None:
            report.kind_counts[TEXT_KIND] += 1
            continue
        report.kind_counts[media.kind.value] += 1

        if not media.kind.needs_attachment:
            continue
        try:
            resource = resolver.resolve(media)
        except MediaNotFoundError as e:
            report.missing_media_ids.append(old_id)
            log_with_context(
                logging.WARNING,
                f"Attachment missing for message {old_id}: {e}",
                old_id=old_id,
                media_id=media.id,
            )
            continue

        if (
            media.kind is MediaKind.DOCUMENT
            and resource.size >= ctx.config.oversized_file_bytes
        ):
            report.oversized_ids.append(old_id)
            log_with_context(
                logging.INFO,
                f"Message {old_id} has an oversized file ({resource.size} bytes)",
                old_id=old_id,
                size=resource.size,
            )

    return report
