"""Shared type definitions for the Telegram undelete migration tool.

Archive-side records (``HistoricalMessage``, ``MediaRef``) are immutable
snapshots produced by the message reader.  ``LedgerEntry`` mirrors one row of
the migration ledger.  The outbound payload types form a closed union that the
publisher renders a message into before handing it to the channel API.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TypedDict, Union

# ---------------------------------------------------------------------------
# Archive types
# ---------------------------------------------------------------------------


class MediaKind(str, Enum):
    """Kind of attachment recorded in the archive ``Media.Type`` column."""

    PHOTO = "photo"
    DOCUMENT = "document"
    WEBPAGE = "webpage"
    GEO = "geo"
    GEOLIVE = "geolive"
    CONTACT = "contact"
    VENUE = "venue"

    @property
    def carries_meaning(self) -> bool:
        """True for kinds whose caption needs a ``(kind)`` marker."""
        return self in (
            MediaKind.GEO,
            MediaKind.GEOLIVE,
            MediaKind.CONTACT,
            MediaKind.VENUE,
        )

    @property
    def needs_attachment(self) -> bool:
        """True for kinds published as a file upload."""
        return self in (MediaKind.PHOTO, MediaKind.DOCUMENT)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MediaRef:
    """A media row attached to an archived message."""

    id: int
    kind: MediaKind
    mime_type: str | None = None
    display_name: str | None = None
    extra: str = ""


@dataclass(frozen=True)
class HistoricalMessage:
    """Immutable snapshot of an archived message."""

    id: int
    author_name: str
    author_id: int | None
    timestamp: datetime
    text: str = ""
    reply_to_id: int | None = None
    media: MediaRef | None = None


@dataclass(frozen=True)
class ArchiveCursor:
    """Position in the archive's chronological (date, id) order.

    Undated messages sort before every dated one.
    """

    id: int
    date: int | None


# ---------------------------------------------------------------------------
# Ledger types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerEntry:
    """One row of the old-id to new-id migration ledger."""

    old_id: int
    new_id: int | None
    retries: int
    updated_at: int

    @property
    def is_migrated(self) -> bool:
        return self.new_id is not None

    def is_permanently_failed(self, retry_ceiling: int) -> bool:
        """True once the entry can no longer be selected for retry."""
        return self.new_id is None and self.retries > retry_ceiling


class LedgerSummary(TypedDict):
    """Aggregate ledger counters."""

    total: int
    migrated: int
    pending: int
    permanently_failed: int


# ---------------------------------------------------------------------------
# Outbound payload types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MediaResource:
    """A local file resolved for a media reference."""

    path: Path
    file_name: str
    extension: str
    size: int
    mime_type: str | None = None


@dataclass(frozen=True)
class TextPayload:
    """Plain text message."""

    text: str


@dataclass(frozen=True)
class PhotoPayload:
    """Image attachment with caption."""

    caption: str
    attachment: MediaResource


@dataclass(frozen=True)
class DocumentPayload:
    """Document attachment with caption."""

    caption: str
    attachment: MediaResource


OutboundPayload = Union[TextPayload, PhotoPayload, DocumentPayload]


# ---------------------------------------------------------------------------
# Run tracking types
# ---------------------------------------------------------------------------


class ItemOutcome(str, Enum):
    """Result of processing one archived message."""

    PUBLISHED = "published"
    FAILED = "failed"
    PERMANENTLY_FAILED = "permanently_failed"
    ALREADY_MIGRATED = "already_migrated"


class MigrationSummary(TypedDict):
    """Aggregate counters for one engine run."""

    processed: int
    published: int
    failed: int
    permanently_failed: int
    orphaned_replies: int
