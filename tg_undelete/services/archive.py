"""Read-only access to the Telegram export archive.

The archive is a SQLite snapshot with ``Message``, ``User`` and ``Media``
tables.  Column names are confined to the SQL in this module and to the
``message_from_row`` / ``media_from_row`` mapping functions, which turn a
generic key-value row into ``HistoricalMessage`` / ``MediaRef``.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator, Mapping
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

from tg_undelete.constants import UNKNOWN_AUTHOR
from tg_undelete.exceptions import ArchiveError, MessageNotFoundError
from tg_undelete.types import ArchiveCursor, HistoricalMessage, MediaKind, MediaRef
from tg_undelete.utils.logging import log_with_context

_FETCH_MESSAGE_SQL = """
    SELECT m.ID              AS message_id,
           u.FirstName       AS first_name,
           u.ID              AS user_id,
           m.ReplyMessageID  AS reply_to,
           m.Date            AS date,
           m.Message         AS text,
           p.ID              AS media_id,
           p.Type            AS media_type,
           p.MimeType        AS media_mime_type,
           p.Name            AS media_name,
           p.Extra           AS media_extra
    FROM Message AS m
    LEFT JOIN User  AS u ON m.FromID  = u.ID
    LEFT JOIN Media AS p ON m.MediaID = p.ID
    WHERE m.ID = ?
    AND m.ServiceAction IS NULL
"""

# Eligible messages in chronological order; service records carry no content.
# ORDER BY Date puts undated rows first.
_NEXT_ARCHIVED_SQL = """
    SELECT ID, Date
    FROM Message
    WHERE ServiceAction IS NULL
    AND (Date > ? OR (Date = ? AND ID > ?))
    ORDER BY Date ASC, ID ASC
    LIMIT 1
"""

_NEXT_AFTER_UNDATED_SQL = """
    SELECT ID, Date
    FROM Message
    WHERE ServiceAction IS NULL
    AND (Date IS NOT NULL OR ID > ?)
    ORDER BY Date ASC, ID ASC
    LIMIT 1
"""

_FIRST_ARCHIVED_SQL = """
    SELECT ID, Date
    FROM Message
    WHERE ServiceAction IS NULL
    ORDER BY Date ASC, ID ASC
    LIMIT 1
"""

_COUNT_ARCHIVED_SQL = "SELECT COUNT(*) FROM Message WHERE ServiceAction IS NULL"


def media_from_row(row: Mapping[str, Any]) -> MediaRef | None:
    """Map the ``media_*`` columns of a row to a MediaRef.

    Returns None when the message has no media row.

    Raises:
        ArchiveError: If the media type is missing or unknown.
    """
    media_id = row["media_id"]
    if media_id is None:
        return None

    raw_type = row["media_type"]
    try:
        kind = MediaKind(raw_type)
    except ValueError as e:
        raise ArchiveError(f"Invalid media type {raw_type!r} for media {media_id}") from e

    return MediaRef(
        id=int(media_id),
        kind=kind,
        mime_type=row["media_mime_type"] or None,
        display_name=row["media_name"] or None,
        extra=row["media_extra"] or "",
    )


def message_from_row(
    row: Mapping[str, Any], tz: tzinfo | None = None
) -> HistoricalMessage:
    """Map a joined message row to a HistoricalMessage.

    Args:
        row: Row with the aliases selected by the fetch query.
        tz: Zone for the message timestamp; None means the local zone.
    """
    date = row["date"]
    if date is None:
        raise ArchiveError(f"Message {row['message_id']} has no date")
    timestamp = datetime.fromtimestamp(int(date), tz=timezone.utc).astimezone(tz)

    user_id = row["user_id"]
    return HistoricalMessage(
        id=int(row["message_id"]),
        author_name=row["first_name"] or UNKNOWN_AUTHOR,
        author_id=int(user_id) if user_id is not None else None,
        timestamp=timestamp,
        text=row["text"] or "",
        reply_to_id=row["reply_to"],
        media=media_from_row(row),
    )


class MessageReader:
    """Fetches hydrated messages from the archive database."""

    def __init__(self, db_path: str | Path, tz: tzinfo | None = None) -> None:
        """Open the archive read-only.

        Args:
            db_path: Path to the SQLite archive.
            tz: Zone for message timestamps; None means the local zone.
        """
        self.db_path = Path(db_path)
        self._tz = tz
        try:
            self._conn = sqlite3.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise ArchiveError(f"Unable to open archive {self.db_path}: {e}") from e
        self._conn.row_factory = sqlite3.Row

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> MessageReader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _query_one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        try:
            rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise ArchiveError(f"Archive query failed: {e}") from e
        return rows[0] if rows else None

    def fetch(self, message_id: int) -> HistoricalMessage:
        """Return the fully hydrated message with *message_id*.

        Raises:
            MessageNotFoundError: If no eligible message has this id.
            ArchiveError: If the row cannot be mapped.
        """
        row = self._query_one(_FETCH_MESSAGE_SQL, (message_id,))
        if row is None:
            raise MessageNotFoundError(message_id)
        message = message_from_row(row, self._tz)
        log_with_context(
            logging.DEBUG,
            f"Fetched message {message.id} from {message.author_name}",
            old_id=message.id,
            kind=str(message.media.kind) if message.media else None,
        )
        return message

    def next_archived_id_from(self, cursor: ArchiveCursor | None) -> ArchiveCursor | None:
        """Return the first eligible message after *cursor* in (date, id) order."""
        if cursor is None:
            row = self._query_one(_FIRST_ARCHIVED_SQL)
        elif cursor.date is None:
            row = self._query_one(_NEXT_AFTER_UNDATED_SQL, (cursor.id,))
        else:
            row = self._query_one(
                _NEXT_ARCHIVED_SQL, (cursor.date, cursor.date, cursor.id)
            )
        if row is None:
            return None
        return ArchiveCursor(id=row["ID"], date=row["Date"])

    def iter_archived_ids(self) -> Iterator[int]:
        """Yield every eligible message id in chronological order."""
        cursor = self.next_archived_id_from(None)
        while cursor is not None:
            yield cursor.id
            cursor = self.next_archived_id_from(cursor)

    def count_archived(self) -> int:
        """Number of eligible (non-service) messages in the archive."""
        row = self._query_one(_COUNT_ARCHIVED_SQL)
        return int(row[0]) if row is not None else 0
