"""Shared test fixtures for the tg_undelete test suite."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

# 2019-03-01T12:00:00Z
BASE_DATE = 1551441600

_ARCHIVE_SCHEMA = """
    CREATE TABLE User (
        ID INTEGER PRIMARY KEY,
        FirstName TEXT
    );
    CREATE TABLE Media (
        ID INTEGER PRIMARY KEY,
        Type TEXT,
        MimeType TEXT,
        Name TEXT,
        Extra TEXT
    );
    CREATE TABLE Message (
        ID INTEGER PRIMARY KEY,
        FromID INTEGER,
        ReplyMessageID INTEGER,
        Date INTEGER,
        Message TEXT,
        MediaID INTEGER,
        ServiceAction TEXT
    );
"""


class ArchiveBuilder:
    """Writes a small archive database in the exporter's layout."""

    def __init__(self, path: Path) -> None:
        self.path = path
        with sqlite3.connect(path) as conn:
            conn.executescript(_ARCHIVE_SCHEMA)

    def _insert(self, sql: str, params: tuple) -> None:
        with sqlite3.connect(self.path) as conn:
            conn.execute(sql, params)

    def add_user(self, user_id: int, first_name: str | None) -> ArchiveBuilder:
        self._insert("INSERT INTO User (ID, FirstName) VALUES (?, ?)", (user_id, first_name))
        return self

    def add_media(
        self,
        media_id: int,
        media_type: str,
        mime_type: str | None = None,
        name: str | None = None,
        extra: str | None = None,
    ) -> ArchiveBuilder:
        self._insert(
            "INSERT INTO Media (ID, Type, MimeType, Name, Extra) VALUES (?, ?, ?, ?, ?)",
            (media_id, media_type, mime_type, name, extra),
        )
        return self

    def add_message(
        self,
        message_id: int,
        from_id: int | None = None,
        date: int | None = BASE_DATE,
        text: str | None = "",
        reply_to: int | None = None,
        media_id: int | None = None,
        service_action: str | None = None,
    ) -> ArchiveBuilder:
        self._insert(
            "INSERT INTO Message (ID, FromID, ReplyMessageID, Date, Message, MediaID, "
            "ServiceAction) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (message_id, from_id, reply_to, date, text, media_id, service_action),
        )
        return self


@pytest.fixture()
def archive(tmp_path):
    """Return an empty ArchiveBuilder backed by a temporary file."""
    return ArchiveBuilder(tmp_path / "export.db")


@pytest.fixture()
def media_dir(tmp_path):
    """Return an empty media root with one per-chat subdirectory."""
    root = tmp_path / "usermedia"
    (root / "chat").mkdir(parents=True)
    return root


@pytest.fixture()
def write_media(media_dir):
    """Factory fixture that stores an attachment the way the exporter names it.

    Usage::

        path = write_media("document", "report", 934, "pdf", size=10)
    """

    def _write(
        kind: str, stem: str, media_id: int, ext: str, size: int = 16
    ) -> Path:
        path = media_dir / "chat" / f"{kind}-{stem}.{media_id}.{ext}"
        with open(path, "wb") as fh:
            if size:
                fh.seek(size - 1)
                fh.write(b"\0")
        return path

    return _write
