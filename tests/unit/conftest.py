"""Unit test configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest

from tg_undelete.core.config import BotConfig, MigrationConfig
from tg_undelete.core.context import MigrationContext, build_context
from tg_undelete.types import HistoricalMessage, MediaKind, MediaRef

DEFAULT_TOKEN = "111:default-token"
AUTHOR_TOKEN = "222:author-token"
BOT_AUTHOR_ID = 900

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, now: float = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 1) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


# ---------------------------------------------------------------------------
# Configuration and context
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_config(archive, media_dir):
    """Factory fixture for a MigrationConfig pointing at the test archive.

    Usage::

        cfg = make_config(retry_ceiling=2)
    """

    def _make(**overrides: Any) -> MigrationConfig:
        values: dict[str, Any] = {
            "archive_path": str(archive.path),
            "chat_id": -1001,
            "media_dir": str(media_dir),
            "bots": [
                BotConfig(token=DEFAULT_TOKEN),
                BotConfig(token=AUTHOR_TOKEN, user_id=BOT_AUTHOR_ID),
            ],
            "timezone": "UTC",
        }
        values.update(overrides)
        return MigrationConfig(**values)

    return _make


@pytest.fixture()
def make_context(make_config):
    """Factory fixture for a validated MigrationContext."""

    def _make(**overrides: Any) -> MigrationContext:
        return build_context(make_config(**overrides))

    return _make


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


def make_message(
    message_id: int = 1,
    author_name: str = "Alice",
    author_id: int | None = 100,
    text: str = "hello",
    reply_to_id: int | None = None,
    media: MediaRef | None = None,
    timestamp: datetime | None = None,
) -> HistoricalMessage:
    """Build a HistoricalMessage with sensible defaults."""
    return HistoricalMessage(
        id=message_id,
        author_name=author_name,
        author_id=author_id,
        timestamp=timestamp or datetime(2019, 3, 1, 12, 0, tzinfo=timezone.utc),
        text=text,
        reply_to_id=reply_to_id,
        media=media,
    )


def make_media(
    kind: MediaKind = MediaKind.DOCUMENT,
    media_id: int = 934,
    display_name: str | None = "myfile.pdf",
    mime_type: str | None = None,
) -> MediaRef:
    return MediaRef(id=media_id, kind=kind, mime_type=mime_type, display_name=display_name)


@pytest.fixture()
def mock_telegram():
    """A TelegramAdapter stand-in whose sends succeed with increasing ids."""
    telegram = MagicMock()
    telegram.send_message.return_value = 501
    telegram.send_photo.return_value = 502
    telegram.send_document.return_value = 503
    return telegram
