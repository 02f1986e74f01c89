"""Unit tests for MigrationContext and build_context()."""

from dataclasses import FrozenInstanceError
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from tests.unit.conftest import AUTHOR_TOKEN, BOT_AUTHOR_ID, DEFAULT_TOKEN
from tg_undelete.core.config import BotConfig, MigrationConfig
from tg_undelete.core.context import build_context, resolve_ledger_paths
from tg_undelete.exceptions import ConfigError


class TestBuildContext:
    """Tests for validation in build_context()."""

    def test_valid_config(self, make_config, archive, media_dir):
        ctx = build_context(make_config(), verbose=True, debug_api=True)

        assert ctx.archive_path == Path(archive.path)
        assert ctx.media_dir == Path(media_dir)
        assert ctx.chat_id == -1001
        assert ctx.verbose is True
        assert ctx.debug_api is True
        assert isinstance(ctx.bots, tuple)

    def test_ledger_defaults_to_archive(self, make_config, archive):
        ctx = build_context(make_config())
        assert ctx.ledger_path == Path(archive.path)

    def test_separate_ledger_path(self, make_config, tmp_path):
        ctx = build_context(make_config(ledger_path=str(tmp_path / "ledger.db")))
        assert ctx.ledger_path == tmp_path / "ledger.db"

    def test_missing_archive_path(self, make_config):
        with pytest.raises(ConfigError, match="No archive database"):
            build_context(make_config(archive_path=None))

    def test_archive_file_must_exist(self, make_config, tmp_path):
        with pytest.raises(ConfigError, match="Archive database not found"):
            build_context(make_config(archive_path=str(tmp_path / "gone.db")))

    def test_missing_chat_id(self, make_config):
        with pytest.raises(ConfigError, match="No destination chat"):
            build_context(make_config(chat_id=None))

    def test_missing_media_dir(self, make_config):
        with pytest.raises(ConfigError, match="No media directory"):
            build_context(make_config(media_dir=None))

    def test_media_dir_must_exist(self, make_config, tmp_path):
        with pytest.raises(ConfigError, match="Media directory not found"):
            build_context(make_config(media_dir=str(tmp_path / "nowhere")))

    def test_requires_a_bot(self, make_config):
        with pytest.raises(ConfigError, match="At least one bot"):
            build_context(make_config(bots=[]))

    def test_requires_a_default_bot(self, make_config):
        with pytest.raises(ConfigError, match="No default bot"):
            build_context(make_config(bots=[BotConfig("1:a", user_id=5)]))

    def test_negative_retry_ceiling(self, make_config):
        with pytest.raises(ConfigError, match="retry_ceiling"):
            build_context(make_config(retry_ceiling=-1))

    def test_unknown_timezone(self, make_config):
        with pytest.raises(ConfigError, match="Unknown timezone"):
            build_context(make_config(timezone="Mars/Olympus_Mons"))


class TestResolveLedgerPaths:
    """Tests for resolve_ledger_paths()."""

    def test_archive_alone_is_enough(self, archive):
        config = MigrationConfig(archive_path=str(archive.path))

        assert resolve_ledger_paths(config) == (Path(archive.path), Path(archive.path))

    def test_missing_archive_still_fails(self, tmp_path):
        with pytest.raises(ConfigError, match="Archive database not found"):
            resolve_ledger_paths(MigrationConfig(archive_path=str(tmp_path / "gone.db")))

    def test_negative_retry_ceiling(self, archive):
        config = MigrationConfig(archive_path=str(archive.path), retry_ceiling=-1)
        with pytest.raises(ConfigError, match="retry_ceiling"):
            resolve_ledger_paths(config)


class TestMigrationContext:
    """Tests for the derived properties of MigrationContext."""

    def test_is_frozen(self, make_context):
        ctx = make_context()
        with pytest.raises(FrozenInstanceError):
            ctx.chat_id = 5  # type: ignore[misc]

    def test_retry_ceiling_comes_from_config(self, make_context):
        assert make_context(retry_ceiling=9).retry_ceiling == 9

    def test_bot_user_ids(self, make_context):
        assert make_context().bot_user_ids == frozenset({BOT_AUTHOR_ID})

    def test_default_bot(self, make_context):
        assert make_context().default_bot.token == DEFAULT_TOKEN

    def test_bot_for_author_picks_author_bot(self, make_context):
        assert make_context().bot_for_author(BOT_AUTHOR_ID).token == AUTHOR_TOKEN

    def test_bot_for_other_author_is_default(self, make_context):
        ctx = make_context()
        assert ctx.bot_for_author(100).token == DEFAULT_TOKEN
        assert ctx.bot_for_author(None).token == DEFAULT_TOKEN

    def test_display_timezone(self, make_context):
        assert make_context(timezone="Asia/Tokyo").display_timezone == ZoneInfo(
            "Asia/Tokyo"
        )

    def test_display_timezone_defaults_to_local(self, make_context):
        assert make_context(timezone=None).display_timezone is None
