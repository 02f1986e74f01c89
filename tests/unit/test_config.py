"""Unit tests for the config module."""

from pathlib import Path

import pytest
import yaml

from tg_undelete.core.config import (
    BotConfig,
    MigrationConfig,
    create_default_config,
    load_config,
    parse_bot_spec,
)
from tg_undelete.exceptions import ConfigError


def test_load_config_with_empty_file(tmp_path):
    """An empty file yields the defaults."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")

    config = load_config(config_file)

    assert config.archive_path is None
    assert config.chat_id is None
    assert config.bots == []
    assert config.retry_ceiling == 4
    assert config.max_retries == 3
    assert config.retry_delay == 2
    assert config.request_timeout == 60
    assert config.send_interval == 0.0
    assert config.oversized_file_bytes == 50 * 1024 * 1024
    assert config.api_base_url == "https://api.telegram.org"


def test_load_config_with_values(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_data = {
        "archive_path": "export/export.db",
        "ledger_path": "ledger.db",
        "media_dir": "export/usermedia",
        "chat_id": "-1009",
        "bots": [{"token": "1:a"}, {"token": "2:b", "user_id": 42}],
        "retry_ceiling": 7,
        "send_interval": 3,
        "timezone": "Europe/Berlin",
    }
    config_file.write_text(yaml.dump(config_data))

    config = load_config(config_file)

    assert config.archive_path == "export/export.db"
    assert config.ledger_path == "ledger.db"
    assert config.chat_id == -1009
    assert config.bots == [BotConfig("1:a"), BotConfig("2:b", user_id=42)]
    assert config.retry_ceiling == 7
    assert config.send_interval == 3.0
    assert config.timezone == "Europe/Berlin"


def test_load_config_missing_file_uses_defaults(tmp_path):
    config = load_config(tmp_path / "nope.yaml")
    assert config == MigrationConfig()


def test_load_config_invalid_yaml_uses_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("bots: [unclosed")

    assert load_config(config_file) == MigrationConfig()


def test_load_config_non_mapping_raises(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("- just\n- a list\n")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(config_file)


def test_load_config_bad_number_raises(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("retry_ceiling: lots\n")

    with pytest.raises(ConfigError, match="Invalid configuration value"):
        load_config(config_file)


class TestBotConfig:
    """Tests for bot entries and command-line bot options."""

    def test_from_dict_requires_token(self):
        with pytest.raises(ConfigError, match="missing a token"):
            BotConfig.from_dict({"user_id": 5})

    def test_from_dict_rejects_non_integer_user_id(self):
        with pytest.raises(ConfigError, match="not an integer"):
            BotConfig.from_dict({"token": "1:a", "user_id": "bob"})

    def test_parse_spec_without_user_id(self):
        assert parse_bot_spec("789:klmno") == BotConfig(token="789:klmno")

    def test_parse_spec_with_user_id(self):
        assert parse_bot_spec("123:abcde/100000") == BotConfig(
            token="123:abcde", user_id=100000
        )

    @pytest.mark.parametrize("spec", ["", "/100", "123:abc/xyz"])
    def test_parse_invalid_spec(self, spec):
        with pytest.raises(ConfigError):
            parse_bot_spec(spec)


class TestWithOverrides:
    """Tests for MigrationConfig.with_overrides()."""

    def test_command_line_values_win(self):
        base = MigrationConfig(archive_path="a.db", chat_id=-1, retry_ceiling=4)

        merged = base.with_overrides(archive_path="b.db", retry_ceiling=0)

        assert merged.archive_path == "b.db"
        assert merged.retry_ceiling == 0
        assert merged.chat_id == -1
        assert base.archive_path == "a.db"

    def test_unset_values_keep_config(self):
        base = MigrationConfig(
            media_dir="media", bots=[BotConfig("1:a")], ledger_path="l.db"
        )

        merged = base.with_overrides()

        assert merged == base

    def test_empty_bot_list_does_not_clear_bots(self):
        base = MigrationConfig(bots=[BotConfig("1:a")])
        assert base.with_overrides(bots=[]).bots == [BotConfig("1:a")]

    def test_bots_are_replaced(self):
        base = MigrationConfig(bots=[BotConfig("1:a")])
        merged = base.with_overrides(bots=[BotConfig("2:b")])
        assert merged.bots == [BotConfig("2:b")]


class TestCreateDefaultConfig:
    """Tests for create_default_config()."""

    def test_writes_loadable_config(self, tmp_path):
        output = tmp_path / "config.yaml"

        assert create_default_config(output) is True

        config = load_config(output)
        assert config.chat_id == -1001234567890
        assert len(config.bots) == 2
        assert config.bots[0].user_id is None
        assert config.bots[1].user_id == 100000

    def test_does_not_overwrite(self, tmp_path):
        output = tmp_path / "config.yaml"
        output.write_text("chat_id: 1\n")

        assert create_default_config(output) is False
        assert output.read_text() == "chat_id: 1\n"

    def test_unwritable_location_returns_false(self, tmp_path):
        output = tmp_path / "missing-dir" / "config.yaml"
        assert create_default_config(Path(output)) is False
