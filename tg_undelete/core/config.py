"""
Configuration module for the Telegram undelete migration tool.

This module provides functions for loading configuration settings from YAML
files, merging command-line overrides, parsing bot identities, and creating a
default configuration file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from tg_undelete.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_CEILING,
    DEFAULT_RETRY_DELAY,
    OVERSIZED_FILE_BYTES,
    TELEGRAM_API_BASE_URL,
)
from tg_undelete.exceptions import ConfigError
from tg_undelete.utils.logging import log_with_context


@dataclass(frozen=True)
class BotConfig:
    """A bot that can publish into the channel.

    A bot with a ``user_id`` stands in for that archive author: messages the
    author wrote are sent with this bot and without an author prefix.  A bot
    without ``user_id`` is a default sender for everyone else.
    """

    token: str
    user_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BotConfig:
        token = data.get("token")
        if not token:
            raise ConfigError(f"Bot entry is missing a token: {data!r}")
        user_id = data.get("user_id")
        try:
            return cls(token=str(token), user_id=int(user_id) if user_id is not None else None)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Bot user_id is not an integer: {user_id!r}") from e


def parse_bot_spec(spec: str) -> BotConfig:
    """Parse a ``TOKEN[/USER_ID]`` command-line bot option.

    Args:
        spec: e.g. ``"123:abcde/100000"`` or ``"789:klmno"``

    Returns:
        The parsed BotConfig
    """
    token, sep, user_id = spec.partition("/")
    if not token:
        raise ConfigError(f"Invalid --bot value: {spec!r}")
    if not sep:
        return BotConfig(token=token)
    try:
        return BotConfig(token=token, user_id=int(user_id))
    except ValueError as e:
        raise ConfigError(f"Bot user id is not an integer in {spec!r}") from e


@dataclass
class MigrationConfig:
    """Typed configuration for the migration tool."""

    # Archive and destination
    archive_path: str | None = None
    ledger_path: str | None = None
    chat_id: int | None = None
    media_dir: str | None = None
    bots: list[BotConfig] = field(default_factory=list)

    # Ledger retry bookkeeping
    retry_ceiling: int = DEFAULT_RETRY_CEILING

    # HTTP retry
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    send_interval: float = 0.0

    # Rendering
    timezone: str | None = None
    oversized_file_bytes: int = OVERSIZED_FILE_BYTES

    api_base_url: str = TELEGRAM_API_BASE_URL

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        """Create a MigrationConfig from a raw config dictionary."""
        bots = [BotConfig.from_dict(entry) for entry in data.get("bots") or []]
        chat_id = data.get("chat_id")
        try:
            return cls(
                archive_path=data.get("archive_path"),
                ledger_path=data.get("ledger_path"),
                chat_id=int(chat_id) if chat_id is not None else None,
                media_dir=data.get("media_dir"),
                bots=bots,
                retry_ceiling=int(data.get("retry_ceiling", DEFAULT_RETRY_CEILING)),
                max_retries=int(data.get("max_retries", DEFAULT_MAX_RETRIES)),
                retry_delay=float(data.get("retry_delay", DEFAULT_RETRY_DELAY)),
                request_timeout=float(
                    data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
                ),
                send_interval=float(data.get("send_interval", 0.0)),
                timezone=data.get("timezone"),
                oversized_file_bytes=int(
                    data.get("oversized_file_bytes", OVERSIZED_FILE_BYTES)
                ),
                api_base_url=data.get("api_base_url", TELEGRAM_API_BASE_URL),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

    def with_overrides(
        self,
        archive_path: str | None = None,
        ledger_path: str | None = None,
        chat_id: int | None = None,
        media_dir: str | None = None,
        bots: list[BotConfig] | None = None,
        retry_ceiling: int | None = None,
    ) -> MigrationConfig:
        """Return a copy with command-line values taking precedence."""
        overrides: dict[str, Any] = {
            "archive_path": archive_path,
            "ledger_path": ledger_path,
            "chat_id": chat_id,
            "media_dir": media_dir,
            "bots": bots or None,
            "retry_ceiling": retry_ceiling,
        }
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(config_path: Path) -> MigrationConfig:
    """
    Load configuration from YAML file and apply default values.

    If the file doesn't exist or can't be parsed, a warning is logged and
    default settings are used.

    Args:
        config_path: Path to the config YAML file

    Returns:
        MigrationConfig with all necessary defaults applied
    """
    raw: dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded_config = yaml.safe_load(f)
                # Handle None result from empty file
                if loaded_config is not None:
                    raw = loaded_config
            log_with_context(logging.INFO, f"Loaded configuration from {config_path}")
        except (yaml.YAMLError, OSError) as e:
            log_with_context(
                logging.WARNING, f"Failed to load config file {config_path}: {e}"
            )
    else:
        log_with_context(
            logging.WARNING,
            f"Config file {config_path} not found, using default settings",
        )

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    return MigrationConfig.from_dict(raw)


def create_default_config(output_path: Path) -> bool:
    """
    Create a default configuration file with example settings.

    The function will not overwrite an existing configuration file.

    Args:
        output_path: Path where the default config should be saved

    Returns:
        True if the config file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {output_path} already exists, not overwriting",
        )
        return False

    default_config = {
        "archive_path": "telegram_export/export.db",
        "media_dir": "telegram_export/usermedia",
        "chat_id": -1001234567890,
        "bots": [
            {"token": "123456:DEFAULT-BOT-TOKEN"},
            # A bot that speaks for the archive author with user id 100000
            {"token": "654321:AUTHOR-BOT-TOKEN", "user_id": 100000},
        ],
        "retry_ceiling": DEFAULT_RETRY_CEILING,
        "max_retries": DEFAULT_MAX_RETRIES,
        "retry_delay": DEFAULT_RETRY_DELAY,
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        "send_interval": 3,
    }

    try:
        with open(output_path, "w") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        log_with_context(logging.INFO, f"Created default config file at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default config file: {e}")
        return False
