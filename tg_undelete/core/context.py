"""Immutable migration context.

MigrationContext is a frozen dataclass that holds the validated configuration
for a migration run.  It is created once from ``MigrationConfig`` plus the
command-line flags and passed explicitly to every component constructor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tg_undelete.core.config import BotConfig, MigrationConfig
from tg_undelete.exceptions import ConfigError


@dataclass(frozen=True)
class MigrationContext:
    """Immutable context for a migration run. Created once, shared everywhere."""

    # Paths
    archive_path: Path
    ledger_path: Path
    media_dir: Path

    # Destination
    chat_id: int
    bots: tuple[BotConfig, ...]

    # Mode flags
    verbose: bool
    debug_api: bool

    # Loaded configuration
    config: MigrationConfig

    @property
    def retry_ceiling(self) -> int:
        return self.config.retry_ceiling

    @property
    def bot_user_ids(self) -> frozenset[int]:
        """Archive author ids that are the channel's own bot identities."""
        return frozenset(bot.user_id for bot in self.bots if bot.user_id is not None)

    @property
    def default_bot(self) -> BotConfig:
        for bot in self.bots:
            if bot.user_id is None:
                return bot
        raise ConfigError("No default bot configured (a bot without user id)")

    def bot_for_author(self, author_id: int | None) -> BotConfig:
        """Pick the bot that speaks for *author_id*, else the default bot."""
        if author_id is not None:
            for bot in self.bots:
                if bot.user_id == author_id:
                    return bot
        return self.default_bot

    @property
    def display_timezone(self) -> tzinfo | None:
        """Zone used for rendered timestamps; None means the local zone."""
        if not self.config.timezone:
            return None
        return ZoneInfo(self.config.timezone)


def resolve_ledger_paths(config: MigrationConfig) -> tuple[Path, Path]:
    """Validate the storage settings of *config*.

    Destination, media directory and bot settings are not checked.

    Returns:
        The archive path and the ledger path (the archive itself by default).

    Raises:
        ConfigError: If the archive is missing or the retry ceiling is negative.
    """
    if not config.archive_path:
        raise ConfigError("No archive database configured (--db or archive_path)")
    archive_path = Path(config.archive_path)
    if not archive_path.is_file():
        raise ConfigError(f"Archive database not found: {archive_path}")

    if config.retry_ceiling < 0:
        raise ConfigError(f"retry_ceiling must be non-negative, got {config.retry_ceiling}")

    ledger_path = Path(config.ledger_path) if config.ledger_path else archive_path
    return archive_path, ledger_path


def build_context(
    config: MigrationConfig,
    verbose: bool = False,
    debug_api: bool = False,
) -> MigrationContext:
    """Validate *config* and freeze it into a MigrationContext.

    Raises:
        ConfigError: If a required setting is missing or invalid.
    """
    archive_path, ledger_path = resolve_ledger_paths(config)

    if config.chat_id is None:
        raise ConfigError("No destination chat configured (--chat_id or chat_id)")

    if not config.media_dir:
        raise ConfigError("No media directory configured (--media_dir or media_dir)")
    media_dir = Path(config.media_dir)
    if not media_dir.is_dir():
        raise ConfigError(f"Media directory not found: {media_dir}")

    if not config.bots:
        raise ConfigError("At least one bot must be configured (--bot or bots)")
    if all(bot.user_id is not None for bot in config.bots):
        raise ConfigError("No default bot configured (a bot without user id)")

    if config.timezone:
        try:
            ZoneInfo(config.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Unknown timezone: {config.timezone}") from e

    return MigrationContext(
        archive_path=archive_path,
        ledger_path=ledger_path,
        media_dir=media_dir,
        chat_id=config.chat_id,
        bots=tuple(config.bots),
        verbose=verbose,
        debug_api=debug_api,
        config=config,
    )
