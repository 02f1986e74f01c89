"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import datetime
import logging
import os
from pathlib import Path
from typing import Callable, ClassVar

import click

import tg_undelete
from tg_undelete.core.config import MigrationConfig, load_config, parse_bot_spec
from tg_undelete.core.context import MigrationContext, build_context
from tg_undelete.exceptions import (
    ArchiveError,
    LedgerError,
    MigrationAbortedError,
    UndeleteError,
)
from tg_undelete.utils.logging import log_with_context

# ---------------------------------------------------------------------------
# Custom click.Group that defaults to ``migrate``.
# When the first CLI token is a flag rather than a subcommand the group
# prepends ``migrate``, so ``tg-undelete --db export.db ...`` runs a migration.
# ---------------------------------------------------------------------------


class DefaultGroup(click.Group):
    """Click group that defaults to the ``migrate`` subcommand."""

    _GROUP_FLAGS: ClassVar[set[str]] = {"--help", "--version", "-h"}

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0].startswith("-") and args[0] not in self._GROUP_FLAGS:
            args = ["migrate", *args]
        return super().parse_args(ctx, args)


# ---------------------------------------------------------------------------
# Shared option decorators
# ---------------------------------------------------------------------------


def config_options(f: Callable[..., None]) -> Callable[..., None]:
    """Add the config file and logging options."""
    f = click.option(
        "--config",
        default="config.yaml",
        show_default=True,
        help="Path to config YAML",
    )(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    f = click.option(
        "--debug_api",
        is_flag=True,
        default=False,
        help="Log Telegram API requests and responses (tokens are redacted)",
    )(f)
    return f


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Add the options every archive-touching subcommand shares.

    Each one overrides the matching key of the config file.
    """
    f = config_options(f)
    f = click.option("--db", "archive_path", help="Path to the archive SQLite file")(f)
    f = click.option(
        "--ledger",
        "ledger_path",
        help="SQLite file holding the migration ledger (defaults to the archive)",
    )(f)
    f = click.option("--chat_id", type=int, help="Destination channel id")(f)
    f = click.option("--media_dir", help="Root directory of the exported media")(f)
    f = click.option(
        "--bot",
        "bot_specs",
        multiple=True,
        metavar="TOKEN[/USER_ID]",
        help="Bot to publish with; repeat for several. A USER_ID makes the "
        "bot speak for that archive author",
    )(f)
    f = click.option(
        "--retry_ceiling",
        type=click.IntRange(min=0),
        help="Attempts after which a message is given up on",
    )(f)
    return f


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    cls=DefaultGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=tg_undelete.__version__, prog_name="tg-undelete")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Republish a Telegram chat archive into a channel, resumably."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Context construction
# ---------------------------------------------------------------------------


def load_config_from_options(
    config: str,
    archive_path: str | None = None,
    ledger_path: str | None = None,
    chat_id: int | None = None,
    media_dir: str | None = None,
    bot_specs: tuple[str, ...] = (),
    retry_ceiling: int | None = None,
) -> MigrationConfig:
    """Load the config file and apply command-line overrides, unvalidated."""
    return load_config(Path(config)).with_overrides(
        archive_path=archive_path,
        ledger_path=ledger_path,
        chat_id=chat_id,
        media_dir=media_dir,
        bots=[parse_bot_spec(spec) for spec in bot_specs],
        retry_ceiling=retry_ceiling,
    )


def build_context_from_options(
    config: str,
    verbose: bool,
    debug_api: bool,
    archive_path: str | None = None,
    ledger_path: str | None = None,
    chat_id: int | None = None,
    media_dir: str | None = None,
    bot_specs: tuple[str, ...] = (),
    retry_ceiling: int | None = None,
) -> MigrationContext:
    """Load the config file, apply command-line overrides and validate.

    Raises:
        ConfigError: If the merged configuration is unusable.
    """
    cfg = load_config_from_options(
        config,
        archive_path=archive_path,
        ledger_path=ledger_path,
        chat_id=chat_id,
        media_dir=media_dir,
        bot_specs=bot_specs,
        retry_ceiling=retry_ceiling,
    )
    return build_context(cfg, verbose=verbose, debug_api=debug_api)


def create_output_directory() -> str:
    """Create a timestamped run directory for the log file and reports."""
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = os.path.join("migration_logs", f"run_{timestamp}")
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def log_startup_info(ctx: MigrationContext, command: str) -> None:
    log_with_context(logging.INFO, f"Starting {command} with the following parameters:")
    log_with_context(logging.INFO, f"- Archive: {ctx.archive_path}")
    log_with_context(logging.INFO, f"- Ledger: {ctx.ledger_path}")
    log_with_context(logging.INFO, f"- Media directory: {ctx.media_dir}")
    log_with_context(logging.INFO, f"- Chat id: {ctx.chat_id}")
    log_with_context(logging.INFO, f"- Bots: {len(ctx.bots)}")
    log_with_context(logging.INFO, f"- Retry ceiling: {ctx.retry_ceiling}")
    log_with_context(logging.INFO, f"- Verbose logging: {ctx.verbose}")
    log_with_context(logging.INFO, f"- Debug API calls: {ctx.debug_api}")


# ---------------------------------------------------------------------------
# Error handler
# ---------------------------------------------------------------------------


def handle_exception(e: BaseException) -> None:
    """Log *e* in a way that tells the user what to do next."""
    if isinstance(e, MigrationAbortedError):
        log_with_context(logging.ERROR, str(e))
        log_with_context(
            logging.INFO,
            "The ledger holds every completed message. Fix the problem and run "
            "the command again to resume.",
        )
    elif isinstance(e, (ArchiveError, LedgerError)):
        log_with_context(logging.ERROR, str(e))
        log_with_context(
            logging.INFO, "Check that the archive and ledger files are readable."
        )
    elif isinstance(e, UndeleteError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, FileNotFoundError):
        log_with_context(logging.ERROR, f"File not found: {e}")
        log_with_context(
            logging.INFO,
            "Please check that all required files exist and paths are correct.",
        )
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Migration interrupted by user.")
        log_with_context(
            logging.INFO, "Run the command again to resume where it stopped."
        )
    else:
        log_with_context(logging.ERROR, f"Command failed: {e}", exc_info=True)
