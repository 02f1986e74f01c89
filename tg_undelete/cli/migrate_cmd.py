"""CLI command handler for the migrate workflow."""

from __future__ import annotations

import logging
import sys

import click

from tg_undelete.cli.common import (
    build_context_from_options,
    cli,
    common_options,
    create_output_directory,
    handle_exception,
    log_startup_info,
)
from tg_undelete.core.engine import open_engine
from tg_undelete.utils.logging import log_with_context, setup_logger

# ---------------------------------------------------------------------------
# migrate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after processing this many messages",
)
@click.option(
    "--progress/--no-progress",
    default=True,
    show_default=True,
    help="Show a progress bar",
)
def migrate(
    config: str,
    verbose: bool,
    debug_api: bool,
    archive_path: str | None,
    ledger_path: str | None,
    chat_id: int | None,
    media_dir: str | None,
    bot_specs: tuple[str, ...],
    retry_ceiling: int | None,
    limit: int | None,
    progress: bool,
) -> None:
    """Republish archived messages until every one is migrated or exhausted.

    Safe to interrupt and rerun: progress is kept in the ledger.
    """
    output_dir = create_output_directory()
    setup_logger(verbose, debug_api, output_dir)
    log_with_context(logging.INFO, f"Output directory: {output_dir}")

    try:
        ctx = build_context_from_options(
            config,
            verbose,
            debug_api,
            archive_path=archive_path,
            ledger_path=ledger_path,
            chat_id=chat_id,
            media_dir=media_dir,
            bot_specs=bot_specs,
            retry_ceiling=retry_ceiling,
        )
        log_startup_info(ctx, "migration")
        if limit is not None:
            log_with_context(logging.INFO, f"- Limit: {limit} messages")

        with open_engine(ctx, show_progress=progress) as engine:
            engine.run(limit=limit)
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        sys.exit(1)
