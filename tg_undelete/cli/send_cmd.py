"""CLI command handler for republishing a single archived message."""

from __future__ import annotations

import logging
import sys

import click

from tg_undelete.cli.common import (
    build_context_from_options,
    cli,
    common_options,
    handle_exception,
)
from tg_undelete.core.engine import open_engine
from tg_undelete.types import ItemOutcome
from tg_undelete.utils.logging import log_with_context, setup_logger

# ---------------------------------------------------------------------------
# send subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.argument("old_id", type=int)
def send(
    config: str,
    verbose: bool,
    debug_api: bool,
    archive_path: str | None,
    ledger_path: str | None,
    chat_id: int | None,
    media_dir: str | None,
    bot_specs: tuple[str, ...],
    retry_ceiling: int | None,
    old_id: int,
) -> None:
    """Republish the archived message OLD_ID and record the outcome.

    Messages that are already migrated are refused.
    """
    setup_logger(verbose, debug_api)

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
        with open_engine(ctx) as engine:
            outcome = engine.process_message(old_id)
            new_id = engine.ledger.resolve_new_id(old_id)
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        sys.exit(1)

    if outcome is ItemOutcome.PUBLISHED:
        click.echo(f"Message {old_id} published as {new_id}")
        return

    if outcome is ItemOutcome.ALREADY_MIGRATED:
        log_with_context(
            logging.WARNING,
            f"Refusing to resend message {old_id}: already migrated as {new_id}",
            old_id=old_id,
            new_id=new_id,
        )
    sys.exit(1)
