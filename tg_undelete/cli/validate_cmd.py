"""CLI command handler for the read-only archive preflight."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from tg_undelete.cli.common import (
    build_context_from_options,
    cli,
    common_options,
    create_output_directory,
    handle_exception,
    log_startup_info,
)
from tg_undelete.cli.report import (
    build_preflight_report,
    print_preflight_summary,
    write_report,
)
from tg_undelete.core.preflight import scan_archive
from tg_undelete.services.archive import MessageReader
from tg_undelete.services.media import MediaResolver
from tg_undelete.utils.logging import log_with_context, setup_logger

# ---------------------------------------------------------------------------
# validate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--progress/--no-progress",
    default=True,
    show_default=True,
    help="Show a progress bar",
)
def validate(
    config: str,
    verbose: bool,
    debug_api: bool,
    archive_path: str | None,
    ledger_path: str | None,
    chat_id: int | None,
    media_dir: str | None,
    bot_specs: tuple[str, ...],
    retry_ceiling: int | None,
    progress: bool,
) -> None:
    """Scan the archive and media tree for problems, without publishing.

    Exits with status 1 when an attachment is missing or a message cannot be
    read; oversized documents are only reported.
    """
    output_dir = create_output_directory()
    setup_logger(verbose, debug_api, output_dir)

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
        log_startup_info(ctx, "preflight")
        with MessageReader(ctx.archive_path, tz=ctx.display_timezone) as reader:
            scan = scan_archive(
                ctx, reader, MediaResolver(ctx.media_dir), show_progress=progress
            )
        report = build_preflight_report(ctx, scan)
        print_preflight_summary(report)
        write_report(report, Path(output_dir) / "preflight_report.yaml")
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        sys.exit(1)

    if scan.has_problems:
        log_with_context(
            logging.WARNING,
            "Preflight found problems. Messages with missing attachments will "
            "fail and be retried until they exceed the retry ceiling.",
        )
        sys.exit(1)
    log_with_context(logging.INFO, "Preflight passed")
