"""CLI command handler for reporting ledger status."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tg_undelete.cli.common import (
    cli,
    common_options,
    handle_exception,
    load_config_from_options,
)
from tg_undelete.cli.report import build_status_report, print_status_summary, write_report
from tg_undelete.core.context import resolve_ledger_paths
from tg_undelete.core.ledger import MigrationLedger
from tg_undelete.services.archive import MessageReader
from tg_undelete.utils.logging import setup_logger

# ---------------------------------------------------------------------------
# status subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--report",
    "report_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the status as YAML to this file",
)
def status(
    config: str,
    verbose: bool,
    debug_api: bool,
    archive_path: str | None,
    ledger_path: str | None,
    chat_id: int | None,
    media_dir: str | None,
    bot_specs: tuple[str, ...],
    retry_ceiling: int | None,
    report_file: Path | None,
) -> None:
    """Show how far the migration has come, without publishing anything.

    Only the archive and ledger settings are required.
    """
    setup_logger(verbose, debug_api)

    try:
        cfg = load_config_from_options(
            config,
            archive_path=archive_path,
            ledger_path=ledger_path,
            chat_id=chat_id,
            media_dir=media_dir,
            bot_specs=bot_specs,
            retry_ceiling=retry_ceiling,
        )
        archive_file, ledger_file = resolve_ledger_paths(cfg)
        with MessageReader(archive_file) as reader, MigrationLedger(
            ledger_file
        ) as ledger:
            report = build_status_report(
                cfg,
                ledger_file,
                ledger.summary(cfg.retry_ceiling),
                reader.count_archived(),
                ledger.permanently_failed(cfg.retry_ceiling),
            )
        print_status_summary(report)
        if report_file is not None:
            write_report(report, report_file)
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        sys.exit(1)
