"""
Report generation for ledger status and archive preflight scans.
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml

from tg_undelete.utils.logging import log_with_context

if TYPE_CHECKING:
    from tg_undelete.core.config import MigrationConfig
    from tg_undelete.core.context import MigrationContext
    from tg_undelete.core.preflight import PreflightReport
    from tg_undelete.types import LedgerEntry, LedgerSummary


def _report_header(config: MigrationConfig, ledger_path: Path) -> dict[str, Any]:
    return {
        "timestamp": datetime.datetime.now().isoformat(),
        "archive_path": str(config.archive_path),
        "ledger_path": str(ledger_path),
        "chat_id": config.chat_id,
        "retry_ceiling": config.retry_ceiling,
    }


def build_status_report(
    config: MigrationConfig,
    ledger_path: Path,
    summary: LedgerSummary,
    archived: int,
    failed_entries: list[LedgerEntry],
) -> dict[str, Any]:
    """Assemble the ledger status as a plain dict ready for YAML."""
    vacant = max(archived - summary["total"], 0)
    report: dict[str, Any] = {
        "migration_status": {
            **_report_header(config, ledger_path),
            "archived_messages": archived,
            "migrated": summary["migrated"],
            "pending": summary["pending"],
            "permanently_failed": summary["permanently_failed"],
            "vacant": vacant,
        },
        "permanently_failed": [
            {
                "old_id": entry.old_id,
                "retries": entry.retries,
                "updated_at": entry.updated_at,
            }
            for entry in failed_entries
        ],
        "recommendations": [],
    }

    if failed_entries:
        report["recommendations"].append(
            {
                "type": "permanently_failed",
                "message": f"{len(failed_entries)} messages exceeded the retry ceiling. "
                "Check the logs for the cause, then raise --retry_ceiling or "
                "use the send command to retry them.",
                "severity": "warning",
            }
        )
    if summary["pending"] or vacant:
        report["recommendations"].append(
            {
                "type": "unfinished",
                "message": "Some messages are not migrated yet. Run migrate to continue.",
                "severity": "info",
            }
        )
    return report


def build_preflight_report(
    ctx: MigrationContext, scan: PreflightReport
) -> dict[str, Any]:
    """Assemble a preflight scan as a plain dict ready for YAML."""
    return {
        "preflight": {
            **_report_header(ctx.config, ctx.ledger_path),
            "media_dir": str(ctx.media_dir),
            "archived_messages": scan.total,
            "kinds": dict(sorted(scan.kind_counts.items())),
        },
        "missing_media": list(scan.missing_media_ids),
        "oversized_documents": list(scan.oversized_ids),
        "unreadable_messages": dict(scan.unreadable),
    }


def write_report(report: dict[str, Any], report_path: Path) -> Path:
    """Write *report* as YAML and return its path."""
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(report, f, default_flow_style=False, sort_keys=False)
    log_with_context(logging.INFO, f"Report written to {report_path}")
    return report_path


def print_status_summary(report: dict[str, Any]) -> None:
    """Print the ledger status to the console."""
    status = report["migration_status"]
    click.echo("=" * 60)
    click.echo("MIGRATION STATUS")
    click.echo("=" * 60)
    click.echo(f"Archived messages:  {status['archived_messages']}")
    click.echo(f"Migrated:           {status['migrated']}")
    click.echo(f"Pending retry:      {status['pending']}")
    click.echo(f"Never attempted:    {status['vacant']}")
    click.echo(f"Permanently failed: {status['permanently_failed']}")

    failed = report["permanently_failed"]
    if failed:
        ids = ", ".join(str(entry["old_id"]) for entry in failed)
        click.echo(f"\nGave up on: {ids}")
    for rec in report["recommendations"]:
        click.echo(f"\n{rec['message']}")
    click.echo("=" * 60)


def print_preflight_summary(report: dict[str, Any]) -> None:
    """Print a preflight scan to the console."""
    preflight = report["preflight"]
    click.echo("=" * 60)
    click.echo("ARCHIVE PREFLIGHT")
    click.echo("=" * 60)
    click.echo(f"Archived messages:   {preflight['archived_messages']}")
    for kind, count in preflight["kinds"].items():
        click.echo(f"  {kind}: {count}")
    click.echo(f"Missing attachments: {len(report['missing_media'])}")
    click.echo(f"Oversized documents: {len(report['oversized_documents'])}")
    click.echo(f"Unreadable messages: {len(report['unreadable_messages'])}")
    click.echo("=" * 60)
