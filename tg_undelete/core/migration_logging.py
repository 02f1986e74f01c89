"""
End-of-run logging for the Telegram undelete migration.

Both functions take the run's MigrationState and emit structured records:
statistics are passed as kwargs so they show up as extra fields for log
consumers while staying readable in the console formatter.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING

from tg_undelete.utils.logging import log_with_context

if TYPE_CHECKING:
    from tg_undelete.core.state import MigrationState


def log_migration_success(state: MigrationState, duration: float) -> None:
    """Log the outcome header, run statistics and follow-up guidance.

    Args:
        state: State of the finished run.
        duration: Run duration in seconds.
    """
    summary = state.summary
    duration_minutes = duration / 60

    if summary["processed"] == 0:
        log_with_context(
            logging.INFO,
            "NOTHING TO MIGRATE - ALL ARCHIVED MESSAGES ARE MIGRATED OR EXHAUSTED",
            outcome="no_work",
        )
    elif state.has_failures:
        log_with_context(
            logging.WARNING,
            "MIGRATION RUN FINISHED WITH FAILURES",
            outcome="partial",
        )
    else:
        log_with_context(
            logging.INFO,
            "MIGRATION RUN COMPLETED SUCCESSFULLY",
            outcome="success",
        )

    log_with_context(
        logging.INFO,
        f"Duration: {duration_minutes:.1f} minutes ({duration:.1f} seconds)",
        duration_seconds=duration,
    )
    for stat, label in (
        ("processed", "Messages processed"),
        ("published", "Messages published"),
    ):
        log_with_context(
            logging.INFO, f"{label}: {summary[stat]}", stat=stat, count=summary[stat]
        )

    has_issues = False
    for stat, label in (
        ("failed", "Failed attempts"),
        ("permanently_failed", "Messages past the retry ceiling"),
        ("orphaned_replies", "Replies sent without reply link"),
    ):
        if summary[stat] > 0:
            has_issues = True
            log_with_context(
                logging.WARNING,
                f"{label}: {summary[stat]}",
                stat=stat,
                count=summary[stat],
            )

    if state.permanently_failed_ids:
        log_with_context(
            logging.WARNING,
            "Gave up on messages: "
            + ", ".join(str(i) for i in state.permanently_failed_ids),
        )

    if not has_issues:
        log_with_context(logging.INFO, "No issues detected")
    elif summary["failed"] > summary["permanently_failed"]:
        log_with_context(
            logging.INFO,
            "Run the command again to retry the failed messages.",
        )


def log_migration_failure(
    state: MigrationState, exception: BaseException, duration: float
) -> None:
    """Log an aborted or interrupted run with progress made before it stopped.

    Args:
        state: State of the run at the time it stopped.
        exception: The exception that ended the run.
        duration: Run duration in seconds before it stopped.
    """
    summary = state.summary
    duration_minutes = duration / 60
    is_interrupt = isinstance(exception, KeyboardInterrupt)

    if is_interrupt:
        log_with_context(
            logging.WARNING,
            "MIGRATION INTERRUPTED BY USER",
            outcome="interrupted",
            exception_type="KeyboardInterrupt",
        )
        log_with_context(
            logging.WARNING,
            f"User interruption (Ctrl+C) after"
            f" {duration_minutes:.1f} minutes ({duration:.1f} seconds)",
            duration_seconds=duration,
        )
    else:
        log_with_context(
            logging.ERROR,
            "MIGRATION FAILED",
            outcome="failed",
            exception_type=type(exception).__name__,
            exception_message=str(exception),
        )
        log_with_context(
            logging.ERROR,
            f"Duration before failure:"
            f" {duration_minutes:.1f} minutes ({duration:.1f} seconds)",
            duration_seconds=duration,
        )

    progress_level = logging.WARNING if is_interrupt else logging.ERROR
    log_with_context(
        progress_level,
        f"Progress before stopping: {summary['published']} published,"
        f" {summary['failed']} failed",
        published=summary["published"],
        failed=summary["failed"],
        last_old_id=state.last_old_id,
    )

    if not is_interrupt:
        tb = traceback.format_exc()
        if tb and tb.strip() != "NoneType: None":
            log_with_context(logging.ERROR, f"Traceback:\n{tb}")

    log_with_context(
        progress_level,
        "The ledger is up to date. Run the command again to resume.",
    )
