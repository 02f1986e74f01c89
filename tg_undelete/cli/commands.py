"""Entry point for the tg-undelete CLI.

Importing the subcommand modules registers them on the ``cli`` group.
"""

from __future__ import annotations

from tg_undelete.cli import (  # noqa: F401
    init_config_cmd,
    migrate_cmd,
    send_cmd,
    status_cmd,
    validate_cmd,
)
from tg_undelete.cli.common import cli, handle_exception

__all__ = ["cli", "handle_exception", "main"]


def main() -> None:
    """Main entry point for the tg-undelete CLI."""
    cli()
