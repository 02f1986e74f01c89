"""CLI command handler for writing a default config file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tg_undelete.cli.common import cli
from tg_undelete.core.config import create_default_config
from tg_undelete.utils.logging import setup_logger


@cli.command("init-config")
@click.option(
    "--output",
    default="config.yaml",
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the config file",
)
def init_config(output: Path) -> None:
    """Write an example config file. Never overwrites an existing file."""
    setup_logger()
    if not create_default_config(output):
        sys.exit(1)
    click.echo(f"Wrote {output}. Fill in the archive, chat and bot settings.")
