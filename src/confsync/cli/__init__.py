"""
confsync CLI -- push, pull and purge tracked config files.

Command groups live in their own modules and are attached to the main
Click group through register functions.

Entry point: confsync.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__
from ..config import load_settings


@click.group()
@click.version_option(version=__version__, prog_name="confsync")
@click.option("-v", "--verbose", is_flag=True, help="Log store activity.")
def main(verbose: bool):
    """confsync: keep config and secret files in sync with remote stores."""
    level = "DEBUG" if verbose else load_settings().log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .sync_cmd import register_sync_commands
from .catalog_cmd import register_catalog_commands

register_sync_commands(main)
register_catalog_commands(main)
