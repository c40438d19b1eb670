"""Shared helpers for the CLI command modules.

Provides the Rich console, the common ``--catalog`` / ``--no-prompt``
options, engine construction and result rendering.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import CONFSYNC_HOME
from ..config import Settings, UserOptions, load_settings
from ..engine import FileResult, SyncEngine
from ..errors import CatalogError
from ..prompt import UserIO
from ..stores.registry import StoreRegistry, default_registry
from ..vaults import ChainVault, EnvVault, FileVault

console = Console()
logger = logging.getLogger("confsync.cli")


def catalog_option(func):
    return click.option(
        "--catalog",
        "catalog_path",
        default=None,
        type=click.Path(dir_okay=False),
        help="Catalog file (default: ./confsync.yml).",
    )(func)


def prompt_option(func):
    return click.option(
        "--no-prompt",
        is_flag=True,
        help="Never ask; fail when a value is missing.",
    )(func)


def build_engine(
    catalog_path: Optional[str],
    no_prompt: bool = False,
    force: bool = False,
    settings: Optional[Settings] = None,
    registry: Optional[StoreRegistry] = None,
) -> SyncEngine:
    """Wire settings, stores, vaults and prompting into a SyncEngine.

    Exits with status 1 when the catalog cannot be read.
    """
    settings = settings or load_settings()
    options = UserOptions(
        prompt_user=not no_prompt,
        default_store=settings.default_store,
        force=force,
    )
    vault = ChainVault(EnvVault(), FileVault(Path(CONFSYNC_HOME)))
    try:
        return SyncEngine(
            Path(catalog_path or settings.catalog_name),
            registry or default_registry(settings),
            vault,
            options,
            UserIO(console=console, interactive=options.prompt_user),
        )
    except CatalogError as exc:
        console.print(f"[bold red]Bad catalog:[/] {escape(str(exc))}")
        sys.exit(1)


def print_results(title: str, results: list[FileResult]) -> None:
    """Render a result table and exit 1 when any file failed."""
    if not results:
        console.print("[yellow]No tracked files.[/]")
        return

    table = Table(title=title, show_lines=False)
    table.add_column("File", style="cyan")
    table.add_column("Store")
    table.add_column("Result")

    for r in results:
        status = f"[green]{r.message}[/]" if r.ok else f"[red]{r.message}[/]"
        table.add_row(r.path, r.store or "[dim]-[/]", status)

    console.print(table)
    if not all(r.ok for r in results):
        sys.exit(1)
