"""Catalog commands: list, stores."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ._common import catalog_option, console
from .. import catalog as catalog_io
from ..config import load_settings
from ..errors import CatalogError
from ..stores.registry import default_registry


def register_catalog_commands(main: click.Group) -> None:
    """Register list/stores on the main group."""

    @main.command("list")
    @catalog_option
    def list_files(catalog_path):
        """Show the files tracked by the catalog."""
        settings = load_settings()
        path = Path(catalog_path or settings.catalog_name)
        try:
            clog = catalog_io.read(path)
        except CatalogError as exc:
            console.print(f"[bold red]Bad catalog:[/] {escape(str(exc))}")
            sys.exit(1)

        if not clog.files:
            console.print(f"[yellow]No files tracked in {path}.[/]")
            return

        table = Table(title=str(path))
        table.add_column("File", style="cyan")
        table.add_column("Type")
        table.add_column("Store")
        table.add_column("Keys", justify="right")
        for entry in clog.files.values():
            table.add_row(
                entry.path,
                entry.type.value,
                entry.store or "[dim]unbound[/]",
                str(len(entry.data)),
            )
        console.print(table)

    @main.command("stores")
    def stores():
        """Describe the available remote stores."""
        registry = default_registry(load_settings())
        for name, store in sorted(registry.get().items()):
            console.print(
                Panel(store.description, title=f"[bold]{name}[/]", border_style="cyan")
            )
