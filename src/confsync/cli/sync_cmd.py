"""Sync commands: track, push, pull, purge."""

from __future__ import annotations

import sys

import click
from rich.markup import escape

from ._common import build_engine, catalog_option, console, print_results, prompt_option
from ..errors import ConfsyncError


def register_sync_commands(main: click.Group) -> None:
    """Register track/push/pull/purge on the main group."""

    @main.command("track")
    @click.argument("path")
    @click.option("--store", default=None, help="Bind the file to this store now.")
    @catalog_option
    def track(path, store, catalog_path):
        """Start tracking PATH in the catalog."""
        engine = build_engine(catalog_path)
        try:
            entry = engine.track(path, store=store)
        except (ConfsyncError, FileNotFoundError) as exc:
            console.print(f"[bold red]Cannot track {escape(path)}:[/] {escape(str(exc))}")
            sys.exit(1)

        console.print(
            f"  Tracking [cyan]{entry.path}[/] ({entry.type.value})"
            + (f" in [bold]{entry.store}[/]" if entry.store else "")
        )

    @main.command("push")
    @click.argument("paths", nargs=-1)
    @catalog_option
    @prompt_option
    def push(paths, catalog_path, no_prompt):
        """Push tracked files (all of them when no PATHS are given)."""
        engine = build_engine(catalog_path, no_prompt=no_prompt)
        print_results("Push", engine.push(list(paths)))

    @main.command("pull")
    @click.argument("paths", nargs=-1)
    @click.option("--force", is_flag=True, help="Overwrite newer local files.")
    @catalog_option
    @prompt_option
    def pull(paths, force, catalog_path, no_prompt):
        """Restore tracked files from their stores."""
        engine = build_engine(catalog_path, no_prompt=no_prompt, force=force)
        print_results("Pull", engine.pull(list(paths)))

    @main.command("purge")
    @click.argument("paths", nargs=-1, required=True)
    @click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
    @catalog_option
    @prompt_option
    def purge(paths, yes, catalog_path, no_prompt):
        """Delete remote contents of PATHS and stop tracking them."""
        if not yes and not no_prompt:
            click.confirm(
                f"Permanently delete remote contents of {', '.join(paths)}?",
                abort=True,
            )
        engine = build_engine(catalog_path, no_prompt=no_prompt)
        print_results("Purge", engine.purge(paths))
