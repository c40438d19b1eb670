"""Asking the user for values a store cannot resolve on its own."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

import click
from rich.console import Console

from .errors import PromptRequiredError


@dataclass
class PromptOptions:
    """How to ask for one value."""

    description: str = ""
    default_value: str = ""
    hide_input: bool = False


def _click_ask(label: str, default: Optional[str], hide_input: bool) -> str:
    return click.prompt(
        label,
        default=default,
        hide_input=hide_input,
        show_default=not hide_input,
    )


@dataclass
class UserIO:
    """Where prompts are written and answers come from.

    ``ask`` receives the label, the default (or None) and whether the
    input should be hidden, and returns the answer.
    """

    console: Console = field(default_factory=Console)
    interactive: bool = True
    ask: Callable[[str, Optional[str], bool], str] = _click_ask


def get_val_from_user(name: str, options: PromptOptions, io: UserIO) -> str:
    """Ask the user for ``name``.

    Non-interactive runs answer with the default value.

    Raises:
        PromptRequiredError: When not interactive and there is no default.
    """
    if not io.interactive:
        if options.default_value:
            return options.default_value
        raise PromptRequiredError(
            f"{name} is required but prompting is disabled"
        )

    if options.description:
        io.console.print(f"\n[dim]{options.description}[/]")

    answer = io.ask(name, options.default_value or None, options.hide_input)
    return (answer or "").strip()
