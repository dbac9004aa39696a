"""Terminal output and prompts for the CLI."""

from __future__ import annotations

import logging
from typing import Callable

import typer

from cloudctl.config import default_colors
from cloudctl.exceptions import ConfigError

logger = logging.getLogger(__name__)


class Console:
    """Colored (or quiet, plain) terminal output.

    Args:
        load_colors: Returns the label -> color table, read on first use.
        color: Whether to color output.
        quiet: Simplified output, errors go to stderr uncolored.
    """

    def __init__(
        self,
        load_colors: Callable[[], dict[str, str]],
        color: bool = True,
        quiet: bool = False,
    ) -> None:
        self._load_colors = load_colors
        self._colors: dict[str, str] | None = None
        self.color = color
        self.quiet = quiet

    @property
    def colors(self) -> dict[str, str]:
        """The label -> color table.

        An unreadable color file is reported once, then the built-in colors are
        used.
        """
        if self._colors is None:
            try:
                self._colors = self._load_colors()
            except ConfigError as e:
                logger.debug(f"Ignoring color overrides: {e}")
                self._colors = default_colors()
                typer.echo(str(e), err=True)
        return self._colors

    def c(self, text: str, label: str) -> str:
        """Color `text` with the color configured for `label`."""
        if not self.color:
            return text
        color = self.colors.get(label)
        if color is None:
            return text
        try:
            return typer.style(text, fg=color)
        except TypeError:
            # unknown color name in colors.yml
            return text

    def line(self, message: str = "") -> None:
        typer.echo(message)

    def warn(self, message: str) -> None:
        typer.echo(self.c(message, "warning"))

    def err(self, message: str) -> None:
        if self.quiet:
            typer.echo(message, err=True)
        else:
            typer.echo(self.c(message, "error"), err=True)


class TyperPrompter:
    """Prompter backed by `typer.prompt`."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def ask(self, label: str, secret: bool = False) -> str:
        return typer.prompt(label, hide_input=secret)

    def choose(self, label: str, choices: list[str]) -> str:
        for i, choice in enumerate(choices):
            self.console.line(f"  {i + 1}. {self.console.c(choice, 'name')}")

        answer = typer.prompt(label).strip()
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return choices[int(answer) - 1]
        return answer

    def say(self, message: str) -> None:
        if not self.console.quiet:
            self.console.line(message)

    def warn(self, message: str) -> None:
        self.console.warn(message)
