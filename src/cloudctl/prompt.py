"""The interactive-prompt capability used by the login and selection flows."""

import typing


class Prompter(typing.Protocol):
    """Collects input from, and reports progress to, the user."""

    def ask(self, label: str, secret: bool = False) -> str:
        """Ask for a value. Secret values are read without echo."""
        ...

    def choose(self, label: str, choices: list[str]) -> str:
        """Ask the user to pick one of `choices` and return the answer as typed
        (or the chosen entry when picked by number)."""
        ...

    def say(self, message: str) -> None:
        """Show an informational line."""
        ...

    def warn(self, message: str) -> None:
        """Show a warning line."""
        ...
