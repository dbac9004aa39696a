"""The precondition gate and error handling wrapped around every command.

Each command body runs through `Shell.execute`, which:
1. Checks the command's preconditions (target, login, org/space)
2. Runs the command, logging in again and retrying once the first time in
   the process that the remote denies authorization
3. Turns errors into messages and exit statuses
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, TypeVar

import typer

from cloudctl.auth import AuthFlow
from cloudctl.cli._console import Console
from cloudctl.cli._crash import describe_error, write_crash_report
from cloudctl.client import ClientFactory, is_v2
from cloudctl.config import ConfigStore
from cloudctl.exceptions import (
    AuthorizationDenied,
    NoOrganizationSelectedError,
    NoSpaceSelectedError,
    NotLoggedInError,
    NoTargetError,
    UserError,
)
from cloudctl.prompt import Prompter

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERRUPTED_EXIT_CODE = 130


class Gate(IntEnum):
    """How many preconditions a command needs. Each level includes the previous."""

    NONE = 0
    TARGET = 1
    LOGIN = 2
    CONTEXT = 3


@dataclass
class GlobalOptions:
    """Global command-line flags."""

    force: bool = False
    quiet: bool = False
    color: bool = True
    proxy: str | None = None
    trace: bool = False


class AuthRetryGuard:
    """Allows a single automatic re-login per process."""

    def __init__(self) -> None:
        self.used = False

    def claim(self) -> bool:
        """Use up the re-login. Returns False if it was already used."""
        if self.used:
            return False
        self.used = True
        return True


class Shell:
    """Runs commands behind the precondition gate.

    Args:
        store: Config store.
        factory: Owner of the live client.
        console: Output.
        prompter: Interactive prompts.
        options: Global flags.
        guard: Re-login guard, one per process.
    """

    def __init__(
        self,
        store: ConfigStore,
        factory: ClientFactory,
        console: Console,
        prompter: Prompter,
        options: GlobalOptions,
        guard: AuthRetryGuard | None = None,
    ) -> None:
        self.store = store
        self.factory = factory
        self.console = console
        self.prompter = prompter
        self.options = options
        self.guard = guard or AuthRetryGuard()

    @property
    def force(self) -> bool:
        return self.options.force

    @property
    def quiet(self) -> bool:
        return self.options.quiet

    @property
    def auth(self) -> AuthFlow:
        return AuthFlow(self.factory, self.prompter, interactive=not self.force)

    # --- Preconditions ---

    def check_target(self) -> None:
        if self.store.read_target() is None:
            raise NoTargetError()

    def check_logged_in(self) -> None:
        if self.factory.get_client().logged_in:
            return
        if self.force:
            raise NotLoggedInError()

        self.console.warn("Please log in with 'cloudctl login'.")
        self.console.line()
        if self.auth.login() is None:
            raise NotLoggedInError()

    def check_context(self) -> None:
        client = self.factory.get_client()
        if not is_v2(client):
            return
        if client.current_organization is None:
            raise NoOrganizationSelectedError()
        if client.current_space is None:
            raise NoSpaceSelectedError()

    def precondition(self, gate: Gate) -> None:
        if gate >= Gate.TARGET:
            self.check_target()
        if gate >= Gate.LOGIN:
            self.check_logged_in()
        if gate >= Gate.CONTEXT:
            self.check_context()

    # --- Execution ---

    def _attempt(self, command: Callable[[], T], gate: Gate) -> T:
        self.precondition(gate)
        return command()

    def run(self, command: Callable[[], T], gate: Gate = Gate.CONTEXT) -> T:
        """Run a command, re-logging in and retrying once on the first denial."""
        try:
            return self._attempt(command, gate)
        except AuthorizationDenied as e:
            if not self.guard.claim():
                raise
            logger.debug(f"Authorization denied, logging in again: {e}")

        self.console.line()
        self.console.warn("Not authenticated! Try logging in:")
        self.factory.invalidate()
        self.auth.login()

        return self._attempt(command, gate)

    def fail(self, message: str, status: int = 1) -> typer.Exit:
        self.console.err(message)
        return typer.Exit(status)

    def execute(self, command: Callable[[], T], gate: Gate = Gate.CONTEXT) -> T:
        """Run a command and turn its errors into messages and exit statuses.

        Raises:
            typer.Exit: For every failure.
        """
        try:
            return self.run(command, gate)
        except typer.Exit:
            raise
        except (KeyboardInterrupt, typer.Abort):
            raise typer.Exit(INTERRUPTED_EXIT_CODE)
        except UserError as e:
            raise self.fail(str(e))
        except AuthorizationDenied as e:
            raise self.fail(f"Denied: {e.description}")
        except Exception as e:
            logger.debug("Unexpected error", exc_info=True)
            try:
                path = write_crash_report(e, self.store.crash_path)
            except OSError as write_error:
                logger.debug(f"Could not write crash report: {write_error}")
                raise self.fail(describe_error(e))
            raise self.fail(
                f"{describe_error(e)}\nFor more information, see {path}"
            )
