"""Interactive login against the current target.

Login Flow:
1. Ask the client which credential fields it needs
2. Collect the identity field ("username") first, if missing
3. Collect the remaining fields and try to log in, re-asking for the
   password-kind fields after every rejection (interactive mode only)
4. For v2 targets, select an organization and space
5. Persist the session record and invalidate the live client
"""

from __future__ import annotations

import logging

from cloudctl.client import APIClient, ClientFactory, is_v2
from cloudctl.exceptions import AccessDenied
from cloudctl.models import LoginPrompt, SessionRecord
from cloudctl.orgspace import OrgSpaceResolver
from cloudctl.prompt import Prompter

logger = logging.getLogger(__name__)

IDENTITY_FIELD = "username"


class AuthFlow:
    """Drives credential collection and login for the current target.

    Args:
        factory: Client factory (and through it, the config store).
        prompter: Interactive prompt capability.
        interactive: If False (--force), a rejected login aborts at once.
    """

    def __init__(
        self, factory: ClientFactory, prompter: Prompter, interactive: bool = True
    ) -> None:
        self.factory = factory
        self.prompter = prompter
        self.interactive = interactive

    def _ask(self, prompt: LoginPrompt) -> str:
        return self.prompter.ask(prompt.display_label, secret=prompt.secret)

    def login(
        self,
        username: str | None = None,
        password: str | None = None,
        organization: str | None = None,
        space: str | None = None,
    ) -> SessionRecord | None:
        """Log in to the current target and persist the new session.

        Args:
            username: Identity given on the command line.
            password: Password given on the command line.
            organization: Organization name to select (v2 only).
            space: Space name to select (v2 only).

        Returns:
            The saved session record, or None if the login was rejected in
            non-interactive mode or there is no field to ask again.
        """
        target = self.factory.current_target()
        client = self.factory.get_client(target, resolve_context=False)
        try:
            return self._login(client, target, username, password, organization, space)
        finally:
            self.factory.release(client)

    def _login(
        self,
        client: APIClient,
        target: str,
        username: str | None,
        password: str | None,
        organization: str | None,
        space: str | None,
    ) -> SessionRecord | None:
        credentials: dict[str, str] = {}
        if username is not None:
            credentials[IDENTITY_FIELD] = username
        if password is not None:
            credentials["password"] = password

        prompts = list(client.login_prompts())

        # The identity is asked first, some back ends tailor the other prompts
        # on it
        identity = next((p for p in prompts if p.field == IDENTITY_FIELD), None)
        if identity is not None:
            prompts.remove(identity)
            if not credentials.get(IDENTITY_FIELD):
                credentials[IDENTITY_FIELD] = self._ask(identity)

        record = self.factory.store.get_session(target)

        while True:
            if self.interactive:
                for prompt in prompts:
                    if not credentials.get(prompt.field):
                        credentials[prompt.field] = self._ask(prompt)

            try:
                record.token = client.login(credentials)
                break
            except AccessDenied as e:
                logger.debug(f"Login to {target} denied: {e}")
                self.prompter.warn(f"Authenticating... FAILED ({e.description})")
                if not self.interactive or not prompts:
                    return None
                # Without a password-kind field every answer is asked again
                retry = [p for p in prompts if p.secret] or prompts
                for prompt in retry:
                    credentials.pop(prompt.field, None)

        self.prompter.say("Authenticating... OK")

        if is_v2(client):
            resolver = OrgSpaceResolver(client, self.prompter, self.interactive)
            resolver.select_org_and_space(record, organization, space)

        self.factory.store.save_session(target, record)
        self.factory.invalidate()
        logger.debug(f"Saved session for {target}")
        return record

    def logout(self) -> bool:
        """Forget the session of the current target.

        Returns:
            True if a session was removed.
        """
        target = self.factory.current_target()
        removed = self.factory.store.remove_session(target)
        self.factory.invalidate()
        return removed
