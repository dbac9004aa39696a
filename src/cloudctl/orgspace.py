"""Organization and space selection for v2 targets.

The resolver decides whether the cached selection in a session record is
still usable for the current user and otherwise drives a new selection. It
only updates the record; persisting it is up to the caller.
"""

from __future__ import annotations

import logging
import typing

from cloudctl.client import V2Client
from cloudctl.exceptions import (
    APIError,
    NoOrganizationsError,
    NoSpacesError,
    SelectionRequiredError,
    UnknownOrganizationError,
    UnknownSpaceError,
)
from cloudctl.models import Organization, SessionRecord, Space, User
from cloudctl.prompt import Prompter

logger = logging.getLogger(__name__)

_Named = typing.TypeVar("_Named", Organization, Space)


class OrgSpaceResolver:
    """Validates and selects the organization/space of a session record.

    Args:
        client: A v2 client, logged in.
        prompter: Used to ask for a name when several candidates exist.
        interactive: If False, ambiguity is an error instead of a prompt.
    """

    def __init__(
        self, client: V2Client, prompter: Prompter, interactive: bool = True
    ) -> None:
        self.client = client
        self.prompter = prompter
        self.interactive = interactive

    def _member_organization(
        self, organization_id: str | None, user: User | None
    ) -> Organization | None:
        if not organization_id or user is None:
            return None
        try:
            org = self.client.organization(organization_id)
        except APIError as e:
            logger.debug(f"Organization {organization_id} lookup failed: {e}")
            return None
        return org if org.has_user(user) else None

    def is_org_valid(self, organization_id: str | None, user: User | None) -> bool:
        """Whether the organization exists and `user` is one of its users."""
        return self._member_organization(organization_id, user) is not None

    def is_space_valid(self, space_id: str | None, user: User | None) -> bool:
        """Whether the space exists and `user` is one of its developers."""
        if not space_id or user is None:
            return False
        try:
            space = self.client.space(space_id)
        except APIError as e:
            logger.debug(f"Space {space_id} lookup failed: {e}")
            return False
        return space.has_developer(user)

    def select_org_and_space(
        self,
        record: SessionRecord,
        organization: str | None = None,
        space: str | None = None,
    ) -> SessionRecord:
        """Make sure `record` holds a usable organization and space.

        An explicitly named organization or space is always re-selected, even
        if the cached one is still valid.

        Args:
            record: Session record to update in place.
            organization: Organization name given on the command line.
            space: Space name given on the command line.

        Returns:
            The updated record (not persisted).

        Raises:
            NoOrganizationsError: If the user can see no organizations.
            NoSpacesError: If the organization has no spaces.
            UnknownOrganizationError: If the named organization does not exist.
            UnknownSpaceError: If the named space does not exist.
            SelectionRequiredError: If a prompt is needed but not allowed.
        """
        user = self.client.current_user()
        previous_org_id = record.organization_id

        org = None
        if organization is None:
            org = self._member_organization(record.organization_id, user)

        if org is None:
            orgs = self.client.organizations()
            if not orgs:
                raise NoOrganizationsError()

            if len(orgs) == 1 and organization is None:
                org = orgs[0]
            else:
                org = self._pick(
                    orgs,
                    organization,
                    "organization",
                    "--org",
                    UnknownOrganizationError,
                )
            record.organization_id = org.id
            logger.debug(f"Selected organization {org.name} ({org.id})")

        # a different organization means the cached space no longer applies
        org_changed = record.organization_id != previous_org_id

        if (
            organization is not None
            or space is not None
            or org_changed
            or not self.is_space_valid(record.space_id, user)
        ):
            spaces = [s for s in self.client.spaces() if s.organization_id == org.id]
            if not spaces:
                raise NoSpacesError(org.name)

            if len(spaces) == 1 and space is None:
                chosen = spaces[0]
            else:
                chosen = self._pick(
                    spaces, space, "space", "--space", UnknownSpaceError
                )
            record.space_id = chosen.id
            logger.debug(f"Selected space {chosen.name} ({chosen.id})")

        return record

    def _pick(
        self,
        candidates: list[_Named],
        name: str | None,
        what: str,
        option: str,
        unknown: typing.Callable[[str], Exception],
    ) -> _Named:
        if name is None:
            if not self.interactive:
                raise SelectionRequiredError(what, option)
            name = self.prompter.choose(
                what.capitalize(), sorted(c.name for c in candidates)
            )

        for candidate in candidates:
            if candidate.name == name:
                return candidate
        raise unknown(name)
