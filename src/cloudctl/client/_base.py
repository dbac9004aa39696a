"""The API client capability consumed by cloudctl.

There are exactly two concrete variants, one per protocol version. Organization
and space scoping only exists on `V2Client`; use `is_v2` to check for it.
"""

from __future__ import annotations

import abc
import typing
from pathlib import Path

from cloudctl.models import LoginPrompt, Organization, ProtocolVersion, Space, User


class APIClient(abc.ABC):
    """A client bound to one target and (optionally) one token.

    Attributes:
        target: Canonical target URL.
        token: Current auth token, replaced by a successful `login`.
        proxy: Identity to act as (admin only).
        trace: Whether requests and responses are echoed.
        log_path: File that request traces are appended to.
    """

    protocol_version: typing.ClassVar[ProtocolVersion]

    def __init__(self, target: str, token: str | None = None) -> None:
        self.target = target
        self.token = token
        self.proxy: str | None = None
        self.trace: bool = False
        self.log_path: Path | None = None

    @property
    def logged_in(self) -> bool:
        return bool(self.token)

    @abc.abstractmethod
    def login_prompts(self) -> list[LoginPrompt]:
        """Credential fields required by `login`, in prompting order."""
        ...

    @abc.abstractmethod
    def login(self, credentials: typing.Mapping[str, str]) -> str:
        """Authenticate and return a fresh token.

        The token is also kept on the client.

        Raises:
            AccessDenied: If the credentials are rejected.
        """
        ...

    @abc.abstractmethod
    def current_user(self) -> User | None:
        """The user the current token belongs to, if logged in."""
        ...

    def close(self) -> None:  # noqa: B027
        """Release any resources held by the client."""
        pass


class V1Client(APIClient):
    """Flat application model, no organization/space scoping."""

    protocol_version = ProtocolVersion.V1


class V2Client(APIClient):
    """Organization/space scoped model.

    Attributes:
        current_organization: Organization new resources are scoped to.
        current_space: Space new resources are scoped to.
    """

    protocol_version = ProtocolVersion.V2

    def __init__(self, target: str, token: str | None = None) -> None:
        super().__init__(target, token)
        self.current_organization: Organization | None = None
        self.current_space: Space | None = None

    @abc.abstractmethod
    def organizations(self) -> list[Organization]:
        """All organizations visible to the current user."""
        ...

    @abc.abstractmethod
    def spaces(self) -> list[Space]:
        """All spaces visible to the current user."""
        ...

    @abc.abstractmethod
    def organization(self, organization_id: str) -> Organization:
        """Look up one organization.

        Raises:
            APIError: If it cannot be fetched (e.g. it was deleted).
        """
        ...

    @abc.abstractmethod
    def space(self, space_id: str) -> Space:
        """Look up one space.

        Raises:
            APIError: If it cannot be fetched (e.g. it was deleted).
        """
        ...


def is_v2(client: APIClient) -> typing.TypeGuard[V2Client]:
    """Whether the client has organization/space scoping."""
    return client.protocol_version is ProtocolVersion.V2


class ClientBuilder(typing.Protocol):
    """Constructs a client for a target.

    With `version=None` the builder detects the version and returns the
    matching concrete variant.
    """

    def __call__(
        self,
        target: str,
        token: str | None,
        version: ProtocolVersion | None,
    ) -> APIClient: ...
