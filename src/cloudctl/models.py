"""Data models shared by the config store and the API client capability."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ProtocolVersion(IntEnum):
    """Generation of the remote API spoken by a target.

    V1 is the flat app model, V2 scopes resources under organizations and spaces.
    """

    V1 = 1
    V2 = 2


class SessionRecord(BaseModel):
    """Persisted session for one target.

    Attributes:
        protocol_version: Pinned protocol version, None until first observed.
        token: Opaque credential string (version-specific encoding).
        organization_id: Selected organization (v2 only).
        space_id: Selected space (v2 only).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    protocol_version: ProtocolVersion | None = Field(default=None, alias="version")
    token: str | None = None
    organization_id: str | None = Field(default=None, alias="organization")
    space_id: str | None = Field(default=None, alias="space")

    @classmethod
    def from_document(cls, data: Any) -> SessionRecord:
        """Build a record from one decoded store entry.

        A bare string is a token on its own (legacy token file).
        """
        if data is None:
            return cls()
        if isinstance(data, str):
            return cls(token=data)
        return cls.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        """Serialize using the on-disk keys, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


SessionStore = dict[str, SessionRecord]


# --- Remote resources ---


class User(BaseModel):
    id: str
    email: str | None = None


class Organization(BaseModel):
    id: str
    name: str
    users: list[User] = Field(default_factory=list)

    def has_user(self, user: User) -> bool:
        return any(u.id == user.id for u in self.users)


class Space(BaseModel):
    id: str
    name: str
    organization_id: str
    developers: list[User] = Field(default_factory=list)

    def has_developer(self, user: User) -> bool:
        return any(u.id == user.id for u in self.developers)


class LoginPrompt(BaseModel):
    """One credential field a target asks for at login.

    Attributes:
        field: Credential key passed to `login` (e.g. "username").
        kind: "password" fields are read without echo and forgotten on failure.
        label: Text shown to the user.
    """

    field: str
    kind: Literal["text", "password"] = "text"
    label: str = ""

    @property
    def secret(self) -> bool:
        return self.kind == "password"

    @property
    def display_label(self) -> str:
        return self.label or self.field.replace("_", " ").capitalize()
