"""cloudctl exceptions.

This module provides exception classes for API, authentication and user errors,
with clear error messages that can be propagated to CLI output.
"""


class CloudCtlError(Exception):
    """Base exception for all cloudctl errors."""

    pass


# --- Remote errors ---


class APIError(CloudCtlError):
    """Error communicating with the cloud platform API.

    Attributes:
        status_code: HTTP status code (if available)
        detail: Error detail message from the API
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        # Build a clear message
        parts = [message]
        if status_code:
            parts.append(f"(HTTP {status_code})")
        if detail:
            parts.append(f": {detail}")
        super().__init__(" ".join(parts))

    @property
    def description(self) -> str:
        """The remote-provided description, falling back to the message."""
        return self.detail or self.message


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(
        self,
        message: str = "Resource not found",
        detail: str | None = None,
    ):
        super().__init__(message, status_code=404, detail=detail)


class AuthorizationDenied(APIError):
    """Base class for every way the remote can refuse us."""

    pass


class AccessDenied(AuthorizationDenied):
    """The credentials given to `login` were rejected."""

    def __init__(
        self,
        message: str = "Invalid credentials",
        status_code: int | None = 401,
        detail: str | None = None,
    ):
        super().__init__(message, status_code, detail)


class InvalidAuthToken(AuthorizationDenied):
    """The stored token was rejected (expired, revoked or malformed).

    Re-authenticate with 'cloudctl login' to get a new token.
    """

    def __init__(self, detail: str | None = None):
        super().__init__(
            "Invalid auth token. Run 'cloudctl login' to re-authenticate.",
            status_code=401,
            detail=detail,
        )


class Forbidden(AuthorizationDenied):
    """Authorization failed (403 Forbidden).

    You don't have permission to access this resource.
    """

    def __init__(
        self,
        message: str = "Access denied",
        detail: str | None = None,
    ):
        super().__init__(message, status_code=403, detail=detail)


# --- User errors ---


class UserError(CloudCtlError):
    """A failure caused by user input or local state.

    Reported as a short message without a crash report.
    """

    pass


class PreconditionError(UserError):
    """A command precondition (target, login, org/space) is not met."""

    pass


class NoTargetError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("Please select a target with 'cloudctl target'.")


class NotLoggedInError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("Please log in with 'cloudctl login'.")


class NoOrganizationSelectedError(PreconditionError):
    def __init__(self) -> None:
        super().__init__(
            "Please select an organization with 'cloudctl target --org'."
        )


class NoSpaceSelectedError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("Please select a space with 'cloudctl target --space'.")


class NoOrganizationsError(UserError):
    def __init__(self) -> None:
        super().__init__("No organizations available.")


class NoSpacesError(UserError):
    def __init__(self, organization: str | None = None) -> None:
        msg = "No spaces available."
        if organization:
            msg = f"No spaces available in organization '{organization}'."
        super().__init__(msg)


class UnknownOrganizationError(UserError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown organization '{name}'.")


class UnknownSpaceError(UserError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown space '{name}'.")


class SelectionRequiredError(UserError):
    """Several candidates match and prompting is disabled (--force)."""

    def __init__(self, what: str, option: str) -> None:
        super().__init__(f"Please choose a {what} with '{option}'.")


class ConfigError(UserError):
    """A file under the config directory could not be parsed."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not read {path}: {reason}")
