"""Default httpx implementation of the API client capability."""

from __future__ import annotations

import base64
import json
import logging
import sys
import typing
from datetime import datetime

import httpx

from cloudctl.client._base import APIClient, V1Client, V2Client
from cloudctl.exceptions import (
    AccessDenied,
    APIError,
    Forbidden,
    InvalidAuthToken,
    NotFoundError,
)
from cloudctl.models import LoginPrompt, Organization, ProtocolVersion, Space, User

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
OAUTH_CLIENT_ID = "cf"


def handle_response_error(response: httpx.Response, operation: str) -> None:
    """Check response for errors and raise appropriate exceptions.

    Args:
        response: httpx Response object.
        operation: Description of the operation for error messages.

    Raises:
        InvalidAuthToken: On 401.
        Forbidden: On 403.
        NotFoundError: On 404.
        APIError: For any other 4xx/5xx.
    """
    if response.status_code < 400:
        return

    # Try to extract detail from response JSON
    detail = None
    try:
        data = response.json()
        detail = data.get("description") or data.get("detail") or str(data)
    except Exception:
        detail = response.text[:200] if response.text else None

    status_code = response.status_code
    if status_code == 401:
        raise InvalidAuthToken(detail=detail)
    if status_code == 403:
        raise Forbidden(f"{operation} denied", detail=detail)
    if status_code == 404:
        raise NotFoundError(f"{operation}: not found", detail=detail)
    raise APIError(f"{operation} failed", status_code=status_code, detail=detail)


class _HTTPTransport:
    """Shared request plumbing: auth headers, proxy identity, tracing."""

    target: str
    token: str | None
    proxy: str | None
    trace: bool
    log_path: typing.Any
    transport: httpx.BaseTransport | None = None

    _http_client: httpx.Client | None = None

    def _client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(
                timeout=DEFAULT_TIMEOUT,
                transport=self.transport,
                event_hooks={
                    "request": [self._trace_request],
                    "response": [self._trace_response],
                },
            )
        return self._http_client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = self.token
        if self.proxy:
            headers["Proxy-User"] = self.proxy
        return headers

    def _request(
        self, method: str, url: str, operation: str, **kwargs: typing.Any
    ) -> httpx.Response:
        if not url.startswith("http"):
            url = f"{self.target}{url}"
        try:
            response = self._client().request(
                method, url, headers=self._headers(), **kwargs
            )
        except httpx.TransportError as e:
            raise APIError(f"{operation} failed", detail=str(e)) from e
        handle_response_error(response, operation)
        return response

    def _get_json(self, url: str, operation: str) -> typing.Any:
        return self._request("GET", url, operation).json()

    def _trace(self, line: str) -> None:
        if self.trace:
            sys.stderr.write(line + "\n")
        if self.log_path is None:
            return
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a") as f:
                f.write(f"{datetime.now().isoformat()} {line}\n")
        except OSError as e:
            logger.debug(f"Could not write request log {self.log_path}: {e}")

    def _trace_request(self, request: httpx.Request) -> None:
        self._trace(f">>> {request.method} {request.url}")

    def _trace_response(self, response: httpx.Response) -> None:
        self._trace(f"<<< {response.status_code} {response.request.url}")

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None


class HTTPV1Client(_HTTPTransport, V1Client):
    def __init__(
        self,
        target: str,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(target, token)
        self.transport = transport

    def login_prompts(self) -> list[LoginPrompt]:
        return [
            LoginPrompt(field="username", kind="text", label="Email"),
            LoginPrompt(field="password", kind="password", label="Password"),
        ]

    def login(self, credentials: typing.Mapping[str, str]) -> str:
        username = credentials.get("username", "")
        try:
            response = self._request(
                "POST",
                f"/users/{username}/tokens",
                "Login",
                json={"password": credentials.get("password", "")},
            )
        except (InvalidAuthToken, Forbidden) as e:
            raise AccessDenied(detail=e.detail) from e
        self.token = response.json()["token"]
        return self.token

    def current_user(self) -> User | None:
        if not self.logged_in:
            return None
        email = self._get_json("/info", "Get info").get("user")
        return User(id=email, email=email) if email else None


class HTTPV2Client(_HTTPTransport, V2Client):
    def __init__(
        self,
        target: str,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(target, token)
        self.transport = transport
        self._authorization_endpoint: str | None = None

    def _auth_url(self) -> str:
        if self._authorization_endpoint is None:
            info = self._get_json("/v2/info", "Get info")
            self._authorization_endpoint = info["authorization_endpoint"].rstrip("/")
        return self._authorization_endpoint

    def login_prompts(self) -> list[LoginPrompt]:
        data = self._get_json(f"{self._auth_url()}/login", "Get login prompts")
        return [
            LoginPrompt(field=field, kind=kind, label=label)
            for field, (kind, label) in data.get("prompts", {}).items()
        ]

    def login(self, credentials: typing.Mapping[str, str]) -> str:
        try:
            response = self._request(
                "POST",
                f"{self._auth_url()}/oauth/token",
                "Login",
                data={
                    "grant_type": "password",
                    "client_id": OAUTH_CLIENT_ID,
                    **credentials,
                },
            )
        except (InvalidAuthToken, Forbidden) as e:
            raise AccessDenied(detail=e.detail) from e
        except APIError as e:
            # The token endpoint answers bad credentials with 400
            if e.status_code == 400:
                raise AccessDenied(detail=e.detail) from e
            raise
        data = response.json()
        self.token = f"{data.get('token_type', 'bearer')} {data['access_token']}"
        return self.token

    def current_user(self) -> User | None:
        if not self.logged_in:
            return None
        claims = _token_claims(self.token or "")
        user_id = claims.get("user_id")
        return User(id=user_id, email=claims.get("email")) if user_id else None

    def _list(self, path: str, operation: str) -> list[dict]:
        resources: list[dict] = []
        url: str | None = f"{path}?inline-relations-depth=1"
        while url:
            page = self._get_json(url, operation)
            resources.extend(page.get("resources", []))
            url = page.get("next_url")
        return resources

    def organizations(self) -> list[Organization]:
        return [
            _organization(r)
            for r in self._list("/v2/organizations", "List organizations")
        ]

    def spaces(self) -> list[Space]:
        return [_space(r) for r in self._list("/v2/spaces", "List spaces")]

    def organization(self, organization_id: str) -> Organization:
        return _organization(
            self._get_json(
                f"/v2/organizations/{organization_id}?inline-relations-depth=1",
                "Get organization",
            )
        )

    def space(self, space_id: str) -> Space:
        return _space(
            self._get_json(
                f"/v2/spaces/{space_id}?inline-relations-depth=1", "Get space"
            )
        )


def _token_claims(token: str) -> dict[str, typing.Any]:
    """Decode the (unverified) payload of a bearer JWT."""
    try:
        payload = token.split()[-1].split(".")[1]
        payload += "=" * (-len(payload) % 4)
        return json.loads(base64.urlsafe_b64decode(payload))
    except (IndexError, ValueError):
        return {}


def _user(resource: dict) -> User:
    entity = resource.get("entity", {})
    return User(id=resource["metadata"]["guid"], email=entity.get("username"))


def _organization(resource: dict) -> Organization:
    entity = resource["entity"]
    return Organization(
        id=resource["metadata"]["guid"],
        name=entity["name"],
        users=[_user(u) for u in entity.get("users", [])],
    )


def _space(resource: dict) -> Space:
    entity = resource["entity"]
    return Space(
        id=resource["metadata"]["guid"],
        name=entity["name"],
        organization_id=entity["organization_guid"],
        developers=[_user(u) for u in entity.get("developers", [])],
    )


def detect_version(
    target: str, transport: httpx.BaseTransport | None = None
) -> ProtocolVersion:
    """Ask the target which protocol version it speaks."""
    try:
        with httpx.Client(timeout=DEFAULT_TIMEOUT, transport=transport) as client:
            response = client.get(f"{target}/v2/info")
    except httpx.TransportError as e:
        raise APIError(f"Could not reach {target}", detail=str(e)) from e
    if response.status_code == 200:
        return ProtocolVersion.V2
    return ProtocolVersion.V1


def connect(
    target: str,
    token: str | None,
    version: ProtocolVersion | None,
    transport: httpx.BaseTransport | None = None,
) -> APIClient:
    """Build an HTTP client for a target, detecting the version if unknown."""
    if version is None:
        version = detect_version(target, transport)
        logger.debug(f"Detected protocol v{int(version)} for {target}")

    if version is ProtocolVersion.V2:
        return HTTPV2Client(target, token, transport=transport)
    return HTTPV1Client(target, token, transport=transport)
