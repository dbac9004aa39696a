"""Construction and caching of the process-wide API client."""

from __future__ import annotations

import logging
import urllib.parse

from cloudctl.client._base import APIClient, ClientBuilder, is_v2
from cloudctl.client._http import connect
from cloudctl.config import ConfigStore
from cloudctl.exceptions import NoTargetError

logger = logging.getLogger(__name__)


class ClientFactory:
    """Owns the single live client of this process.

    The client is built lazily from the stored session record of the target
    and reused until `invalidate()` is called. Changing the target or logging
    in must invalidate it.

    Args:
        store: Config store holding the target pointer and session records.
        builder: Constructs a concrete client for (target, token, version).
        proxy: Identity to act as, applied to every new client.
        trace: Request tracing flag, applied to every new client.
    """

    def __init__(
        self,
        store: ConfigStore,
        builder: ClientBuilder = connect,
        proxy: str | None = None,
        trace: bool = False,
    ) -> None:
        self.store = store
        self.builder = builder
        self.proxy = proxy
        self.trace = trace
        self._client: APIClient | None = None

    @property
    def cached(self) -> APIClient | None:
        """The live client, if one has been built."""
        return self._client

    def current_target(self) -> str:
        target = self.store.read_target()
        if target is None:
            raise NoTargetError()
        return target

    def get_client(
        self, target: str | None = None, resolve_context: bool = True
    ) -> APIClient:
        """Get the live client, building it on first access.

        Args:
            target: Target URL. Defaults to the current target.
            resolve_context: Attach the stored organization and space (v2).
                Login turns this off, since a stale token cannot resolve them.
                A client built without them is returned but not cached.

        Returns:
            The cached client.

        Raises:
            NoTargetError: If no target is given and none was ever set.
            APIError: If a stored organization or space cannot be resolved.
        """
        if self._client is not None:
            return self._client

        target = target or self.current_target()
        record = self.store.get_session(target)

        client = self.builder(target, record.token, record.protocol_version)
        client.proxy = self.proxy
        client.trace = self.trace
        host = urllib.parse.urlparse(target).hostname or target
        client.log_path = self.store.log_path(host)
        logger.debug(
            f"Built v{int(client.protocol_version)} client for {target} "
            f"(logged in: {client.logged_in})"
        )

        if record.protocol_version is None:
            # Pin the version once observed, it is never probed again
            record.protocol_version = client.protocol_version
            self.store.save_session(target, record)
            logger.debug(f"Pinned {target} to v{int(record.protocol_version)}")

        if not resolve_context:
            return client

        if is_v2(client):
            if record.organization_id:
                client.current_organization = client.organization(
                    record.organization_id
                )
            if record.space_id:
                client.current_space = client.space(record.space_id)

        self._client = client
        return client

    def release(self, client: APIClient) -> None:
        """Close a client from `get_client(resolve_context=False)`.

        The live client is left open.
        """
        if client is not self._client:
            client.close()

    def set_target(self, url: str) -> None:
        """Point at a new target and drop the live client."""
        self.store.write_target(url)
        self.invalidate()

    def invalidate(self) -> None:
        """Drop the live client; the next `get_client` rebuilds it."""
        if self._client is not None:
            logger.debug(f"Invalidating client for {self._client.target}")
            self._client.close()
        self._client = None
