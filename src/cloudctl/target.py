"""Normalization of user-supplied target URLs."""

import logging
import re
import socket
from typing import Callable

logger = logging.getLogger(__name__)

HTTPS_PORT = 443
PROBE_TIMEOUT = 5.0

_SCHEME_RE = re.compile(r"^https?://")


def https_reachable(host: str, port: int = HTTPS_PORT) -> bool:
    """Check whether a TCP connection to the HTTPS port can be opened."""
    try:
        with socket.create_connection((host, port), timeout=PROBE_TIMEOUT):
            return True
    except OSError:
        return False


def sane_target_url(
    url: str,
    probe: Callable[[str], bool] = https_reachable,
) -> str:
    """Turn a user-supplied host or URL into a canonical target URL.

    Without a scheme, https is used if the host accepts connections on the
    HTTPS port and http otherwise. Trailing slashes are dropped.

    Args:
        url: Host name or URL, e.g. "api.example.com" or "https://api.example.com/".
        probe: Reachability check for the HTTPS port.

    Returns:
        The canonical target URL.
    """
    url = url.strip()
    if not _SCHEME_RE.match(url):
        host = url.split("/", 1)[0].split(":", 1)[0]
        scheme = "https" if probe(host) else "http"
        logger.debug(f"Inferred scheme {scheme} for {host}")
        url = f"{scheme}://{url}"

    return url.rstrip("/")


def display_target(url: str) -> str:
    """Strip the scheme for display."""
    return _SCHEME_RE.sub("", url)
