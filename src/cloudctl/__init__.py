"""cloudctl - command line client for multi-tenant cloud platform APIs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cloudctl")
except PackageNotFoundError:
    __version__ = "unknown"
