from cloudctl.client._base import (
    APIClient,
    ClientBuilder,
    V1Client,
    V2Client,
    is_v2,
)
from cloudctl.client._factory import ClientFactory
from cloudctl.client._http import HTTPV1Client, HTTPV2Client, connect

__all__ = [
    "APIClient",
    "ClientBuilder",
    "ClientFactory",
    "HTTPV1Client",
    "HTTPV2Client",
    "V1Client",
    "V2Client",
    "connect",
    "is_v2",
]
