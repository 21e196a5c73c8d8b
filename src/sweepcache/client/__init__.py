"""HTTP client module for sweepcache.

:class:`SyncClient` wraps :class:`httpx.Client` with retry, error mapping,
and a caching strategy around every GET.

Example::

    from sweepcache.client import SyncClient

    with SyncClient("https://api.example.com") as client:
        resp = client.get("/items/0974514055")
"""

from sweepcache.client.sync_client import PendingRequest, SyncClient, canonical_url

__all__ = ["PendingRequest", "SyncClient", "canonical_url"]
