"""Filesystem response caching for sweepcache.

Response bodies are stored under a content address derived from the
request URL (:mod:`sweepcache.cache.keys`), one file per entry in a
three-character shard directory (:mod:`sweepcache.cache.store`). The
directory is purged as a whole when the sweep schedule expires or the disk
quota is exceeded (:mod:`sweepcache.cache.sweep`).

:func:`configure` validates ``caching_strategy`` / ``caching_options`` and
returns the :class:`CachingStrategy` that
:class:`~sweepcache.client.sync_client.SyncClient` wraps around each GET.
"""

from sweepcache.cache.keys import cache_key, shard_path
from sweepcache.cache.store import EntryStore
from sweepcache.cache.strategy import (
    CacheableRequest,
    CachingStrategy,
    FilesystemStrategy,
    NoCachingStrategy,
    configure,
    configure_from,
    get_caching_strategy,
    reset_caching_strategy,
)
from sweepcache.cache.sweep import (
    MARKER_FILENAME,
    QuotaMonitor,
    SweepExecutor,
    SweepScheduler,
)

__all__ = [
    "MARKER_FILENAME",
    "CacheableRequest",
    "CachingStrategy",
    "EntryStore",
    "FilesystemStrategy",
    "NoCachingStrategy",
    "QuotaMonitor",
    "SweepExecutor",
    "SweepScheduler",
    "cache_key",
    "configure",
    "configure_from",
    "get_caching_strategy",
    "reset_caching_strategy",
    "shard_path",
]
