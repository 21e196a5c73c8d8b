"""Caching strategies wrapped around each outbound request.

A strategy receives a :class:`CacheableRequest` (anything with an
``identity`` string and an ``execute()`` method returning the body) and
returns the body, either from the cache or by executing the request.

* :class:`NoCachingStrategy` -- always executes.
* :class:`FilesystemStrategy` -- looks the body up by content address,
  executes and stores on a miss, then sweeps the cache directory if the
  sweep schedule has expired or the disk quota is exceeded.

Strategies are created by :func:`configure`, which validates the options
and raises :class:`~sweepcache.exceptions.ConfigurationError` before any
request is made. The most recently configured strategy is kept as the
process-wide active strategy (:func:`get_caching_strategy`) for callers
that do not hold their own reference.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from pydantic import ValidationError

from sweepcache.cache.keys import cache_key, is_valid_key
from sweepcache.cache.store import EntryStore
from sweepcache.cache.sweep import (
    Clock,
    QuotaMonitor,
    SweepExecutor,
    SweepScheduler,
    marker_path,
)
from sweepcache.exceptions import ConfigurationError, StorageError
from sweepcache.models import CachingOptions, CachingStrategyName, GlobalConfig
from sweepcache.output import get_output


class CacheableRequest(Protocol):
    """What a strategy needs from the API client for one request."""

    @property
    def identity(self) -> str:
        """Stable canonical identity of the request, e.g. its full URL."""
        ...

    def execute(self) -> str:
        """Perform the request and return the response body."""
        ...


class CachingStrategy(ABC):
    """Base class for caching strategies."""

    name: CachingStrategyName

    @abstractmethod
    def fetch(self, request: CacheableRequest) -> str:
        """Return the body for *request*, executing it only when necessary."""

    @abstractmethod
    def stats(self) -> dict[str, Any]:
        """Return a JSON-serialisable summary of the strategy's state."""


class NoCachingStrategy(CachingStrategy):
    """Passthrough strategy: every request is executed."""

    name = CachingStrategyName.NONE

    def fetch(self, request: CacheableRequest) -> str:
        return request.execute()

    def stats(self) -> dict[str, Any]:
        return {"enabled": False, "strategy": self.name.value}


class FilesystemStrategy(CachingStrategy):
    """Memoizes response bodies in a sharded directory tree.

    The Quota Monitor, Sweep Scheduler, and Sweep Executor are built from
    *options* unless passed in, so each one can be replaced independently.

    Args:
        options: Validated options with an existing ``cache_path``.
        store: Entry store; defaults to one rooted at ``cache_path``.
        monitor: Quota monitor; defaults to ``disk_quota`` on ``cache_path``.
        scheduler: Sweep scheduler; defaults to ``sweep_frequency``.
        executor: Sweep executor for ``cache_path``.
        clock: Time source shared by the default scheduler and executor.

    Example::

        strategy = configure("filesystem", {"cache_path": "/tmp/api-cache"})
        body = strategy.fetch(request)
    """

    name = CachingStrategyName.FILESYSTEM

    def __init__(
        self,
        options: CachingOptions,
        store: Optional[EntryStore] = None,
        monitor: Optional[QuotaMonitor] = None,
        scheduler: Optional[SweepScheduler] = None,
        executor: Optional[SweepExecutor] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if options.cache_path is None:
            raise ConfigurationError("Filesystem caching requires a cache_path")
        self._options = options
        root = options.cache_path
        self._store = store or EntryStore(root)
        self._monitor = monitor or QuotaMonitor(root, options.disk_quota)
        self._scheduler = scheduler or SweepScheduler(
            root, options.sweep_frequency, clock=clock
        )
        self._executor = executor or SweepExecutor(root, clock=clock)

    @property
    def options(self) -> CachingOptions:
        return self._options

    @property
    def cache_path(self) -> Path:
        assert self._options.cache_path is not None
        return self._options.cache_path

    @property
    def disk_quota(self) -> int:
        return self._options.disk_quota

    @property
    def sweep_frequency(self) -> int:
        return self._options.sweep_frequency

    @property
    def store(self) -> EntryStore:
        return self._store

    # ------------------------------------------------------------------ #
    # Request cycle
    # ------------------------------------------------------------------ #

    def fetch(self, request: CacheableRequest) -> str:
        """Return the cached body for *request*, or execute and store it.

        After the body is obtained the sweep conditions are checked and, if
        either holds, the cache directory is purged once. Storage failures
        are reported as warnings and never replace the body. Exceptions from
        ``request.execute()`` propagate and skip the sweep check.
        """
        output = get_output()
        key = cache_key(request.identity)

        body = self._lookup(key)
        if body is not None:
            output.debug(f"Cache hit: {request.identity}")
        else:
            output.debug(f"Cache miss: {request.identity}")
            body = request.execute()
            self._remember(key, body)

        self._sweep_if_due()
        return body

    def must_sweep(self) -> bool:
        """Return ``True`` if the schedule has expired or the quota is exceeded.

        Raises:
            StorageError: If the cache size cannot be measured.
        """
        return (
            self._scheduler.sweep_time_expired()
            or self._monitor.disk_quota_exceeded()
        )

    def sweep(self) -> None:
        """Purge the cache directory now, regardless of schedule and quota.

        Raises:
            StorageError: If the purge or the marker write fails.
        """
        get_output().debug(f"Sweeping cache directory {self.cache_path}")
        self._executor.perform_sweep()

    def start_schedule(self) -> None:
        """Write the sweep marker if the cache directory has none yet.

        Without a marker the first request would find the sweep overdue and
        purge the entry it had just stored.
        """
        if marker_path(self.cache_path).exists():
            return
        try:
            self._executor.write_marker()
        except StorageError as exc:
            get_output().warning(f"Cache schedule not started: {exc}")

    def stats(self) -> dict[str, Any]:
        """Summarise the cache directory for ``sweepcache cache stats``.

        Shards removed by a concurrent sweep are skipped.

        Raises:
            StorageError: If the cache directory cannot be listed or measured.
        """
        last = self._scheduler.last_sweep()
        upcoming = self._scheduler.next_sweep()
        return {
            "enabled": True,
            "strategy": self.name.value,
            "directory": str(self.cache_path),
            "entries": self._count_entries(),
            "size": self._monitor.disk_usage(),
            "disk_quota": self.disk_quota,
            "sweep_frequency": self.sweep_frequency,
            "last_sweep": _isoformat(last),
            "next_sweep": _isoformat(upcoming),
        }

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _lookup(self, key: str) -> Optional[str]:
        try:
            return self._store.get(key)
        except StorageError as exc:
            get_output().warning(f"Cache read failed, fetching instead: {exc}")
            return None

    def _remember(self, key: str, body: str) -> None:
        try:
            self._store.put(key, body)
        except StorageError as exc:
            get_output().warning(f"Response not cached: {exc}")

    def _sweep_if_due(self) -> None:
        try:
            if self.must_sweep():
                self.sweep()
        except StorageError as exc:
            get_output().warning(f"Cache sweep incomplete: {exc}")

    def _count_entries(self) -> int:
        try:
            shards = [shard for shard in self.cache_path.iterdir() if shard.is_dir()]
        except OSError as exc:
            raise StorageError(f"Cannot list cache directory {self.cache_path}: {exc}") from exc

        count = 0
        for shard in shards:
            try:
                entries = list(shard.iterdir())
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"Cannot list shard {shard}: {exc}") from exc
            count += sum(1 for entry in entries if entry.is_file() and is_valid_key(entry.name))
        return count


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ------------------------------------------------------------------ #
# Configuration
# ------------------------------------------------------------------ #

OptionsInput = Union[CachingOptions, Mapping[str, Any], None]


def _validate_options(caching_options: OptionsInput) -> CachingOptions:
    """Turn *caching_options* into :class:`CachingOptions` with an existing cache_path.

    The returned path is absolute, so a relative path saved in the config
    cannot point at a different directory from another working directory.
    """
    if caching_options is None:
        raise ConfigurationError(
            "Filesystem caching requires caching_options with a cache_path"
        )
    if isinstance(caching_options, CachingOptions):
        options = caching_options
    else:
        try:
            options = CachingOptions.model_validate(dict(caching_options))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid caching options: {exc}") from exc

    if options.cache_path is None:
        raise ConfigurationError("Filesystem caching requires a cache_path")
    path = Path(options.cache_path).expanduser().resolve()
    if not path.exists():
        raise ConfigurationError(f"The cache path {path} does not exist")
    if not path.is_dir():
        raise ConfigurationError(f"The cache path {path} is not a directory")
    return options.model_copy(update={"cache_path": path})


def configure(
    caching_strategy: Union[CachingStrategyName, str, None],
    caching_options: OptionsInput = None,
    schedule: bool = True,
) -> CachingStrategy:
    """Validate the options, build the strategy, and make it the active one.

    Args:
        caching_strategy: ``"none"``, ``"filesystem"``, or ``None`` (same
            as ``"none"``).
        caching_options: A :class:`~sweepcache.models.CachingOptions` or a
            mapping with ``cache_path`` and optional ``disk_quota`` and
            ``sweep_frequency``. Ignored for ``"none"``.
        schedule: Write the sweep marker into a directory that has none.
            Pass ``False`` to inspect a cache without touching it.

    Returns:
        The newly active strategy.

    Raises:
        ConfigurationError: For an unknown strategy name, missing or invalid
            options, or a ``cache_path`` that is not an existing directory.
            The previously active strategy stays in place.
    """
    global _active

    try:
        name = CachingStrategyName(caching_strategy or CachingStrategyName.NONE)
    except ValueError:
        raise ConfigurationError(
            f"Unknown caching strategy: {caching_strategy!r}"
        ) from None

    strategy: CachingStrategy
    if name == CachingStrategyName.FILESYSTEM:
        fs_strategy = FilesystemStrategy(_validate_options(caching_options))
        if schedule:
            fs_strategy.start_schedule()
        strategy = fs_strategy
    else:
        strategy = NoCachingStrategy()

    _active = strategy
    return strategy


def configure_from(config: GlobalConfig, schedule: bool = True) -> CachingStrategy:
    """Configure the strategy named in a :class:`~sweepcache.models.GlobalConfig`."""
    return configure(config.caching_strategy, config.caching_options, schedule=schedule)


# ------------------------------------------------------------------ #
# Active strategy (set by configure)
# ------------------------------------------------------------------ #

_active: Optional[CachingStrategy] = None


def get_caching_strategy() -> CachingStrategy:
    """Return the active strategy, or a :class:`NoCachingStrategy` if none was configured."""
    global _active
    if _active is None:
        _active = NoCachingStrategy()
    return _active


def reset_caching_strategy() -> None:
    """Forget the active strategy. Primarily useful between tests."""
    global _active
    _active = None
