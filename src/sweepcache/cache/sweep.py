"""Quota checks, sweep scheduling, and the sweep itself.

Eviction is coarse: there is no per-entry age or LRU bookkeeping. After
each request the caching strategy asks two questions:

* :meth:`SweepScheduler.sweep_time_expired` -- has ``sweep_frequency``
  elapsed since the time recorded in the ``.amz_timestamp`` marker?
* :meth:`QuotaMonitor.disk_quota_exceeded` -- does the cache directory
  hold more than ``disk_quota`` bytes?

If either answer is yes, :meth:`SweepExecutor.perform_sweep` deletes the
entire contents of the cache directory and writes a fresh marker.

:class:`~sweepcache.cache.strategy.FilesystemStrategy` accepts each of the
three as a constructor argument.

Note:
    Nothing here coordinates between processes. Two processes sweeping
    the same ``cache_path`` at once, or one writing while another sweeps,
    can leave the directory partially purged with a stale or missing
    marker. The next successful sweep restores a consistent state.
"""

from __future__ import annotations

import os
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from sweepcache.exceptions import StorageError

MARKER_FILENAME = ".amz_timestamp"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def marker_path(cache_root: Path) -> Path:
    """Return the path of the sweep marker inside *cache_root*."""
    return Path(cache_root) / MARKER_FILENAME


def read_marker(cache_root: Path) -> Optional[datetime]:
    """Return the last sweep time recorded in the marker.

    Returns ``None`` when the marker is missing, unreadable, or does not
    contain an ISO-8601 timestamp. Naive timestamps are taken as UTC.
    """
    try:
        text = marker_path(cache_root).read_text(encoding="utf-8").strip()
        stamp = datetime.fromisoformat(text)
    except (OSError, ValueError):
        return None
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def write_marker(cache_root: Path, when: datetime) -> None:
    """Truncate and rewrite the marker with *when*.

    Raises:
        StorageError: If the marker cannot be written.
    """
    path = marker_path(cache_root)
    try:
        path.write_text(when.isoformat() + "\n", encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Cannot write sweep marker {path}: {exc}") from exc


class QuotaMonitor:
    """Compares the total size of *cache_root* against *disk_quota* bytes."""

    def __init__(self, cache_root: Path, disk_quota: int) -> None:
        self._cache_root = Path(cache_root)
        self._disk_quota = disk_quota

    @property
    def disk_quota(self) -> int:
        return self._disk_quota

    def disk_usage(self) -> int:
        """Return the recursive size in bytes of every file under the root.

        The sweep marker is counted. Files removed while the walk is in
        progress are skipped.

        Raises:
            StorageError: If a file cannot be inspected (permissions, I/O).
        """
        total = 0
        for dirpath, _dirnames, filenames in os.walk(self._cache_root):
            for name in filenames:
                path = os.path.join(dirpath, name)
                try:
                    total += os.lstat(path).st_size
                except FileNotFoundError:
                    continue
                except OSError as exc:
                    raise StorageError(f"Cannot measure {path}: {exc}") from exc
        return total

    def disk_quota_exceeded(self) -> bool:
        return self.disk_usage() > self._disk_quota


class SweepScheduler:
    """Decides whether ``sweep_frequency`` seconds have passed since the last sweep.

    Args:
        cache_root: Directory holding the ``.amz_timestamp`` marker.
        sweep_frequency: Minimum number of seconds between sweeps.
        clock: Returns the current time. Defaults to :func:`utc_now`.
    """

    def __init__(
        self,
        cache_root: Path,
        sweep_frequency: int,
        clock: Optional[Clock] = None,
    ) -> None:
        self._cache_root = Path(cache_root)
        self._frequency = timedelta(seconds=sweep_frequency)
        self._clock = clock or utc_now

    @property
    def sweep_frequency(self) -> timedelta:
        return self._frequency

    def last_sweep(self) -> Optional[datetime]:
        return read_marker(self._cache_root)

    def next_sweep(self) -> Optional[datetime]:
        """Return when the next time-based sweep becomes due, or ``None`` if it already is."""
        last = self.last_sweep()
        if last is None:
            return None
        return last + self._frequency

    def sweep_time_expired(self) -> bool:
        """Return ``True`` if the marker is absent or at least ``sweep_frequency`` old."""
        last = self.last_sweep()
        if last is None:
            return True
        return self._clock() - last >= self._frequency


class SweepExecutor:
    """Purges everything under *cache_root* and restarts the sweep schedule.

    Args:
        cache_root: Directory to empty. The directory itself is kept.
        clock: Supplies the time written to the marker. Defaults to
            :func:`utc_now`.
    """

    def __init__(self, cache_root: Path, clock: Optional[Clock] = None) -> None:
        self._cache_root = Path(cache_root)
        self._clock = clock or utc_now

    def write_marker(self) -> None:
        """Record the current time as the last sweep without deleting anything."""
        write_marker(self._cache_root, self._clock())

    def perform_sweep(self) -> None:
        """Delete every file and subdirectory under the root, then rewrite the marker.

        Dotfiles (the old marker included) are removed too. Calling this on
        an empty directory only writes the marker.

        Raises:
            StorageError: If the root cannot be listed or an item cannot be
                removed. Items already deleted stay deleted.
        """
        try:
            children = list(self._cache_root.iterdir())
        except OSError as exc:
            raise StorageError(
                f"Cannot list cache directory {self._cache_root}: {exc}"
            ) from exc

        for child in children:
            try:
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"Cannot remove {child}: {exc}") from exc

        self.write_marker()
