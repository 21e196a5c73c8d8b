"""Read and write cached response bodies at their sharded paths."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from sweepcache.cache.keys import shard_path
from sweepcache.exceptions import StorageError


class EntryStore:
    """Stores one response body per key under *cache_root*.

    Each entry file holds exactly the body text, with no header or
    metadata. Presence of the file is the only record that an entry
    exists.

    Args:
        cache_root: Existing directory that holds the shard directories.
    """

    def __init__(self, cache_root: Path) -> None:
        self._cache_root = Path(cache_root)

    @property
    def cache_root(self) -> Path:
        return self._cache_root

    def entry_path(self, key: str) -> Path:
        """Return the file path where the entry for *key* lives."""
        return shard_path(self._cache_root, key)[1]

    def contains(self, key: str) -> bool:
        return self.entry_path(key).is_file()

    def get(self, key: str) -> Optional[str]:
        """Return the stored body for *key*, or ``None`` on a miss.

        Raises:
            StorageError: If the entry exists but cannot be read.
        """
        path = self.entry_path(key)
        try:
            return path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Cannot read cache entry {path}: {exc}") from exc

    def put(self, key: str, body: str) -> None:
        """Write *body* as the entry for *key*, replacing any previous value.

        Raises:
            StorageError: If the shard directory or entry file cannot be
                written (permissions, disk full).
        """
        shard_dir, path = shard_path(self._cache_root, key)
        try:
            shard_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body.encode("utf-8"))
        except OSError as exc:
            raise StorageError(f"Cannot write cache entry {path}: {exc}") from exc
