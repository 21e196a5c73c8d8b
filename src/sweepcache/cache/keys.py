"""Content addressing for cache entries.

A request's canonical identity (its full URL) is hashed into a fixed-length
hex key, and the key decides where the entry lives on disk::

    <cache_root>/<key[:3]>/<key>

The three-character shard directory bounds how many entries share a single
directory (at most 4096 shards for hex keys).
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

KEY_LENGTH = 40
SHARD_PREFIX_LENGTH = 3

_KEY_RE = re.compile(rf"[0-9a-f]{{{KEY_LENGTH}}}")


def cache_key(identity: str) -> str:
    """Return the SHA-1 hex digest of *identity*.

    The same identity always yields the same key, and the key is always
    :data:`KEY_LENGTH` lowercase hex characters.
    """
    return hashlib.sha1(identity.encode("utf-8")).hexdigest()


def is_valid_key(key: str) -> bool:
    """Check that *key* has the shape produced by :func:`cache_key`."""
    return _KEY_RE.fullmatch(key) is not None


def shard_path(cache_root: Path, key: str) -> tuple[Path, Path]:
    """Map *key* to its ``(shard_dir, entry_file)`` pair under *cache_root*.

    Raises:
        ValueError: If *key* is not a 40-character lowercase hex digest.
            Only derived keys are accepted, so the result never escapes
            *cache_root*.
    """
    if not is_valid_key(key):
        raise ValueError(f"Invalid cache key: {key!r}")
    shard_dir = cache_root / key[:SHARD_PREFIX_LENGTH]
    return shard_dir, shard_dir / key
