"""Canonical Pydantic models shared across all sweepcache modules.

This is the single source of truth for configuration shapes in the project.
Every other module imports from here rather than defining its own models:

* :class:`RequestConfig` -- HTTP timeout, SSL verification, and retries.
* :class:`OutputConfig` -- default output format for the CLI.
* :class:`CachingStrategyName` -- the recognised ``caching_strategy`` values.
* :class:`CachingOptions` -- ``cache_path``, ``disk_quota``, and
  ``sweep_frequency`` for the filesystem strategy.
* :class:`GlobalConfig` -- the whole user configuration, serialised as JSON
  in the user's config directory.

All models use Pydantic v2. :class:`CachingOptions` is frozen: once a
strategy has been configured its parameters cannot be changed in place, only
replaced by configuring again.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DISK_QUOTA = 200 * 1024 * 1024
"""Default cache size limit in bytes (200 MiB)."""

DEFAULT_SWEEP_FREQUENCY = 2 * 60 * 60
"""Default minimum interval between sweeps in seconds (two hours)."""


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class CachingStrategyName(str, enum.Enum):
    """Recognised values for ``caching_strategy``.

    ``NONE`` sends every request to the API. ``FILESYSTEM`` memoizes GET
    response bodies under ``caching_options.cache_path``.
    """

    NONE = "none"
    FILESYSTEM = "filesystem"


class CachingOptions(BaseModel):
    """Options for the filesystem caching strategy.

    ``cache_path`` is optional at the model level so that a configuration
    file can be written before the directory exists; the existence check
    happens in :func:`~sweepcache.cache.configure`, which refuses a missing
    or nonexistent path. A blank string is stored as ``None`` so it is
    refused the same way.

    Example::

        CachingOptions(cache_path="/var/cache/api", disk_quota=400, sweep_frequency=4)
    """

    model_config = ConfigDict(frozen=True)

    cache_path: Optional[Path] = Field(
        default=None, description="Existing directory that holds cache entries"
    )
    disk_quota: int = Field(
        default=DEFAULT_DISK_QUOTA,
        gt=0,
        description="Total bytes the cache directory may hold before a sweep",
    )
    sweep_frequency: int = Field(
        default=DEFAULT_SWEEP_FREQUENCY,
        gt=0,
        description="Minimum seconds between two sweeps",
    )

    @field_validator("cache_path", mode="before")
    @classmethod
    def _blank_path_is_missing(cls, value: Any) -> Any:
        """Treat an empty or whitespace-only path as unset, not as the working directory."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/sweepcache/config.json``.

    Loaded and saved by :func:`~sweepcache.config.load_global_config` and
    :func:`~sweepcache.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~sweepcache.config.resolve_config`
    for the full precedence chain.
    """

    base_url: Optional[str] = Field(
        default=None, description="Base URL prepended to every request path"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    caching_strategy: CachingStrategyName = CachingStrategyName.NONE
    caching_options: CachingOptions = Field(default_factory=CachingOptions)
