"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.sweepcache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- a single :class:`~sweepcache.models.GlobalConfig`
  JSON file holding the base URL, request settings, and caching strategy.
* **Project config** -- an optional ``./sweepcache.json`` whose keys are
  merged over the global config.
* **Precedence resolution** -- :func:`resolve_config` layers CLI flags and
  environment variables on top of both files.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).

Note:
    The default cache directory from :func:`get_cache_dir` is only used
    when the user runs ``sweepcache cache enable`` without ``--path``.
    A configuration that selects the filesystem strategy without a
    ``cache_path`` is rejected, never filled in silently.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from sweepcache.exceptions import ConfigError
from sweepcache.models import CachingStrategyName, GlobalConfig

_APP_NAME = "sweepcache"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "sweepcache.json"

ENV_BASE_URL = "SWEEPCACHE_BASE_URL"
ENV_CACHE_PATH = "SWEEPCACHE_CACHE_PATH"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/sweepcache/`` (default ``~/.config/sweepcache/``).
    On macOS/Windows: ``~/.sweepcache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the default response cache directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/sweepcache/`` (default ``~/.cache/sweepcache/``).
    On macOS/Windows: ``~/.sweepcache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/sweepcache/`` (default ``~/.local/share/sweepcache/``).
    On macOS/Windows: ``~/.sweepcache/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* through a temp file in the same directory and ``os.replace``.

    The temp file is removed if anything fails before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as fd:
            tmp_path = fd.name
            fd.write(data)
            fd.flush()
            os.fsync(fd.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def _validate(data: Any, path: Path, label: str) -> GlobalConfig:
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration, or defaults if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _validate(_read_json(path, "global config"), path, "global config")


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./sweepcache.json`` as a dict, or ``None`` if it does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_cache_path: Optional[str] = None,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_cache_path``)
        2. Environment variables (``SWEEPCACHE_BASE_URL``, ``SWEEPCACHE_CACHE_PATH``)
        3. Project config (``./sweepcache.json``)
        4. User config (``~/.config/sweepcache/config.json``)
        5. Defaults

    A cache path from a flag or environment variable also selects the
    ``filesystem`` strategy.

    Raises:
        ConfigError: If either config file is invalid.
    """
    global_cfg = load_global_config()
    data = global_cfg.model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    base_url = cli_base_url or os.environ.get(ENV_BASE_URL) or None
    if base_url:
        data["base_url"] = base_url

    cache_path = cli_cache_path or os.environ.get(ENV_CACHE_PATH) or None
    if cache_path:
        data["caching_strategy"] = CachingStrategyName.FILESYSTEM.value
        data["caching_options"] = {**data.get("caching_options", {}), "cache_path": cache_path}

    source = Path.cwd() / _PROJECT_CONFIG_FILENAME if project is not None else _global_config_path()
    return _validate(data, source, "configuration")
