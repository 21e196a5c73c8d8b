"""Tests for configuration paths, persistence, and precedence resolution."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from sweepcache.config import (
    _atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_global_config,
    load_project_config,
    resolve_config,
    save_global_config,
)
from sweepcache.exceptions import ConfigError
from sweepcache.models import (
    DEFAULT_DISK_QUOTA,
    CachingOptions,
    CachingStrategyName,
    GlobalConfig,
    RequestConfig,
)


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


class TestDirectories:
    def test_xdg_directories(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "sweepcache"
        assert get_cache_dir() == isolated_config / "xdg-cache" / "sweepcache"
        assert get_data_dir() == isolated_config / "data" / "sweepcache"

    def test_directories_are_created(self, isolated_config: Path) -> None:
        assert get_config_dir().is_dir()
        assert get_cache_dir().is_dir()

    def test_fallback_on_non_xdg_platform(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("sweepcache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".sweepcache"
        assert get_cache_dir() == tmp_path / ".sweepcache" / "cache"


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config.caching_strategy == CachingStrategyName.NONE
        assert config.caching_options.cache_path is None
        assert config.caching_options.disk_quota == DEFAULT_DISK_QUOTA

    def test_save_and_load(self, isolated_config: Path, cache_dir: Path) -> None:
        save_global_config(
            GlobalConfig(
                base_url="https://ecs.example.com",
                request=RequestConfig(timeout=5),
                caching_strategy=CachingStrategyName.FILESYSTEM,
                caching_options=CachingOptions(cache_path=cache_dir, disk_quota=400),
            )
        )

        config = load_global_config()

        assert config.base_url == "https://ecs.example.com"
        assert config.request.timeout == 5
        assert config.caching_strategy == CachingStrategyName.FILESYSTEM
        assert config.caching_options.cache_path == cache_dir
        assert config.caching_options.disk_quota == 400

    def test_saved_file_is_json(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(base_url="https://x.example"))
        data = json.loads((get_config_dir() / "config.json").read_text())
        assert data["base_url"] == "https://x.example"
        assert data["caching_strategy"] == "none"

    def test_invalid_json(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_invalid_values(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text(
            json.dumps({"caching_options": {"disk_quota": -5}})
        )
        with pytest.raises(ConfigError):
            load_global_config()

    def test_unknown_strategy_rejected(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text(
            json.dumps({"caching_strategy": "memcached"})
        )
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_loaded_from_cwd(self, isolated_config: Path) -> None:
        (isolated_config / "sweepcache.json").write_text(json.dumps({"base_url": "https://p"}))
        assert load_project_config() == {"base_url": "https://p"}

    def test_must_be_object(self, isolated_config: Path) -> None:
        (isolated_config / "sweepcache.json").write_text("[1, 2]")
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.base_url is None
        assert config.caching_strategy == CachingStrategyName.NONE

    def test_project_overrides_global(self, isolated_config: Path) -> None:
        save_global_config(
            GlobalConfig(base_url="https://global", caching_options=CachingOptions(disk_quota=400))
        )
        (isolated_config / "sweepcache.json").write_text(
            json.dumps({"base_url": "https://project", "caching_options": {"sweep_frequency": 4}})
        )

        config = resolve_config()

        assert config.base_url == "https://project"
        assert config.caching_options.disk_quota == 400
        assert config.caching_options.sweep_frequency == 4

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (isolated_config / "sweepcache.json").write_text(json.dumps({"base_url": "https://project"}))
        monkeypatch.setenv("SWEEPCACHE_BASE_URL", "https://env")
        assert resolve_config().base_url == "https://env"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SWEEPCACHE_BASE_URL", "https://env")
        assert resolve_config(cli_base_url="https://cli").base_url == "https://cli"

    def test_env_cache_path_selects_filesystem(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, cache_dir: Path
    ) -> None:
        save_global_config(GlobalConfig(caching_options=CachingOptions(sweep_frequency=4)))
        monkeypatch.setenv("SWEEPCACHE_CACHE_PATH", str(cache_dir))

        config = resolve_config()

        assert config.caching_strategy == CachingStrategyName.FILESYSTEM
        assert config.caching_options.cache_path == cache_dir
        assert config.caching_options.sweep_frequency == 4

    def test_cli_cache_path_wins(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("SWEEPCACHE_CACHE_PATH", str(tmp_path / "env"))
        config = resolve_config(cli_cache_path=str(tmp_path / "cli"))
        assert config.caching_options.cache_path == tmp_path / "cli"

    def test_invalid_merged_config(self, isolated_config: Path) -> None:
        (isolated_config / "sweepcache.json").write_text(
            json.dumps({"caching_options": {"disk_quota": 0}})
        )
        with pytest.raises(ConfigError, match="sweepcache.json"):
            resolve_config()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.json"
        _atomic_write(target, "{}\n")
        assert target.read_text() == "{}\n"

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old")
        _atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_failure_leaves_no_temp_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        target = tmp_path / "file.json"
        target.write_text("old")

        def _fail(src: str, dst: object) -> None:
            raise OSError("rename failed")

        monkeypatch.setattr(os, "replace", _fail)
        with pytest.raises(OSError, match="rename failed"):
            _atomic_write(target, "new")

        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]
