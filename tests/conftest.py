"""Shared test fixtures for sweepcache.

Provides fixtures for isolated config environments, cache directories,
fake cacheable requests, output state, and the CLI runner. These fixtures
are automatically discovered by pytest.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from sweepcache.cache import reset_caching_strategy
from sweepcache.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals() -> None:
    """Reset the global OutputManager and active caching strategy after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, so a manager created under CliRunner must not leak into
    the next test.
    """
    yield
    reset_output()
    reset_caching_strategy()


# ---------------------------------------------------------------------------
# Fake request
# ---------------------------------------------------------------------------


class FakeRequest:
    """A cacheable request that counts how often it is executed."""

    def __init__(
        self,
        identity: str = "https://ecs.example.com/onca/xml?ItemId=0974514055&Operation=ItemLookup",
        body: str = "<ItemLookupResponse><Item>0974514055</Item></ItemLookupResponse>",
    ) -> None:
        self.identity = identity
        self.body = body
        self.calls = 0

    def execute(self) -> str:
        self.calls += 1
        return self.body


@pytest.fixture
def fake_request() -> FakeRequest:
    return FakeRequest()


@pytest.fixture
def make_request() -> type[FakeRequest]:
    """The FakeRequest class, for tests that need several identities."""
    return FakeRequest


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """An existing, empty cache directory."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME at
    subdirectories of tmp_path, clears SWEEPCACHE_* variables, and changes
    the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("sweepcache.config._is_xdg_platform", lambda: True)

    for var in ["SWEEPCACHE_BASE_URL", "SWEEPCACHE_CACHE_PATH"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless PLAIN output manager."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    return output


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
