"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- JSON and plain rendering of response bodies and cache stats
- print_table in all three modes
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from sweepcache import output as output_module
from sweepcache.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("sweepcache.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("sweepcache.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_tty_but_no_color(self, tty):
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Stream discipline
# ------------------------------------------------------------------ #


class TestStreams:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("<Item/>")
        captured = capfd.readouterr()
        assert captured.out == "<Item/>\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        "method, prefix",
        [("info", ""), ("success", ""), ("warning", "Warning: "), ("error", "Error: ")],
    )
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method, prefix):
        getattr(OutputManager(no_color=True), method)("cache swept")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == f"{prefix}cache swept\n"

    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warnings_and_errors(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.warning("disk full")
        mgr.error("bad path")
        err = capfd.readouterr().err
        assert "Warning: disk full" in err
        assert "Error: bad path" in err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("Cache hit: https://x")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(no_color=True, verbose=True).debug("Cache hit: https://x")
        assert capfd.readouterr().err == "[debug] Cache hit: https://x\n"


# ------------------------------------------------------------------ #
# format_response
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_stats_dict_as_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"entries": 2, "enabled": True})
        assert json.loads(capfd.readouterr().out) == {"entries": 2, "enabled": True}

    def test_json_string_is_reindented(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response('{"a":1}')
        assert capfd.readouterr().out == '{\n  "a": 1\n}\n'

    def test_xml_string_printed_verbatim_in_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response("<Item/>", "application/xml")
        assert capfd.readouterr().out == "<Item/>\n"

    def test_dict_as_key_value_in_plain(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response({"entries": 2, "size": 10})
        assert capfd.readouterr().out == "entries\t2\nsize\t10\n"

    def test_rich_mode_produces_output(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response(
            "<Item>1</Item>", "application/xml"
        )
        assert "Item" in capfd.readouterr().out


class TestPrintTable:
    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(["key", "value"], [["a", "1"]])
        assert json.loads(capfd.readouterr().out) == [{"key": "a", "value": "1"}]

    def test_plain(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(["key", "value"], [["a", "1"]])
        assert capfd.readouterr().out == "key\tvalue\na\t1\n"

    def test_rich(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["key", "value"], [["a", "1"]], title="Config"
        )
        out = capfd.readouterr().out
        assert "key" in out
        assert "Config" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_lazily(self):
        reset_output()
        first = get_output()
        assert get_output() is first

    def test_set_output_replaces(self):
        mgr = OutputManager(quiet=True)
        set_output(mgr)
        assert get_output() is mgr

    def test_reset_output(self):
        mgr = OutputManager()
        set_output(mgr)
        reset_output()
        assert get_output() is not mgr

    def test_convenience_functions_use_global(self, capfd, non_tty):
        set_output(OutputManager(no_color=True, verbose=True))
        output_module.warning("w")
        output_module.debug("d")
        err = capfd.readouterr().err
        assert "Warning: w" in err
        assert "[debug] d" in err
