"""Tests for the admin CLI output layer.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet mode
- format_response and print_stats in each format
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from jsonshelf import output as output_module
from jsonshelf.models import NamespaceStats
from jsonshelf.output import (
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
    monkeypatch.setattr("jsonshelf.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("jsonshelf.output._is_tty", lambda: True)


@pytest.fixture()
def wide(monkeypatch):
    """Give Rich enough columns that table cells are not folded."""
    monkeypatch.setenv("COLUMNS", "200")


@pytest.fixture()
def sample_stats() -> list[NamespaceStats]:
    return [
        NamespaceStats(
            namespace="recipes/search",
            directory="/tmp/cache/recipes/search",
            entries=3,
            total_bytes=512,
            oldest_mtime=1_700_000_000.0,
            newest_mtime=1_700_000_100.0,
            ttl_seconds=3600.0,
            max_entries=100,
        ),
        NamespaceStats(
            namespace="recipes/info",
            directory="/tmp/cache/recipes/info",
            ttl_seconds=86400.0,
            max_entries=100,
        ),
    ]


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

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
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


class TestStdoutStderrDiscipline:
    def test_payload_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.info("Cache root: /tmp/cache")
        mgr.format_response({"results": [{"id": 1, "title": "Carbonara"}]})
        mgr.success("done")
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"results": [{"id": 1, "title": "Carbonara"}]}
        assert "Cache root" in captured.err
        assert "done" in captured.err

    @pytest.mark.parametrize("method", ["info", "success", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("message text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "message text" in captured.err

    def test_error_prefix_without_color(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).error("boom")
        assert "Error: boom" in capfd.readouterr().err

    def test_error_text_with_brackets_is_not_markup(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        OutputManager(format=OutputFormat.PLAIN).error("bad segment [red]")
        assert "bad segment [red]" in capfd.readouterr().err


class TestQuiet:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_error_and_data(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.error("broken")
        mgr.print_data("abc123")
        captured = capfd.readouterr()
        assert "broken" in captured.err
        assert "abc123" in captured.out


# ------------------------------------------------------------------ #
# Formats
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_json_none(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response(None)
        assert json.loads(capfd.readouterr().out) is None

    def test_json_is_indented_and_keeps_unicode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response({"name": "jalapeño"})
        out = capfd.readouterr().out
        assert out == '{\n  "name": "jalapeño"\n}\n'

    def test_plain_object_is_one_compact_line(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(
            {"id": 7, "tags": ["soup", "veg"]}
        )
        assert capfd.readouterr().out == '{"id":7,"tags":["soup","veg"]}\n'

    def test_plain_string_is_bare(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response("Minestrone")
        assert capfd.readouterr().out == "Minestrone\n"

    def test_plain_output_parses_back(self, capfd, non_tty):
        payload = [{"id": 1, "title": "A"}, {"id": 2, "title": None}]
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(payload)
        assert json.loads(capfd.readouterr().out) == payload

    def test_rich_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"key": "value"})
        out = capfd.readouterr().out
        assert "key" in out
        assert "value" in out


class TestPrintStats:
    def test_json_keeps_numbers(self, capfd, non_tty, sample_stats):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_stats(sample_stats)
        parsed = json.loads(capfd.readouterr().out)
        assert parsed[0]["namespace"] == "recipes/search"
        assert parsed[0]["entries"] == 3
        assert parsed[0]["total_bytes"] == 512
        assert parsed[0]["oldest_mtime"] == 1_700_000_000.0
        assert parsed[1]["oldest_mtime"] is None
        assert parsed[1]["available"] is True

    def test_plain_header_and_rows(self, capfd, non_tty, sample_stats):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_stats(
            sample_stats, title="ignored"
        )
        lines = capfd.readouterr().out.strip().split("\n")
        assert lines[0] == "namespace\tentries\tmax_entries\tttl_seconds\tbytes\toldest\tnewest"
        assert lines[1].startswith("recipes/search\t3\t100\t3600\t512\t")
        assert lines[2] == "recipes/info\t0\t100\t86400\t0\t-\t-"
        assert "ignored" not in "\n".join(lines)

    def test_plain_with_no_namespaces_prints_header_only(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_stats([])
        assert capfd.readouterr().out.strip().split("\n") == [
            "namespace\tentries\tmax_entries\tttl_seconds\tbytes\toldest\tnewest"
        ]

    def test_rich_table(self, capfd, non_tty, wide, sample_stats):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_stats(
            sample_stats, title="Cache namespaces"
        )
        out = capfd.readouterr().out
        assert "Cache namespaces" in out
        assert "recipes/search" in out
        assert "recipes/info" in out
        assert "(disabled)" not in out

    def test_rich_marks_unavailable_namespace(self, capfd, non_tty, wide):
        stats = NamespaceStats(
            namespace="locked/ns",
            directory="/nope/locked/ns",
            available=False,
            ttl_seconds=60.0,
            max_entries=10,
        )
        OutputManager(format=OutputFormat.RICH, no_color=True).print_stats([stats])
        out = capfd.readouterr().out
        assert "locked/ns" in out
        assert "(disabled)" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default_lazily(self):
        reset_output()
        assert output_module._output is None
        assert isinstance(get_output(), OutputManager)

    def test_set_output_is_used_by_convenience_functions(self, capfd, non_tty, sample_stats):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("abc")
        output_module.format_response({"a": 1})
        output_module.print_stats(sample_stats[1:])
        output_module.error("x")
        captured = capfd.readouterr()
        assert captured.out.split("\n")[:2] == ["abc", '{"a":1}']
        assert "recipes/info\t0\t100" in captured.out
        assert "Error: x" in captured.err
