# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the sqlchain CLI."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from sqlchain import __version__
from sqlchain.cli import coerce_param, load_config, main


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    monkeypatch.delenv("SQLCHAIN_URL", raising=False)
    return CliRunner()


@pytest.fixture
def db_url(tmp_path, runner) -> str:
    """URL of a SQLite file holding one table with two rows."""
    url = f"sqlite:{tmp_path / 'cli.db'}"
    for args in (
        ["query", "CREATE TABLE t (a INTEGER, b TEXT)"],
        ["query", "INSERT INTO t VALUES (?, ?), (?, ?)", "1", "x", "2", "NULL"],
    ):
        result = runner.invoke(main, ["--url", url, *args])
        assert result.exit_code == 0, result.output
    return url


class TestHelpers:
    """Parameter and config helpers."""

    def test_coerce_param(self):
        assert coerce_param("12") == 12
        assert coerce_param("1.5") == 1.5
        assert coerce_param("null") is None
        assert coerce_param("abc") == "abc"

    def test_load_config_prefers_url(self, tmp_path):
        ini = tmp_path / "config.ini"
        ini.write_text("[database]\ndriver = mysql\n")
        assert load_config("sqlite::memory:", str(ini)).driver == "sqlite"
        assert load_config(None, str(ini)).driver == "mysql"


class TestCommands:
    """ping / query / version."""

    def test_version(self, runner):
        result = runner.invoke(main, ["version"])
        assert result.exit_code == 0
        assert f"sqlchain {__version__}" in result.output

    def test_ping(self, runner, tmp_path):
        result = runner.invoke(main, ["--url", f"sqlite:{tmp_path / 'p.db'}", "ping"])
        assert result.exit_code == 0, result.output
        assert "Connected" in result.output

    def test_ping_with_config_file(self, runner, tmp_path):
        ini = tmp_path / "config.ini"
        ini.write_text(f"[database]\ndriver = sqlite\ndatabase = {tmp_path / 'c.db'}\n")
        result = runner.invoke(main, ["--config", str(ini), "ping"])
        assert result.exit_code == 0, result.output

    def test_ping_from_environment(self, runner, tmp_path):
        result = runner.invoke(
            main, ["ping"], env={"SQLCHAIN_URL": f"sqlite:{tmp_path / 'e.db'}"}
        )
        assert result.exit_code == 0, result.output

    def test_query_table(self, runner, db_url):
        result = runner.invoke(main, ["--url", db_url, "query", "SELECT a, b FROM t ORDER BY a"])
        assert result.exit_code == 0, result.output
        assert "x" in result.output
        assert "NULL" in result.output
        assert "2 row(s)" in result.output

    def test_query_single_value(self, runner, db_url):
        result = runner.invoke(
            main,
            ["--url", db_url, "query", "SELECT b FROM t WHERE a = ?", "1", "--index", "0",
             "--column", "b"],
        )
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "x"

    def test_query_single_row(self, runner, db_url):
        result = runner.invoke(
            main, ["--url", db_url, "query", "SELECT a, b FROM t ORDER BY a", "--index", "1"]
        )
        assert result.exit_code == 0, result.output
        assert "NULL" in result.output
        assert "row(s)" not in result.output

    def test_query_failure_exits_1(self, runner, db_url):
        result = runner.invoke(main, ["--url", db_url, "query", "SELECT * FROM missing"])
        assert result.exit_code == 1
        assert "DriverError" in result.output

    def test_invalid_url_exits_1(self, runner):
        result = runner.invoke(main, ["--url", "nonsense", "ping"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_unknown_driver_exits_1(self, runner):
        result = runner.invoke(main, ["--url", "oracle://db/x", "ping"])
        assert result.exit_code == 1
        assert "Unknown database type" in result.output
