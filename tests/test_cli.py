"""Tests for the seqgen command line."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta

import pytest
from click.testing import CliRunner

from seqgen.cli.main import cli
from seqgen.core.errors import NetworkError
from seqgen.core.state import to_ticks
from seqgen.counter.client import HttpCounterClient


@pytest.fixture(autouse=True)
def reset_root_handlers():
    """generate points the log handler at the runner's stderr; drop it afterwards."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)


@pytest.fixture
def paths(tmp_path):
    return ["--config", str(tmp_path / "seqgen.yaml"), "--state-file", str(tmp_path / "spsa.cfg")]


def _seed(tmp_path, issued_at: datetime, token: str = "42-abc.sql") -> None:
    (tmp_path / "spsa.cfg").write_text(f"{to_ticks(issued_at)},{token}")


class TestCLIGroup:
    def test_cli_has_expected_commands(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for cmd in ("generate", "last", "status", "ui"):
            assert cmd in result.output

    def test_generate_help(self):
        result = CliRunner().invoke(cli, ["generate", "--help"])
        assert result.exit_code == 0
        for opt in ("--mock", "--state-file", "--base-url", "--json"):
            assert opt in result.output


class TestGenerate:
    def test_prints_new_token(self, tmp_path, paths):
        result = CliRunner().invoke(cli, ["generate", "--mock", *paths])
        assert result.exit_code == 0
        assert result.stdout.strip() == "1-mock.sql"
        assert (tmp_path / "spsa.cfg").read_text().endswith(",1-mock.sql")

    def test_blocked_prints_cached_token(self, tmp_path, paths):
        _seed(tmp_path, datetime.now(UTC) - timedelta(hours=1))
        result = CliRunner().invoke(cli, ["generate", "--mock", *paths])
        assert result.exit_code == 0
        assert result.stdout.strip() == "42-abc.sql"
        assert "more than once within 24 hours" in result.stderr

    def test_json_output(self, paths):
        result = CliRunner().invoke(cli, ["generate", "--mock", "--json", *paths])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["kind"] == "generated"
        assert data["token"] == "1-mock.sql"

    def test_corrupt_state_exits_nonzero(self, tmp_path, paths):
        (tmp_path / "spsa.cfg").write_text("not a record")
        result = CliRunner().invoke(cli, ["generate", "--mock", *paths])
        assert result.exit_code == 1
        assert "corrupt_state" in result.stderr
        assert result.stdout == ""

    def test_network_error_exits_nonzero(self, paths, monkeypatch):
        def unreachable(self):
            raise NetworkError("Connection refused")

        monkeypatch.setattr(HttpCounterClient, "fetch_sequence", unreachable)
        result = CliRunner().invoke(
            cli, ["generate", "--base-url", "https://counter.example.test/", *paths]
        )
        assert result.exit_code == 1
        assert "Couldn't connect to global counter" in result.stderr
        assert "https://counter.example.test/" in result.stderr

    def test_config_file_sets_cooldown(self, tmp_path, paths):
        (tmp_path / "seqgen.yaml").write_text("cooldown_s: 60\n")
        _seed(tmp_path, datetime.now(UTC) - timedelta(minutes=5))
        result = CliRunner().invoke(cli, ["generate", "--mock", *paths])
        assert result.exit_code == 0
        assert result.stdout.strip() == "1-mock.sql"


class TestLast:
    def test_prints_cached_token(self, tmp_path, paths):
        _seed(tmp_path, datetime.now(UTC) - timedelta(days=10), "5-old.sql")
        result = CliRunner().invoke(cli, ["last", *paths])
        assert result.exit_code == 0
        assert result.stdout.strip() == "5-old.sql"

    def test_nothing_cached(self, paths):
        result = CliRunner().invoke(cli, ["last", *paths])
        assert result.exit_code == 1
        assert "No sequence has been generated yet" in result.stderr

    def test_corrupt_state(self, tmp_path, paths):
        (tmp_path / "spsa.cfg").write_text("x,y,z")
        result = CliRunner().invoke(cli, ["last", *paths])
        assert result.exit_code == 1
        assert "Corrupt state file" in result.stderr


class TestStatus:
    def test_no_state(self, paths):
        result = CliRunner().invoke(cli, ["status", *paths])
        assert result.exit_code == 0
        assert "Last sequence : none" in result.stdout
        assert "Next allowed  : now" in result.stdout

    def test_in_cooldown(self, tmp_path, paths):
        issued = datetime.now(UTC).replace(microsecond=0) - timedelta(hours=2)
        _seed(tmp_path, issued)
        result = CliRunner().invoke(cli, ["status", *paths])
        assert result.exit_code == 0
        assert "Last sequence : 42-abc.sql" in result.stdout
        retry = (issued + timedelta(hours=24)).strftime("%Y-%m-%d %H:%M:%S UTC")
        assert f"Next allowed  : {retry}" in result.stdout

    def test_far_future_timestamp_is_corrupt(self, tmp_path, paths):
        _seed(tmp_path, datetime(9999, 12, 31, 12, tzinfo=UTC))
        result = CliRunner().invoke(cli, ["status", *paths])
        assert result.exit_code == 1
        assert "out of range" in result.stderr


class TestLogOutput:
    def test_json_logs_cover_module_loggers(self, paths):
        result = CliRunner().invoke(
            cli, ["generate", "--mock", "--json-logs", "--log-level", "INFO", *paths]
        )
        assert result.exit_code == 0
        assert result.stdout.strip() == "1-mock.sql"

        lines = [line for line in result.stderr.splitlines() if line.strip()]
        events = [json.loads(line)["event"] for line in lines]
        assert "Generated sequence 1-mock.sql" in events

    def test_network_failure_reported_once(self, paths, monkeypatch):
        def unreachable(self):
            raise NetworkError("Connection refused")

        monkeypatch.setattr(HttpCounterClient, "fetch_sequence", unreachable)
        result = CliRunner().invoke(cli, ["generate", *paths])
        assert result.exit_code == 1
        assert result.stderr.count("Couldn't connect to global counter") == 1
        assert "Counter service unreachable" not in result.stderr
