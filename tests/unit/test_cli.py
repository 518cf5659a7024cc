"""
Unit tests for the history-sync command-line tool.
"""

import json

import pytest

from history_sync import __version__
from history_sync.cli import main
from history_sync.configs.settings import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(EVENTS_FILE=tmp_path / "events.jsonl")


@pytest.fixture
def git_log(tmp_path):
    path = tmp_path / "git.log"
    path.write_text("a1b2c3d|Alice|2023-10-01T10:00:00Z|Fix login redirect\n", encoding="utf-8")
    return path


class TestCli:
    """Tests for the CLI subcommands."""

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert capsys.readouterr().out.strip() == __version__

    def test_no_command(self, capsys):
        assert main([]) == 2
        assert "usage" in capsys.readouterr().out

    def test_ingest(self, settings, git_log, capsys):
        assert main(["ingest", str(git_log)], settings=settings) == 0

        out = capsys.readouterr().out
        assert "1 events (git), 1 new" in out
        assert settings.EVENTS_FILE.exists()

    def test_ingest_missing_file(self, settings, tmp_path, capsys):
        assert main(["ingest", str(tmp_path / "nope.txt")], settings=settings) == 1
        assert "failed" in capsys.readouterr().err

    def test_store_override(self, settings, git_log, tmp_path):
        other = tmp_path / "other.jsonl"

        main(["--store", str(other), "ingest", str(git_log)], settings=settings)

        assert other.exists()
        assert not settings.EVENTS_FILE.exists()

    def test_aggregate(self, settings, capsys):
        assert main(["aggregate", "--days", "3"], settings=settings) == 0

        out = capsys.readouterr().out
        assert out.startswith("day ")
        assert "0 events in matrix" in out

    def test_summary(self, settings, capsys):
        assert main(["summary", "--days", "5"], settings=settings) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["window_days"] == 5
        assert data["total_events"] == 0

    def test_clear(self, settings, git_log, capsys):
        main(["ingest", str(git_log)], settings=settings)
        capsys.readouterr()

        assert main(["clear"], settings=settings) == 0
        assert capsys.readouterr().out.strip() == "Removed 1 events"
