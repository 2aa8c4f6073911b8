"""Tests for the notebook-export CLI."""

import json
import subprocess
import sys

import pytest
import yaml

from notebook_export import __main__ as cli
from notebook_export.lib.env import EXPORT_ROOT_ENV
from notebook_export.lib.state import STATE_FILE_NAME


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    """Keep the CLI from reconfiguring the root logger during tests."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(cli, "load_env_file", lambda *args, **kwargs: False)


class TestCLIHelp:
    """Tests for CLI help and basic invocation."""

    def test_help_flag(self):
        result = subprocess.run(
            [sys.executable, "-m", "notebook_export", "--help"],
            capture_output=True,
            text=True,
        )

        assert result.returncode == 0
        assert "usage" in result.stdout.lower()

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == cli.EXIT_USAGE
        assert "usage" in capsys.readouterr().out.lower()


class TestStateCommands:
    """Tests for 'state show', 'state forget' and 'state reset'."""

    def test_show_empty(self, export_root, capsys):
        assert cli.main(["state", "show", "--root", str(export_root)]) == cli.EXIT_OK
        assert "No export state recorded" in capsys.readouterr().out

    def test_show_lists_entries(self, export_root, write_state, capsys):
        write_state({"nb1": "2024-01-01T02:00:00+02:00"})

        cli.main(["state", "show", "--root", str(export_root)])

        out = capsys.readouterr().out
        assert "nb1" in out
        assert "2024-01-01T00:00:00Z" in out

    def test_show_json(self, export_root, write_state, capsys):
        write_state({"nb1": "2024-01-01T00:00:00Z", "bad": "nope"})

        cli.main(["state", "show", "--json", "--root", str(export_root)])

        assert json.loads(capsys.readouterr().out) == {"nb1": "2024-01-01T00:00:00Z"}

    def test_root_from_environment(self, export_root, write_state, monkeypatch, capsys):
        write_state({"nb1": "2024-01-01T00:00:00Z"})
        monkeypatch.setenv(EXPORT_ROOT_ENV, str(export_root))

        assert cli.main(["state", "show"]) == cli.EXIT_OK
        assert "nb1" in capsys.readouterr().out

    def test_missing_root_is_usage_error(self, monkeypatch, capsys):
        monkeypatch.delenv(EXPORT_ROOT_ENV, raising=False)

        assert cli.main(["state", "show"]) == cli.EXIT_USAGE
        assert EXPORT_ROOT_ENV in capsys.readouterr().err

    def test_forget_persists(self, export_root, write_state, read_state, capsys):
        write_state({"nb1": "2024-01-01T00:00:00Z", "nb2": "2024-01-02T00:00:00Z"})

        assert cli.main(["state", "forget", "nb1", "--root", str(export_root)]) == cli.EXIT_OK

        assert read_state() == {"nb2": "2024-01-02T00:00:00Z"}
        assert "Forgot nb1" in capsys.readouterr().out

    def test_forget_unknown(self, export_root, capsys):
        assert cli.main(["state", "forget", "nope", "--root", str(export_root)]) == cli.EXIT_OK
        assert "no recorded export" in capsys.readouterr().out
        assert not (export_root / STATE_FILE_NAME).exists()

    def test_reset_persists(self, export_root, write_state, read_state, capsys):
        write_state({"nb1": "2024-01-01T00:00:00Z", "nb2": "2024-01-02T00:00:00Z"})

        assert cli.main(["state", "reset", "--root", str(export_root)]) == cli.EXIT_OK

        assert read_state() == {}
        assert "Cleared 2" in capsys.readouterr().out


class TestRunCommand:
    """Tests for 'run'."""

    def _write_config(self, tmp_path, export_root, **overrides):
        data = {
            "export_root": str(export_root),
            "service": {"class": "tests.helpers:RecordingExportService"},
            "notebooks": [{"id": "nb1", "title": "Work"}, {"id": "nb2"}],
        }
        data.update(overrides)
        config_file = tmp_path / "run.yaml"
        config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
        return config_file

    def test_run_exports_and_records_state(self, tmp_path, export_root, read_state, capsys):
        config_file = self._write_config(tmp_path, export_root)

        assert cli.main(["run", str(config_file)]) == cli.EXIT_OK

        assert set(read_state()) == {"nb1", "nb2"}
        out = capsys.readouterr().out
        assert "EXPORT SUMMARY (md)" in out
        assert "Exported:     2" in out

    def test_run_with_failures_exits_nonzero(self, tmp_path, export_root, capsys):
        config_file = self._write_config(
            tmp_path,
            export_root,
            service={
                "class": "tests.helpers:RecordingExportService",
                "options": {"failures": {"nb2": ["conversion failed"]}},
            },
        )

        assert cli.main(["run", str(config_file)]) == cli.EXIT_FAILED
        assert "FAILED nb2: conversion failed" in capsys.readouterr().out

    def test_run_bad_config(self, tmp_path, capsys):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("notebooks: []\n", encoding="utf-8")

        assert cli.main(["run", str(config_file)]) == cli.EXIT_FAILED
        assert "ERROR" in capsys.readouterr().err

    def test_run_config_path_is_a_directory(self, tmp_path, capsys):
        assert cli.main(["run", str(tmp_path)]) == cli.EXIT_FAILED
        assert "Cannot read config file" in capsys.readouterr().err

    def test_run_full_flag(self, tmp_path, export_root, write_state, monkeypatch):
        write_state({"nb1": "2024-01-01T00:00:00Z"})
        config_file = self._write_config(tmp_path, export_root)
        captured = {}
        real_run = cli.run_incremental_export

        def spy(*args, **kwargs):
            captured.update(kwargs)
            return real_run(*args, **kwargs)

        monkeypatch.setattr(cli, "run_incremental_export", spy)

        cli.main(["run", str(config_file), "--full"])

        assert captured["full_export"] is True
