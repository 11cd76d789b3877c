"""End-to-end tests of the CLI commands against a filesystem store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cachevault.cli.common.context import LogLevel, get_cli_context
from cachevault.cli.typer_app import app, main_callback
from cachevault.core.hasher import hash_files


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def filesystem_backend(monkeypatch: pytest.MonkeyPatch, store_root: Path) -> Path:
    monkeypatch.setenv("CACHEVAULT_STORE__BACKEND", "filesystem")
    monkeypatch.setenv("CACHEVAULT_STORE__ROOT", str(store_root))
    return store_root


def test_help_lists_commands(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("save", "restore", "hash-glob", "hash-files"):
        assert command in result.output


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "CacheVault CLI v0.1.0" in result.output


class TestMainCallback:
    def test_debug_forces_debug_level(self) -> None:
        main_callback(verbose=0, log_level=LogLevel.WARNING, json_output=False, debug=True, config_path=None)

        context = get_cli_context()
        assert context.debug is True
        assert context.get_effective_log_level() == "DEBUG"

    def test_debug_from_configuration(self, temp_dir: Path) -> None:
        config = temp_dir / "cachevault.toml"
        config.write_text("[app]\ndebug = true\n", encoding="utf-8")

        main_callback(verbose=0, log_level=LogLevel.INFO, json_output=True, debug=False, config_path=config)

        context = get_cli_context()
        assert context.debug is True
        assert context.json_output is True

    def test_invalid_configuration_exits(self, runner: CliRunner, temp_dir: Path) -> None:
        config = temp_dir / "bad.toml"
        config.write_text('[store]\nbackend = "filesystem"\n', encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "hash-glob", "*.lock"])

        assert result.exit_code == 1
        assert "Error: Invalid configuration" in result.output


class TestHashCommands:
    def test_hash_glob_prints_digest(self, runner: CliRunner, temp_dir: Path) -> None:
        (temp_dir / "deps").mkdir()
        (temp_dir / "deps" / "a.lock").write_bytes(b"alpha")
        (temp_dir / "notes.txt").write_bytes(b"ignored")

        result = runner.invoke(app, ["hash-glob", str(temp_dir / "**" / "*.lock")])

        assert result.exit_code == 0
        assert result.output.strip() == hash_files([temp_dir / "deps" / "a.lock"])

    def test_hash_glob_without_matches(self, runner: CliRunner, temp_dir: Path) -> None:
        result = runner.invoke(app, ["hash-glob", str(temp_dir / "*.nothing")])

        assert result.exit_code == 0
        assert result.output.strip() == hash_files([])

    def test_hash_files_json(self, runner: CliRunner, temp_dir: Path) -> None:
        lock = temp_dir / "poetry.lock"
        lock.write_bytes(b"content")

        result = runner.invoke(app, ["--json", "hash-files", str(lock)])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["success"] is True
        assert payload["command"] == "hash-files"
        assert payload["data"] == {"digest": hash_files([lock])}

    def test_hash_files_missing_file(self, runner: CliRunner, temp_dir: Path) -> None:
        result = runner.invoke(app, ["hash-files", str(temp_dir / "absent.lock")])

        assert result.exit_code == 1
        assert "Error: failed to hash" in result.output

    def test_debug_logs_steps(self, runner: CliRunner, temp_dir: Path) -> None:
        (temp_dir / "a.lock").write_bytes(b"alpha")

        result = runner.invoke(app, ["--debug", "hash-files", str(temp_dir / "a.lock")])

        assert result.exit_code == 0
        assert "stating" in result.output
        assert "hashing" in result.output


@pytest.mark.usefixtures("filesystem_backend")
class TestSaveRestore:
    def test_save_then_restore(self, runner: CliRunner, sample_tree: Path, temp_dir: Path) -> None:
        saved = runner.invoke(
            app,
            ["--json", "--log-level", "WARNING", "save", "--bucket", "ci", "--key", "deps-1", "--dir", str(sample_tree)],
        )
        assert saved.exit_code == 0, saved.output
        save_payload = json.loads(saved.output)
        assert save_payload["data"]["created"] is True
        assert save_payload["data"]["bytes_written"] > 0

        out = temp_dir / "restored"
        restored = runner.invoke(
            app,
            ["--json", "--log-level", "WARNING", "restore", "--bucket", "ci", "--key", "deps-2", "--key", "deps-", "--dir", str(out)],
        )
        assert restored.exit_code == 0, restored.output
        restore_payload = json.loads(restored.output)
        assert restore_payload["data"]["key"] == "deps-1"
        assert restore_payload["data"]["size"] == save_payload["data"]["bytes_written"]
        assert (out / "lib" / "nested" / "deep.txt").read_text(encoding="utf-8") == "deep\n"

    def test_second_save_reports_existing(self, runner: CliRunner, sample_tree: Path) -> None:
        args = ["--log-level", "WARNING", "save", "--bucket", "ci", "--key", "deps-1", "--dir", str(sample_tree)]
        first = runner.invoke(app, args)
        second = runner.invoke(app, ["--json", *args])

        assert first.exit_code == 0
        assert "Saved" in first.output
        assert second.exit_code == 0
        assert json.loads(second.output)["data"]["reason"] == "exists"

    def test_restore_without_match(self, runner: CliRunner, temp_dir: Path) -> None:
        result = runner.invoke(app, ["restore", "--bucket", "ci", "--key", "deps-", "--dir", str(temp_dir / "out")])

        assert result.exit_code == 1
        assert 'Error: failed to find cached objects among keys ["deps-"]' in result.output

    def test_restore_without_match_json(self, runner: CliRunner, temp_dir: Path) -> None:
        result = runner.invoke(
            app,
            ["--json", "restore", "--bucket", "ci", "--key", "deps-", "--dir", str(temp_dir / "out")],
        )

        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["success"] is False
        assert payload["data"]["error_code"] == "CACHE_NOT_FOUND"

    def test_empty_key_rejected(self, runner: CliRunner, sample_tree: Path) -> None:
        result = runner.invoke(app, ["save", "--bucket", "ci", "--key", "", "--dir", str(sample_tree)])

        assert result.exit_code == 1
        assert "Error: missing key" in result.output

    def test_missing_required_option(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["save", "--bucket", "ci"])

        assert result.exit_code == 2
