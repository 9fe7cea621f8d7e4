"""Unit tests for the CLI — Typer command registration and basic behavior."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from jobcacher.cli.app import app
from jobcacher.cli.commands import _client
from jobcacher.config import CacheSettings
from jobcacher.core.errors import TransportError
from jobcacher.core.registry_client import RegistryClient

runner = CliRunner()


@pytest.fixture
def built(monkeypatch: pytest.MonkeyPatch, transport) -> list[CacheSettings]:
    """Route CLI client construction to the in-memory registry."""
    seen: list[CacheSettings] = []

    def _build(settings: CacheSettings) -> RegistryClient:
        seen.append(settings)
        return RegistryClient(settings.to_registry_config(), transport=transport)

    monkeypatch.setattr(_client, "build_client", _build)
    for name in ("REGISTRY_URL", "NAMESPACE", "USERNAME", "PASSWORD", "INSECURE", "LOG_LEVEL"):
        monkeypatch.delenv(f"JOBCACHER_{name}", raising=False)
    return seen


class TestCliApp:
    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("exists", "upload", "download", "delete", "test-connection"):
            assert command in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()


class TestCacheCommands:
    def test_exists_absent(self, built):
        result = runner.invoke(app, ["exists", "job", "cache.tar"])
        assert result.exit_code == 1
        assert "absent" in result.output

    def test_upload_exists_download_delete(self, built, tmp_path: Path):
        source = tmp_path / "cache.tar.gz"
        source.write_bytes(b"archive")
        target = tmp_path / "restored.tar.gz"

        assert runner.invoke(app, ["upload", "job", "cache.tar.gz", str(source)]).exit_code == 0
        assert runner.invoke(app, ["exists", "job", "cache.tar.gz"]).exit_code == 0
        result = runner.invoke(app, ["download", "job", "cache.tar.gz", str(target)])
        assert result.exit_code == 0
        assert target.read_bytes() == b"archive"
        assert runner.invoke(app, ["delete", "job", "cache.tar.gz"]).exit_code == 0
        assert runner.invoke(app, ["exists", "job", "cache.tar.gz"]).exit_code == 1

    def test_delete_missing_fails(self, built):
        result = runner.invoke(app, ["delete", "job", "cache.tar"])
        assert result.exit_code == 1

    def test_upload_missing_source_fails(self, built, tmp_path: Path):
        result = runner.invoke(app, ["upload", "job", "cache.tar", str(tmp_path / "nope.tar")])
        assert result.exit_code == 1

    def test_global_options_override_settings(self, built):
        result = runner.invoke(
            app,
            [
                "--registry-url",
                "https://r.example.com",
                "--namespace",
                "team",
                "--username",
                "robot",
                "--password",
                "s3cret",
                "exists",
                "job",
                "cache.tar",
            ],
        )
        assert result.exit_code == 1
        settings = built[-1]
        assert settings.registry_url == "https://r.example.com"
        assert settings.namespace == "team"
        assert settings.credentials is not None


class TestConnectionCommand:
    def test_success(self, built):
        result = runner.invoke(app, ["--namespace", "team", "test-connection"])
        assert result.exit_code == 0
        assert "Connection OK" in result.output

    def test_failure(self, built, transport):
        transport.fail_with["push_blob"] = TransportError("401 unauthorized")
        result = runner.invoke(app, ["test-connection"])
        assert result.exit_code == 1
