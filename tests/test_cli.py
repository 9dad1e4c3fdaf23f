from __future__ import annotations

import gzip
import hashlib
import json
import logging
from pathlib import Path

from typer.testing import CliRunner

import dbdata_sync.cli as cli_module
from dbdata_sync.config import NexusConfig
from dbdata_sync.errors import ArtifactNotFoundError

_NEXUS_ENV = {
    "NEXUS_BASE_URL": None,
    "NEXUS_REPOSITORY": None,
    "NEXUS_USERNAME": None,
    "NEXUS_PASSWORD": None,
}


class FakeNexusClient:
    artifacts: dict[str, bytes] = {}
    fetched: list[str] = []
    configs: list[NexusConfig] = []

    def __init__(self, config: NexusConfig) -> None:
        self.configs.append(config)

    def get_checksum(self, path: str) -> str:
        if path not in self.artifacts:
            raise ArtifactNotFoundError(f"artifact is not indexed path={path}", path=path)
        return hashlib.md5(self.artifacts[path]).hexdigest()

    def fetch(self, path: str, destination: Path) -> None:
        if path not in self.artifacts:
            raise ArtifactNotFoundError(f"download found no artifact path={path}", path=path)
        self.fetched.append(path)
        destination.write_bytes(self.artifacts[path])


def _install_fake_client(monkeypatch, artifacts: dict[str, bytes]) -> type[FakeNexusClient]:
    monkeypatch.setattr(FakeNexusClient, "artifacts", dict(artifacts))
    monkeypatch.setattr(FakeNexusClient, "fetched", [])
    monkeypatch.setattr(FakeNexusClient, "configs", [])
    monkeypatch.setattr(cli_module, "NexusClient", FakeNexusClient)
    return FakeNexusClient


def _write_manifest(path: Path, records: list[dict[str, str]]) -> None:
    path.write_text(json.dumps(records), encoding="utf-8")


def _sync_args(input_file: Path, data_folder: Path) -> list[str]:
    return [
        "sync",
        "--input-file",
        str(input_file),
        "--data-folder",
        str(data_folder),
        "--nexus-url",
        "https://nexus.example.com",
        "--nexus-repo",
        "dbdata",
        "--nexus-username",
        "reader",
    ]


def test_cli_sync_downloads_then_reports_up_to_date(monkeypatch, tmp_path) -> None:
    manifest = tmp_path / "initdb.json"
    _write_manifest(manifest, [{"collection": "users", "path": "users/data"}])
    data_folder = tmp_path / "dbdata"
    client_cls = _install_fake_client(
        monkeypatch, {"users/data.gz": gzip.compress(b'[{"name": "alice"}]')}
    )
    runner = CliRunner()
    env = _NEXUS_ENV | {"NEXUS_PASSWORD": "secret"}

    first = runner.invoke(cli_module.app, _sync_args(manifest, data_folder), env=env)

    assert first.exit_code == 0, first.output
    assert "downloaded=1 up_to_date=0" in first.output
    assert (data_folder / "users" / "data").read_bytes() == b'[{"name": "alice"}]'
    assert client_cls.configs[0].password == "secret"

    second = runner.invoke(cli_module.app, _sync_args(manifest, data_folder), env=env)

    assert second.exit_code == 0, second.output
    assert "downloaded=0 up_to_date=1" in second.output
    assert client_cls.fetched == ["users/data.gz"]


def test_cli_sync_missing_nexus_settings_shows_usage(monkeypatch, tmp_path) -> None:
    manifest = tmp_path / "initdb.json"
    _write_manifest(manifest, [])
    _install_fake_client(monkeypatch, {})
    runner = CliRunner()

    result = runner.invoke(
        cli_module.app,
        _sync_args(manifest, tmp_path / "dbdata"),
        env=_NEXUS_ENV,
    )

    assert result.exit_code == 1
    assert "are required" in result.output
    assert "Usage:" in result.output


def test_cli_sync_missing_input_file_shows_usage(monkeypatch, tmp_path) -> None:
    _install_fake_client(monkeypatch, {})
    runner = CliRunner()

    result = runner.invoke(
        cli_module.app,
        _sync_args(tmp_path / "missing.json", tmp_path / "dbdata"),
        env=_NEXUS_ENV | {"NEXUS_PASSWORD": "secret"},
    )

    assert result.exit_code == 1
    assert "does not exist" in result.output
    assert "Usage:" in result.output


def test_cli_sync_aborts_on_first_failing_entry(monkeypatch, tmp_path) -> None:
    manifest = tmp_path / "initdb.json"
    _write_manifest(
        manifest,
        [
            {"collection": "a", "path": "a/data"},
            {"collection": "b", "path": "b/data"},
            {"collection": "c", "path": "c/data"},
        ],
    )
    data_folder = tmp_path / "dbdata"
    client_cls = _install_fake_client(
        monkeypatch,
        {
            "a/data.gz": gzip.compress(b"a"),
            "c/data.gz": gzip.compress(b"c"),
        },
    )
    runner = CliRunner()

    result = runner.invoke(
        cli_module.app,
        _sync_args(manifest, data_folder),
        env=_NEXUS_ENV | {"NEXUS_PASSWORD": "secret"},
    )

    assert result.exit_code == 1
    assert "sync failed at entry 2 path=b/data" in result.output
    assert client_cls.fetched == ["a/data.gz"]
    assert not (data_folder / "c").exists()


def test_cli_sync_malformed_manifest_fails(monkeypatch, tmp_path) -> None:
    manifest = tmp_path / "initdb.json"
    manifest.write_text('{"path": "users/data"}', encoding="utf-8")
    _install_fake_client(monkeypatch, {})
    runner = CliRunner()

    result = runner.invoke(
        cli_module.app,
        _sync_args(manifest, tmp_path / "dbdata"),
        env=_NEXUS_ENV | {"NEXUS_PASSWORD": "secret"},
    )

    assert result.exit_code == 1
    assert "must be an array" in result.output


def test_cli_manifest_lists_entries(tmp_path) -> None:
    manifest = tmp_path / "initdb.json"
    _write_manifest(
        manifest,
        [
            {"collection": "users", "path": "users/data"},
            {"collection": "orders", "path": "orders/data"},
        ],
    )
    runner = CliRunner()

    result = runner.invoke(cli_module.app, ["manifest", "--input-file", str(manifest)])

    assert result.exit_code == 0
    assert "users/data.gz" in result.output
    assert "entries=2" in result.output


def test_cli_sync_verbose_enables_debug_logging(monkeypatch, tmp_path) -> None:
    manifest = tmp_path / "initdb.json"
    _write_manifest(manifest, [{"collection": "users", "path": "users/data"}])
    _install_fake_client(monkeypatch, {"users/data.gz": gzip.compress(b"[]")})
    root_logger = logging.getLogger()
    original_level = root_logger.level
    runner = CliRunner()

    try:
        quiet = runner.invoke(
            cli_module.app,
            _sync_args(manifest, tmp_path / "quiet"),
            env=_NEXUS_ENV | {"NEXUS_PASSWORD": "secret"},
        )
        assert quiet.exit_code == 0, quiet.output
        assert root_logger.level == original_level

        verbose = runner.invoke(
            cli_module.app,
            [*_sync_args(manifest, tmp_path / "verbose"), "--verbose"],
            env=_NEXUS_ENV | {"NEXUS_PASSWORD": "secret"},
        )
        assert verbose.exit_code == 0, verbose.output
        assert root_logger.level == logging.DEBUG
    finally:
        root_logger.setLevel(original_level)
