"""Tests for CLI commands - upload, download, config."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from directupload.client.cli import cli

API = "https://api.test"
SIGNED_URLS = f"{API}/api/signed-urls"
SERVER_OPTIONS = ["--server", API, "--token", "secret-token"]


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_dir(tmp_path: Path) -> Iterator[Path]:
    """Point the CLI at a temporary config directory."""
    config = tmp_path / ".directupload"
    with patch("directupload.client.cli.config.get_config_dir", return_value=config):
        yield config


@pytest.fixture
def local_file(tmp_path: Path) -> Path:
    """Create a small file to upload."""
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello world")
    return path


class TestUploadCommand:
    """Tests for 'directupload upload' command."""

    def test_upload(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, local_file: Path, httpx_mock
    ) -> None:
        """Upload should PUT the file to the signed URL."""
        httpx_mock.add_response(
            method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/docs/notes.txt?sig=1"}
        )
        httpx_mock.add_response(method="PUT", url="https://bucket.test/docs/notes.txt?sig=1")

        result = runner.invoke(cli, ["upload", str(local_file), "docs/notes.txt", *SERVER_OPTIONS])

        assert result.exit_code == 0, result.output
        assert "↑ docs/notes.txt" in result.output
        assert "100.0%" in result.output
        put = httpx_mock.get_request(method="PUT")
        assert put.content == b"hello world"
        assert put.headers["Content-Type"] == "text/plain"
        assert put.headers["Content-Length"] == "11"
        body = json.loads(httpx_mock.get_request(method="POST").content)
        assert body == {"operation": "upload", "path": "docs/notes.txt", "content_type": "text/plain"}

    def test_upload_content_type_option(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, local_file: Path, httpx_mock
    ) -> None:
        """--content-type should override the guessed type."""
        httpx_mock.add_response(method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/x"})
        httpx_mock.add_response(method="PUT", url="https://bucket.test/x")

        result = runner.invoke(
            cli,
            ["upload", str(local_file), "x", "--content-type", "text/markdown", "--no-progress",
             *SERVER_OPTIONS],
        )

        assert result.exit_code == 0, result.output
        assert "%" not in result.output
        assert httpx_mock.get_request(method="PUT").headers["Content-Type"] == "text/markdown"

    def test_upload_rejected(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, local_file: Path, httpx_mock
    ) -> None:
        """A rejected PUT should exit with an error."""
        httpx_mock.add_response(method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/x"})
        httpx_mock.add_response(method="PUT", url="https://bucket.test/x", status_code=403)

        result = runner.invoke(cli, ["upload", str(local_file), "x", *SERVER_OPTIONS])

        assert result.exit_code == 1
        assert "TransportError" in result.output
        assert "HTTP 403" in result.output

    def test_upload_authorization_denied(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, local_file: Path, httpx_mock
    ) -> None:
        """A rejected signed URL request should exit with AuthorizationError."""
        httpx_mock.add_response(
            method="POST", url=SIGNED_URLS, status_code=401, json={"detail": "bad token"}
        )

        result = runner.invoke(cli, ["upload", str(local_file), "x", *SERVER_OPTIONS])

        assert result.exit_code == 1
        assert "AuthorizationError" in result.output
        assert "bad token" in result.output

    def test_upload_missing_file(self, runner: CliRunner, config_dir: Path) -> None:
        """Upload should fail for files that do not exist."""
        result = runner.invoke(cli, ["upload", "/nonexistent/file", "x", *SERVER_OPTIONS])
        assert result.exit_code != 0

    def test_upload_without_server(
        self, runner: CliRunner, config_dir: Path, local_file: Path
    ) -> None:
        """Upload should fail when no server is configured."""
        result = runner.invoke(cli, ["upload", str(local_file), "x"])

        assert result.exit_code == 1
        assert "No server configured" in result.output

    def test_upload_uses_saved_config(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, local_file: Path, httpx_mock
    ) -> None:
        """Upload should use the server and token from the config file."""
        config_dir.mkdir()
        (config_dir / "config.json").write_text(
            json.dumps({"server_url": API, "token": "saved-token", "expires_in": "120"})
        )
        httpx_mock.add_response(method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/x"})
        httpx_mock.add_response(method="PUT", url="https://bucket.test/x")

        result = runner.invoke(cli, ["upload", str(local_file), "x"])

        assert result.exit_code == 0, result.output
        post = httpx_mock.get_request(method="POST")
        assert post.headers["Authorization"] == "Bearer saved-token"
        assert json.loads(post.content)["expires_in"] == 120

    def test_upload_invalid_saved_config(
        self, runner: CliRunner, config_dir: Path, local_file: Path
    ) -> None:
        """Invalid saved settings should exit with an error."""
        config_dir.mkdir()
        (config_dir / "config.json").write_text(json.dumps({"chunk_size": "0"}))

        result = runner.invoke(cli, ["upload", str(local_file), "x", *SERVER_OPTIONS])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestDownloadCommand:
    """Tests for 'directupload download' command."""

    def test_download(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, tmp_path: Path, httpx_mock
    ) -> None:
        """Download should save the object into the output directory."""
        httpx_mock.add_response(
            method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/docs/report.pdf?sig=2"}
        )
        httpx_mock.add_response(
            method="GET", url="https://bucket.test/docs/report.pdf?sig=2", content=b"%PDF-1.7"
        )
        output = tmp_path / "downloads"

        result = runner.invoke(
            cli, ["download", "docs/report.pdf", "--output", str(output), *SERVER_OPTIONS]
        )

        assert result.exit_code == 0, result.output
        assert (output / "report.pdf").read_bytes() == b"%PDF-1.7"
        assert "↓ docs/report.pdf" in result.output
        body = json.loads(httpx_mock.get_request(method="POST").content)
        assert body == {"operation": "download", "path": "docs/report.pdf"}

    def test_download_filename(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, tmp_path: Path, httpx_mock
    ) -> None:
        """--filename should rename the saved file."""
        httpx_mock.add_response(method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/r"})
        httpx_mock.add_response(method="GET", url="https://bucket.test/r", content=b"data")

        result = runner.invoke(
            cli,
            ["download", "docs/r", "-o", str(tmp_path), "--filename", "copy.bin", *SERVER_OPTIONS],
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "copy.bin").read_bytes() == b"data"

    def test_download_not_found(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, tmp_path: Path, httpx_mock
    ) -> None:
        """A 404 should exit with an error and write nothing."""
        httpx_mock.add_response(method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/r"})
        httpx_mock.add_response(method="GET", url="https://bucket.test/r", status_code=404)

        result = runner.invoke(cli, ["download", "r", "-o", str(tmp_path / "out"), *SERVER_OPTIONS])

        assert result.exit_code == 1
        assert "HTTP 404" in result.output
        assert not (tmp_path / "out").exists()

    def test_download_no_clobber(  # type: ignore[no-untyped-def]
        self, runner: CliRunner, config_dir: Path, tmp_path: Path, httpx_mock
    ) -> None:
        """--no-clobber should refuse to overwrite an existing file."""
        (tmp_path / "r").write_bytes(b"old")
        httpx_mock.add_response(method="POST", url=SIGNED_URLS, json={"url": "https://bucket.test/r"})
        httpx_mock.add_response(method="GET", url="https://bucket.test/r", content=b"new")

        result = runner.invoke(
            cli, ["download", "r", "-o", str(tmp_path), "--no-clobber", *SERVER_OPTIONS]
        )

        assert result.exit_code == 1
        assert "StreamError" in result.output
        assert (tmp_path / "r").read_bytes() == b"old"


class TestConfigCommand:
    """Tests for 'directupload config' commands."""

    def test_set_and_show(self, runner: CliRunner, config_dir: Path) -> None:
        """Saved settings should be shown with the token masked."""
        assert runner.invoke(cli, ["config", "set", "server_url", API]).exit_code == 0
        assert runner.invoke(cli, ["config", "set", "token", "abcdef123456"]).exit_code == 0

        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert f"server_url: {API}" in result.output
        assert "token: ********3456" in result.output
        saved = json.loads((config_dir / "config.json").read_text())
        assert saved == {"server_url": API, "token": "abcdef123456"}

    def test_show_empty(self, runner: CliRunner, config_dir: Path) -> None:
        """Show should say when nothing is saved."""
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "No configuration saved" in result.output

    def test_set_invalid_value(self, runner: CliRunner, config_dir: Path) -> None:
        """Numeric settings should be validated."""
        result = runner.invoke(cli, ["config", "set", "chunk_size", "big"])

        assert result.exit_code == 1
        assert not (config_dir / "config.json").exists()

    def test_set_unknown_key(self, runner: CliRunner, config_dir: Path) -> None:
        """Unknown keys should be rejected."""
        result = runner.invoke(cli, ["config", "set", "color", "blue"])
        assert result.exit_code != 0
