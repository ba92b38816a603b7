"""Tests for the command-line interface."""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from pywti.api import WtiClient
from pywti.cli import main
from pywti.utils import checksum_bytes

API_URL = "https://wti.test"
EN = b"en:\n  hello: Hello\n"
FR = b"fr:\n  hello: Bonjour\n"


class FakeServer:
    """Serves a small project and records the requests it receives."""

    def __init__(self, en_checksum=None, fr_checksum=None):
        self.requests: list[httpx.Request] = []
        self.project = {
            "name": "Demo",
            "project_files": [
                {
                    "id": 10,
                    "name": "locales/en.yml",
                    "locale_code": "en",
                    "hash_file": en_checksum or checksum_bytes(EN),
                    "master_project_file_id": None,
                    "fresh": True,
                },
                {
                    "id": 11,
                    "name": "locales/fr.yml",
                    "locale_code": "fr",
                    "hash_file": fr_checksum or checksum_bytes(FR),
                    "master_project_file_id": 10,
                    "fresh": True,
                },
            ],
        }

    def __call__(self, request):
        request.read()
        self.requests.append(request)
        path = request.url.path
        if path == "/api/projects/proj_key.json":
            return httpx.Response(200, json={"project": self.project})
        if request.method == "GET" and path.endswith("/locales/fr"):
            return httpx.Response(200, content=FR)
        if request.method == "GET" and path.endswith("/locales/en"):
            return httpx.Response(200, content=EN)
        if request.method == "POST":
            return httpx.Response(201)
        return httpx.Response(202)

    def transfers(self):
        return [r for r in self.requests if not r.url.path.endswith(".json")]


class TestCLI:
    """Tests for the pywti commands."""

    @pytest.fixture
    def runner(self):
        # Wide console so rich does not wrap long temporary paths
        return CliRunner(env={"COLUMNS": "200"})

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def patch_client(self, server):
        def factory(api_key=None):
            return WtiClient(
                api_key=api_key or "proj_key",
                api_url=API_URL,
                transport=httpx.MockTransport(server),
            )

        return patch("pywti.cli.WtiClient", side_effect=factory)

    def invoke(self, runner, temp_dir, *args):
        return runner.invoke(
            main, ["--api-key", "proj_key", "-C", str(temp_dir), *args]
        )

    def test_help(self, runner):
        """Test that the help lists the commands."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "status", "pull", "push", "add", "rm"):
            assert command in result.output

    def test_missing_api_key(self, runner, temp_dir, monkeypatch):
        """Test that commands fail without an API key."""
        monkeypatch.delenv("WTI_API_KEY", raising=False)
        with patch("pywti.cli.config") as mock_config:
            mock_config.is_configured.return_value = False
            result = runner.invoke(main, ["-C", str(temp_dir), "pull"])

        assert result.exit_code == 1
        assert "API key not configured" in result.output

    def test_pull_fetches_target_files(self, runner, temp_dir):
        """Test that pull fetches missing target files only."""
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "pull")

        assert result.exit_code == 0, result.output
        assert (temp_dir / "locales" / "fr.yml").read_bytes() == FR
        assert not (temp_dir / "locales" / "en.yml").exists()
        assert [r.url.path for r in server.transfers()] == [
            "/api/projects/proj_key/files/11/locales/fr"
        ]

    def test_pull_all_includes_master(self, runner, temp_dir):
        """Test that --all also fetches the master file."""
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "pull", "--all", "-j", "2")

        assert result.exit_code == 0, result.output
        assert (temp_dir / "locales" / "en.yml").read_bytes() == EN
        assert (temp_dir / "locales" / "fr.yml").read_bytes() == FR

    def test_pull_skips_up_to_date_files(self, runner, temp_dir):
        """Test that pull sends no file request when checksums match."""
        (temp_dir / "locales").mkdir()
        (temp_dir / "locales" / "fr.yml").write_bytes(FR)
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "pull")

        assert result.exit_code == 0, result.output
        assert server.transfers() == []

    def test_pull_failure_exit_code(self, runner, temp_dir):
        """Test that a failed file makes the command exit with 1."""
        server = FakeServer()

        def failing(request):
            if request.url.path.endswith("/locales/fr"):
                raise httpx.ConnectError("connection refused")
            return server(request)

        with self.patch_client(failing):
            result = self.invoke(runner, temp_dir, "pull")

        assert result.exit_code == 1

    def test_push_uploads_changed_master(self, runner, temp_dir):
        """Test that push uploads a modified master file with its flags."""
        (temp_dir / "locales").mkdir()
        (temp_dir / "locales" / "en.yml").write_bytes(EN + b"  bye: Bye\n")
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "push", "--minor", "--label", "v2")

        assert result.exit_code == 0, result.output
        transfers = server.transfers()
        assert len(transfers) == 1
        assert transfers[0].method == "PUT"
        assert transfers[0].url.path == "/api/projects/proj_key/files/10/locales/en"
        assert b'name="minor_changes"\r\n\r\ntrue' in transfers[0].content
        assert b'name="label"\r\n\r\nv2' in transfers[0].content

    def test_push_locale(self, runner, temp_dir):
        """Test that push --locale uploads target files."""
        (temp_dir / "locales").mkdir()
        (temp_dir / "locales" / "fr.yml").write_bytes(b"fr: {}\n")
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "push", "-l", "fr")

        assert result.exit_code == 0, result.output
        assert [r.url.path for r in server.transfers()] == [
            "/api/projects/proj_key/files/11/locales/fr"
        ]

    def test_push_missing_master(self, runner, temp_dir):
        """Test that pushing a missing master file fails."""
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "push")

        assert result.exit_code == 1
        assert server.transfers() == []

    def test_status(self, runner, temp_dir):
        """Test that status sends only the project request."""
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "status")

        assert result.exit_code == 0, result.output
        assert server.transfers() == []
        assert "0 in sync, 2 out of sync" in result.output

    def test_add(self, runner, temp_dir):
        """Test that add creates a master file."""
        new_file = temp_dir / "app.en.yml"
        new_file.write_bytes(EN)
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "add", str(new_file))

        assert result.exit_code == 0, result.output
        transfers = server.transfers()
        assert transfers[0].method == "POST"
        assert transfers[0].url.path == "/api/projects/proj_key/files"

    def test_add_same_file_twice(self, runner, temp_dir, monkeypatch):
        """Test that a file named twice is created once."""
        monkeypatch.chdir(temp_dir)
        Path("app.en.yml").write_bytes(EN)
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "add", "app.en.yml", "./app.en.yml")

        assert result.exit_code == 0, result.output
        assert len(server.transfers()) == 1

    def test_add_relative_to_base_dir(self, runner, temp_dir):
        """Test that add sends names relative to the base directory."""
        base_dir = temp_dir / "proj"
        new_file = base_dir / "config" / "en.yml"
        new_file.parent.mkdir(parents=True)
        new_file.write_bytes(EN)
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, base_dir, "add", str(new_file))

        assert result.exit_code == 0, result.output
        body = server.transfers()[0].content
        assert b'name="name"\r\n\r\nconfig/en.yml\r\n' in body

    def test_add_outside_base_dir(self, runner, temp_dir):
        """Test that add refuses files outside the base directory."""
        new_file = temp_dir / "en.yml"
        new_file.write_bytes(EN)
        (temp_dir / "proj").mkdir()
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir / "proj", "add", str(new_file))

        assert result.exit_code == 1
        assert "is not inside" in result.output
        assert server.transfers() == []

    def test_rm(self, runner, temp_dir):
        """Test that rm deletes a known master file."""
        (temp_dir / "locales").mkdir()
        master = temp_dir / "locales" / "en.yml"
        master.write_bytes(EN)
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "rm", str(master))

        assert result.exit_code == 0, result.output
        transfers = server.transfers()
        assert transfers[0].method == "DELETE"
        assert transfers[0].url.path == "/api/projects/proj_key/files/10"
        assert master.exists()

    def test_rm_same_file_twice(self, runner, temp_dir):
        """Test that a master named twice is deleted once."""
        (temp_dir / "locales").mkdir()
        master = temp_dir / "locales" / "en.yml"
        master.write_bytes(EN)
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(
                runner,
                temp_dir,
                "rm",
                str(master),
                str(temp_dir / "locales" / ".." / "locales" / "en.yml"),
            )

        assert result.exit_code == 0, result.output
        assert [r.method for r in server.transfers()] == ["DELETE"]

    def test_rm_unknown_file(self, runner, temp_dir):
        """Test that rm refuses files that are not project masters."""
        server = FakeServer()
        with self.patch_client(server):
            result = self.invoke(runner, temp_dir, "rm", str(temp_dir / "x.yml"))

        assert result.exit_code == 1
        assert "is not a master file" in result.output
        assert server.transfers() == []

    def test_project_load_error(self, runner, temp_dir):
        """Test that a failing project listing exits with 1."""

        def broken(request):
            return httpx.Response(500)

        with self.patch_client(broken):
            result = self.invoke(runner, temp_dir, "pull")

        assert result.exit_code == 1
        assert "Could not load project" in result.output

    def test_init_saves_key(self, runner):
        """Test that init validates and stores the API key."""
        server = FakeServer()
        with self.patch_client(server), patch("pywti.cli.config") as mock_config:
            mock_config.get_config_path.return_value = Path("/tmp/config.json")
            result = runner.invoke(main, ["init", "--api-key", "proj_key"])

        assert result.exit_code == 0, result.output
        mock_config.save_api_key.assert_called_once_with("proj_key")

    def test_init_invalid_key_cancelled(self, runner):
        """Test that init does not save a rejected key unless confirmed."""

        def reject(request):
            return httpx.Response(404, content=json.dumps({}).encode())

        with self.patch_client(reject), patch("pywti.cli.config") as mock_config:
            result = runner.invoke(main, ["init", "--api-key", "bad"], input="n\n")

        assert result.exit_code == 1
        mock_config.save_api_key.assert_not_called()
