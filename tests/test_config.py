"""Tests for configuration handling."""

import json
import tempfile
from pathlib import Path

import pytest

from pywti.config import DEFAULT_API_URL, Config


class TestConfig:
    """Test Config."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        """Remove pywti environment variables."""
        monkeypatch.delenv("WTI_API_KEY", raising=False)
        monkeypatch.delenv("WTI_API_URL", raising=False)

    def test_defaults(self, temp_dir):
        """Test values without any configuration."""
        config = Config(temp_dir)
        assert config.api_key is None
        assert config.api_url == DEFAULT_API_URL
        assert not config.is_configured()

    def test_save_and_load_api_key(self, temp_dir):
        """Test that a saved key is read back."""
        config = Config(temp_dir / "pywti")
        config.save_api_key("saved_key")

        assert Config(temp_dir / "pywti").api_key == "saved_key"
        assert config.is_configured()
        data = json.loads(config.get_config_path().read_text())
        assert data == {"api_key": "saved_key"}

    def test_save_keeps_other_settings(self, temp_dir):
        """Test that saving the key preserves other settings."""
        config = Config(temp_dir)
        config.get_config_path().write_text(json.dumps({"api_url": "https://x"}))

        config.save_api_key("k")

        assert config.api_url == "https://x"
        assert config.api_key == "k"

    def test_environment_overrides_file(self, temp_dir, monkeypatch):
        """Test that environment variables win over the config file."""
        config = Config(temp_dir)
        config.save_api_key("file_key")
        monkeypatch.setenv("WTI_API_KEY", "env_key")
        monkeypatch.setenv("WTI_API_URL", "https://env.test")

        assert config.api_key == "env_key"
        assert config.api_url == "https://env.test"

    def test_malformed_file_is_ignored(self, temp_dir):
        """Test that a broken config file does not raise."""
        config = Config(temp_dir)
        config.get_config_path().write_text("{not json")

        assert config.api_key is None
        assert config.api_url == DEFAULT_API_URL
