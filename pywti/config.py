"""Configuration management for pywti.

Settings are resolved in this order:

1. Values passed explicitly (CLI options, constructor arguments)
2. Environment variables (``WTI_API_KEY``, ``WTI_API_URL``)
3. The JSON config file at ``~/.config/pywti/config.json``
4. Built-in defaults
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://webtranslateit.com"


class Config:
    """Access to pywti settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding ``config.json``. Defaults to
                ~/.config/pywti/
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pywti"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Return the path of the JSON config file."""
        return self.config_dir / "config.json"

    def _load(self) -> dict[str, Any]:
        config_path = self.get_config_path()
        if not config_path.exists():
            return {}
        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read config file {config_path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed config file {config_path}")
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.get_config_path()
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        # The file holds a credential
        config_path.chmod(0o600)
        logger.debug(f"Saved configuration to {config_path}")

    @property
    def api_key(self) -> Optional[str]:
        """Project API key."""
        return os.environ.get("WTI_API_KEY") or self._load().get("api_key")

    @property
    def api_url(self) -> str:
        """Base URL of the API host."""
        return (
            os.environ.get("WTI_API_URL")
            or self._load().get("api_url")
            or DEFAULT_API_URL
        )

    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return bool(self.api_key)

    def save_api_key(self, api_key: str) -> None:
        """Store the API key in the config file.

        Args:
            api_key: Project API key
        """
        data = self._load()
        data["api_key"] = api_key
        self._save(data)


config = Config()
