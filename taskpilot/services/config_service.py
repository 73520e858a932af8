"""
Configuration Service

JSON-file configuration with dot-notation access.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("taskpilot.ConfigService")

CONFIG_ENV_VAR = "TASKPILOT_CONFIG"


def default_config_path() -> Path:
    """$TASKPILOT_CONFIG if set, else ~/.taskpilot/config.json."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".taskpilot" / "config.json"


class ConfigService:
    """
    Service class for configuration management.

    Provides:
    - Configuration loading
    - Configuration saving
    - Dot-notation get/set
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config service.

        Args:
            config_path: Path to config file
        """
        self.config_path = Path(config_path) if config_path is not None else default_config_path()
        self._config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from file.

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid JSON or not an object
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found at: {self.config_path}")

        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing {self.config_path}: {e}")
            raise ValueError(f"Error parsing {self.config_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"{self.config_path} must contain a JSON object")

        self._config = data
        logger.info(f"Configuration loaded from {self.config_path}")
        return self._config.copy()

    def save(self, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Save configuration to file.

        Args:
            data: Optional data to save (uses internal config if None)

        Returns:
            True if successful
        """
        if data is not None:
            self._config = data
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with self.config_path.open("w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            return False
        logger.info(f"Configuration saved to {self.config_path}")
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key (supports dot notation: "assistant.model")
            default: Default value if key not found
        """
        value: Any = self._config
        for k in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(k)
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        return self._config.copy()

    def update(self, updates: Dict[str, Any]) -> None:
        """Set several dot-notation keys at once."""
        for key, value in updates.items():
            self.set(key, value)
