"""
Typed settings on top of ConfigService.

load_settings() never fails on a missing file: every key has a default,
so a fresh install runs against a local backend out of the box.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from taskpilot.core.errors import ConfigError
from taskpilot.services.config_service import ConfigService

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "api_url": "http://localhost:3000/api",
    "token": None,
    "assistant": {
        "provider": "remote",
        "api_key": None,
        "model": "gpt-4o-mini",
        "base_url": None,
        "temperature": 0.1,
    },
    "resolver": {"timeout": 5.0},
    "history": {"limit": 10},
    "streaming": {"word_delay": 0.05, "result_word_delay": 0.03},
}


@dataclass
class Settings:
    api_url: str = DEFAULTS["api_url"]
    token: Optional[str] = None
    assistant_provider: str = "remote"
    assistant_api_key: Optional[str] = None
    assistant_model: str = "gpt-4o-mini"
    assistant_base_url: Optional[str] = None
    assistant_temperature: float = 0.1
    resolver_timeout: float = 5.0
    history_limit: int = 10
    word_delay: float = 0.05
    result_word_delay: float = 0.03
    config_path: Optional[Path] = None

    @classmethod
    def from_service(cls, service: ConfigService) -> "Settings":
        def get(key: str) -> Any:
            default: Any = DEFAULTS
            for part in key.split("."):
                default = default.get(part) if isinstance(default, dict) else None
            return service.get(key, default)

        try:
            return cls(
                api_url=get("api_url"),
                token=get("token"),
                assistant_provider=str(get("assistant.provider")),
                assistant_api_key=get("assistant.api_key"),
                assistant_model=get("assistant.model"),
                assistant_base_url=get("assistant.base_url"),
                assistant_temperature=float(get("assistant.temperature")),
                resolver_timeout=float(get("resolver.timeout")),
                history_limit=int(get("history.limit")),
                word_delay=float(get("streaming.word_delay")),
                result_word_delay=float(get("streaming.result_word_delay")),
                config_path=service.config_path,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in {service.config_path}: {e}")


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Settings from the config file, falling back to defaults when it is absent.

    Raises:
        ConfigError: the file exists but is not valid
    """
    service = ConfigService(config_path=config_path)
    try:
        service.load()
    except FileNotFoundError:
        logger.info(f"No config file at {service.config_path}, using defaults")
    except ValueError as e:
        raise ConfigError(str(e))
    return Settings.from_service(service)


def save_setting(key: str, value: Any, config_path: Optional[Path] = None) -> bool:
    """Persist one dot-notation key, keeping the rest of the file."""
    service = ConfigService(config_path=config_path)
    try:
        service.load()
    except FileNotFoundError:
        pass
    except ValueError as e:
        raise ConfigError(str(e))
    service.set(key, value)
    return service.save()
