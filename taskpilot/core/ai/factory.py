"""
Assistant Factory

Creates the assistant backend named in the settings.
"""

import logging
from typing import Dict, Optional, Type

from taskpilot.actions.api_client import BackendClient
from taskpilot.core.ai.base import AssistantBackend, AssistantConfig, BackendType
from taskpilot.core.ai.openai_provider import OpenAIAssistant
from taskpilot.core.ai.remote import RemoteAssistant
from taskpilot.core.errors import ConfigError

logger = logging.getLogger(__name__)


class AssistantFactory:
    """
    Factory for assistant backends.

    Supports dynamic registration, so tests and extensions can plug in
    their own backend class.
    """

    _backends: Dict[BackendType, Type[AssistantBackend]] = {
        BackendType.REMOTE: RemoteAssistant,
        BackendType.OPENAI: OpenAIAssistant,
    }

    @classmethod
    def register_backend(cls, backend_type: BackendType, backend_class: Type[AssistantBackend]) -> None:
        cls._backends[backend_type] = backend_class
        logger.info(f"Registered assistant backend: {backend_type.value}")

    @classmethod
    def create(cls, config: AssistantConfig, client: Optional[BackendClient] = None) -> AssistantBackend:
        """
        Create a backend instance.

        Raises:
            ConfigError: unknown backend type or incomplete configuration
        """
        backend_class = cls._backends.get(config.backend_type)
        if not backend_class:
            raise ConfigError(f"Assistant backend {config.backend_type.value} not registered")

        try:
            if backend_class is RemoteAssistant:
                return RemoteAssistant(config, client=client)
            return backend_class(config)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def create_from_settings(cls, settings, client: Optional[BackendClient] = None) -> AssistantBackend:
        """
        Create the backend described by a Settings object.

        Args:
            settings: taskpilot.config.settings.Settings
            client: Shared BackendClient for the remote backend
        """
        try:
            backend_type = BackendType((settings.assistant_provider or "remote").lower())
        except ValueError:
            raise ConfigError(f"Unknown assistant provider: {settings.assistant_provider}")

        config = AssistantConfig(
            backend_type=backend_type,
            api_url=settings.api_url,
            api_key=settings.assistant_api_key,
            base_url=settings.assistant_base_url,
            token=settings.token,
            default_model=settings.assistant_model,
            temperature=settings.assistant_temperature,
        )
        return cls.create(config, client=client)

    @classmethod
    def get_available_backends(cls) -> list:
        return [bt.value for bt in cls._backends.keys()]
