"""
Assistant Backend Interface

Abstract base class for everything that can answer a chat turn.
A backend returns the reply text plus, optionally, one suggested action.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class BackendType(Enum):
    """Supported assistant backends."""
    REMOTE = "remote"
    OPENAI = "openai"


@dataclass
class AssistantConfig:
    """Configuration for an assistant backend."""
    backend_type: BackendType
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    token: Optional[str] = None
    default_model: str = "gpt-4o-mini"
    temperature: float = 0.1
    max_tokens: int = 500
    timeout: int = 60


@dataclass
class SuggestedAction:
    """Structured action hint extracted from an assistant reply."""
    name: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> Optional["SuggestedAction"]:
        if not isinstance(payload, dict) or not payload.get("name"):
            return None
        parameters = payload.get("parameters")
        return cls(name=str(payload["name"]), parameters=dict(parameters) if isinstance(parameters, dict) else {})


@dataclass
class AssistantReply:
    """Standardized reply of one chat turn."""
    success: bool
    message: str = ""
    action: Optional[SuggestedAction] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AssistantReply":
        return cls(
            success=bool(payload.get("success")),
            message=payload.get("message") or "",
            action=SuggestedAction.from_dict(payload.get("action")),
            error=payload.get("error"),
        )


class AssistantBackend(ABC):
    """
    Abstract base class for assistant backends.
    """

    def __init__(self, config: AssistantConfig):
        """
        Initialize the backend.

        Args:
            config: Backend configuration
        """
        self.config = config
        self.backend_type = config.backend_type
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate backend configuration."""
        pass

    @abstractmethod
    async def chat(
        self,
        message: str,
        history: List[Dict[str, Any]],
        workspace_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> AssistantReply:
        """
        Answer one chat turn.

        Args:
            message: The current user message
            history: Prior conversation entries (role/content dicts), excluding `message`
            workspace_id: Current workspace slug, if any
            project_id: Current project slug, if any

        Returns:
            AssistantReply; transport problems are reported as success=False
        """
        pass

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
