"""
Remote Assistant Backend

Delegates each chat turn to the application's own assistant endpoint
(POST /ai-chat/chat), which owns the model, the system prompt and the
command parsing.
"""

import logging
from typing import Any, Dict, List, Optional

from taskpilot.actions.api_client import BackendClient
from taskpilot.core.ai.base import (
    AssistantBackend,
    AssistantConfig,
    AssistantReply,
)
from taskpilot.core.errors import BackendError

logger = logging.getLogger(__name__)

CHAT_ENDPOINT = "/ai-chat/chat"


class RemoteAssistant(AssistantBackend):
    """Backend that forwards turns to the REST API."""

    def __init__(self, config: AssistantConfig, client: Optional[BackendClient] = None):
        super().__init__(config)
        self.client = client or BackendClient(
            config.api_url or "",
            token=config.token,
            timeout=config.timeout,
        )
        self._owns_client = client is None

    def _validate_config(self) -> None:
        if not self.config.api_url:
            raise ValueError("api_url is required for the remote assistant")

    async def chat(
        self,
        message: str,
        history: List[Dict[str, Any]],
        workspace_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> AssistantReply:
        payload: Dict[str, Any] = {"message": message, "history": history or []}
        if workspace_id:
            payload["workspaceId"] = workspace_id
        if project_id:
            payload["projectId"] = project_id

        try:
            body = await self.client.post(CHAT_ENDPOINT, payload)
        except BackendError as e:
            logger.error(f"Assistant request failed: {e}")
            return AssistantReply(success=False, error=str(e))

        if not isinstance(body, dict):
            return AssistantReply(success=False, error="Unexpected response from assistant endpoint")
        return AssistantReply.from_dict(body)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.close()
