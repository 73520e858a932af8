"""
OpenAI Assistant Backend

Answers chat turns by calling an OpenAI-compatible chat completions
endpoint directly, instead of going through the application backend.
"""

import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from taskpilot.core.ai.base import (
    AssistantBackend,
    AssistantConfig,
    AssistantReply,
)
from taskpilot.core.ai.commands import build_system_prompt, parse_command
from taskpilot.core.registry import ActionRegistry, default_registry

logger = logging.getLogger(__name__)


class OpenAIAssistant(AssistantBackend):
    """OpenAI (or compatible) chat completions backend."""

    def __init__(
        self,
        config: AssistantConfig,
        registry: ActionRegistry = default_registry,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(config)
        self.registry = registry
        self.system_prompt = build_system_prompt(registry)
        self.client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
        )
        logger.info(f"OpenAIAssistant initialized with model: {config.default_model}")

    def _validate_config(self) -> None:
        if not self.config.api_key:
            raise ValueError("OpenAI API key is required")

    def build_messages(
        self,
        message: str,
        history: List[Dict[str, Any]],
        workspace_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        system_content = self.system_prompt
        if workspace_id or project_id:
            system_content += (
                "\n\nCURRENT CONTEXT:\n"
                f"workspaceSlug: {workspace_id or 'none'}\n"
                f"projectSlug: {project_id or 'none'}"
            )

        messages: List[Dict[str, Any]] = [{"role": "system", "content": system_content}]
        for entry in history or []:
            messages.append({"role": entry.get("role", "user"), "content": entry.get("content", "")})
        messages.append({"role": "user", "content": message})
        return messages

    async def chat(
        self,
        message: str,
        history: List[Dict[str, Any]],
        workspace_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> AssistantReply:
        messages = self.build_messages(message, history, workspace_id, project_id)

        try:
            response = await self.client.chat.completions.create(
                model=self.config.default_model,
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                stream=False,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            return AssistantReply(success=False, error=str(e) or "Failed to process chat request")

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        text, action = parse_command(content, self.registry)
        return AssistantReply(success=True, message=text, action=action)

    async def close(self) -> None:
        await self.client.close()
