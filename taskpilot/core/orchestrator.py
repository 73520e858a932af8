# taskpilot/core/orchestrator.py
"""
Conversation Orchestrator

One chat turn: record the user message, ask the assistant backend, clean
its reply for display, keep the rolling history, and hand any suggested
action to the background executor without waiting for it.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, Optional

from taskpilot.core.ai.base import AssistantBackend, AssistantReply
from taskpilot.core.context import ExecutionContext
from taskpilot.core.conversation import ConversationHistory
from taskpilot.core.errors import AssistantError
from taskpilot.core.executor import BackgroundExecutor, ChunkCallback
from taskpilot.core.intents import IntentMatcher, ParsedIntent
from taskpilot.core.registry import ActionRegistry, default_registry

logger = logging.getLogger(__name__)

MIN_VISIBLE_REPLY = 10
DEFAULT_WORD_DELAY = 0.05

CANNED_ACKNOWLEDGEMENTS: Dict[str, str] = {
    "listWorkspaces": "Let me show you your available workspaces...",
    "createProject": "Creating your project now...",
    "createTask": "Creating your task now...",
}
DEFAULT_ACKNOWLEDGEMENT = "Processing your request..."
NO_ACTION_ACKNOWLEDGEMENT = "Let me help you with that..."

_COMMAND_PATTERNS = [
    re.compile(r"\*\*\[COMMAND:\s*[^\]]+\]\*\*(\s*\{[^}]*\})?", re.IGNORECASE),
    re.compile(r"\[COMMAND:\s*[^\]]+\](\s*\{[^}]*\})?", re.IGNORECASE),
    re.compile(r'^\s*\{[^}]*"name"\s*:\s*"[^"]*"[^}]*\}\s*$', re.IGNORECASE | re.MULTILINE),
    re.compile(r'^\s*\{[^}]*"workspaceSlug"\s*:\s*"[^"]*"[^}]*\}\s*$', re.IGNORECASE | re.MULTILINE),
]
_BLANK_LINES = re.compile(r"^\s*\n", re.MULTILINE)


def strip_command_syntax(text: str) -> str:
    """Remove command directives and bare JSON parameter lines from a reply."""
    if not text:
        return ""
    for pattern in _COMMAND_PATTERNS:
        text = pattern.sub("", text)
    return _BLANK_LINES.sub("", text).strip()


def acknowledgement_for(action_name: Optional[str]) -> str:
    if not action_name:
        return NO_ACTION_ACKNOWLEDGEMENT
    return CANNED_ACKNOWLEDGEMENTS.get(action_name, DEFAULT_ACKNOWLEDGEMENT)


def visible_reply(raw: str, action_name: Optional[str]) -> str:
    """What the user sees: the cleaned reply, or a canned line if too little is left."""
    cleaned = strip_command_syntax(raw)
    if not action_name:
        return cleaned or NO_ACTION_ACKNOWLEDGEMENT
    if len(cleaned) < MIN_VISIBLE_REPLY:
        return acknowledgement_for(action_name)
    return cleaned


def history_annotation(action_name: Optional[str], parameters: Dict[str, Any]) -> str:
    if action_name == "createWorkspace" and parameters.get("name"):
        return f" [Created workspace: {parameters['name']}]"
    if action_name == "createProject" and parameters.get("name"):
        return (
            f" [Created project: {parameters['name']}"
            f" in workspace: {parameters.get('workspaceSlug')}]"
        )
    return ""


class ConversationOrchestrator:
    """
    Drives a chat session.

    Args:
        assistant: backend producing replies and suggested actions
        background: executor for suggested actions
        context: the session's ExecutionContext
        history: the session's ConversationHistory
        intents: local matcher used by try_local_intent
        word_delay: seconds between streamed words
    """

    def __init__(
        self,
        assistant: AssistantBackend,
        background: BackgroundExecutor,
        context: ExecutionContext,
        history: ConversationHistory,
        intents: Optional[IntentMatcher] = None,
        registry: ActionRegistry = default_registry,
        word_delay: float = DEFAULT_WORD_DELAY,
    ):
        self.assistant = assistant
        self.background = background
        self.context = context
        self.history = history
        self.intents = intents or IntentMatcher()
        self.registry = registry
        self.word_delay = word_delay

    async def process_message(
        self,
        message: str,
        stream: bool = False,
        on_chunk: Optional[ChunkCallback] = None,
        prefer_local: bool = False,
    ) -> str:
        """
        Run one turn and return the assistant's raw reply.

        Raises:
            AssistantError: the backend reported failure for this turn
        """
        if prefer_local:
            intent = self.try_local_intent(message)
            if intent is not None:
                return await self._run_local(message, intent, stream, on_chunk)

        self.history.add_message("user", message)
        prior = self.history.as_payload(exclude_last=True)

        reply: AssistantReply = await self.assistant.chat(
            message,
            prior,
            workspace_id=self.context.current_workspace,
            project_id=self.context.current_project,
        )
        if not reply.success:
            raise AssistantError(reply.error or "Chat request failed")

        action = reply.action
        action_name = action.name if action else None
        shown = visible_reply(reply.message, action_name)

        if stream and on_chunk:
            await self._stream_words(shown, on_chunk)

        annotation = history_annotation(action_name, action.parameters) if action else ""
        entry = self.history.add_message("assistant", shown + annotation)

        if action and action_name:
            logger.info(f"Assistant suggested action: {action_name}")
            self.background.schedule(
                action_name,
                action.parameters,
                shown,
                on_chunk=on_chunk if stream else None,
                target=entry,
            )

        self.history.prune()
        return reply.message

    def try_local_intent(self, message: str) -> Optional[ParsedIntent]:
        """Local rule match for a supported action, or None."""
        intent = self.intents.parse_intent(message, self.context)
        if intent is None or not self.registry.is_action_supported(intent.action):
            return None
        return intent

    async def _run_local(
        self,
        message: str,
        intent: ParsedIntent,
        stream: bool,
        on_chunk: Optional[ChunkCallback],
    ) -> str:
        logger.info(f"Handling message locally as {intent.action}")
        self.history.add_message("user", message)
        shown = acknowledgement_for(intent.action)

        if stream and on_chunk:
            await self._stream_words(shown, on_chunk)

        entry = self.history.add_message(
            "assistant", shown + history_annotation(intent.action, intent.parameters)
        )
        self.background.schedule(
            intent.action,
            intent.parameters,
            shown,
            on_chunk=on_chunk if stream else None,
            target=entry,
        )
        self.history.prune()
        return shown

    async def _stream_words(self, text: str, on_chunk: ChunkCallback) -> None:
        for i, word in enumerate(text.split(" ")):
            on_chunk(word if i == 0 else " " + word)
            if self.word_delay:
                await asyncio.sleep(self.word_delay)

    def clear_history(self) -> None:
        self.history.clear()
