# taskpilot/core/session.py
"""
Wires one chat session together.

Every piece of mutable state (context, history, client, event bus) is
created here and owned by the returned ChatSession.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from taskpilot.actions.api_client import BackendClient
from taskpilot.actions.dispatch import DispatchTable, build_dispatch_table
from taskpilot.config.settings import Settings
from taskpilot.core.ai.base import AssistantBackend
from taskpilot.core.ai.factory import AssistantFactory
from taskpilot.core.context import ExecutionContext
from taskpilot.core.conversation import ConversationHistory
from taskpilot.core.events import EventBus
from taskpilot.core.executor import AutomationExecutor, BackgroundExecutor
from taskpilot.core.intents import IntentMatcher
from taskpilot.core.orchestrator import ConversationOrchestrator
from taskpilot.core.registry import ActionType, default_registry
from taskpilot.core.resolver import ContextResolver
from taskpilot.core.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class ChatSession:
    settings: Settings
    context: ExecutionContext
    session_store: SessionStore
    client: BackendClient
    dispatch_table: DispatchTable
    executor: AutomationExecutor
    resolver: ContextResolver
    history: ConversationHistory
    events: EventBus
    background: BackgroundExecutor
    orchestrator: Optional[ConversationOrchestrator] = None

    async def close(self) -> None:
        await self.background.drain()
        if self.orchestrator is not None:
            await self.orchestrator.assistant.close()
        await self.client.close()


def create_session(
    settings: Settings,
    session_store: Optional[SessionStore] = None,
    assistant: Optional[AssistantBackend] = None,
    context: Optional[ExecutionContext] = None,
    with_assistant: bool = True,
) -> ChatSession:
    """
    Build a session.

    Args:
        settings: loaded Settings
        session_store: persisted session values, ~/.taskpilot/session.json by default
        assistant: backend to chat with; built from settings when omitted
        context: starting ExecutionContext
        with_assistant: False for sessions that only execute actions directly

    Raises:
        ConfigError: the configured assistant backend cannot be created
    """
    if session_store is None:
        session_store = SessionStore()
    if context is None:
        context = ExecutionContext()
    if context.current_organization is None:
        context.current_organization = session_store.current_organization

    client = BackendClient(settings.api_url, token=settings.token, session_store=session_store)
    dispatch_table = build_dispatch_table(client, context, session_store)
    executor = AutomationExecutor(dispatch_table, default_registry)
    resolver = ContextResolver(
        context,
        session_store=session_store,
        list_workspaces=dispatch_table.get(ActionType.LIST_WORKSPACES),
        timeout=settings.resolver_timeout,
    )
    history = ConversationHistory(limit=settings.history_limit)
    events = EventBus()
    background = BackgroundExecutor(
        executor, resolver, history, events=events, word_delay=settings.result_word_delay
    )

    session = ChatSession(
        settings=settings,
        context=context,
        session_store=session_store,
        client=client,
        dispatch_table=dispatch_table,
        executor=executor,
        resolver=resolver,
        history=history,
        events=events,
        background=background,
    )
    if assistant is None and with_assistant:
        assistant = AssistantFactory.create_from_settings(settings, client=client)
    if assistant is not None:
        session.orchestrator = ConversationOrchestrator(
            assistant,
            background,
            context,
            history,
            intents=IntentMatcher(),
            word_delay=settings.word_delay,
        )
    logger.debug("Chat session created")
    return session
