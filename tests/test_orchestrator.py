"""
Tests for ConversationOrchestrator:
- rolling history bound across many turns
- visible reply cleaning and canned acknowledgements
- background scheduling of suggested actions
- local intent short-circuit
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from taskpilot.core.ai.base import AssistantBackend, AssistantConfig, AssistantReply, BackendType, SuggestedAction
from taskpilot.core.context import ExecutionContext
from taskpilot.core.conversation import ConversationHistory
from taskpilot.core.errors import AssistantError
from taskpilot.core.executor import AutomationExecutor, BackgroundExecutor
from taskpilot.core.orchestrator import (
    ConversationOrchestrator,
    history_annotation,
    strip_command_syntax,
    visible_reply,
)
from taskpilot.core.registry import ActionType
from taskpilot.core.resolver import ContextResolver
from taskpilot.core.results import ExecutionResult


# ---------------------------------------------------------------------------
# Helpers / Fakes
# ---------------------------------------------------------------------------

class FakeAssistant(AssistantBackend):
    """Assistant stub returning queued replies and recording each call."""

    def __init__(self, replies: Optional[List[AssistantReply]] = None):
        super().__init__(AssistantConfig(backend_type=BackendType.REMOTE))
        self.replies = list(replies or [])
        self.calls: List[Dict[str, Any]] = []

    async def chat(self, message, history, workspace_id=None, project_id=None):
        self.calls.append(
            {"message": message, "history": list(history), "workspace_id": workspace_id, "project_id": project_id}
        )
        if self.replies:
            return self.replies.pop(0)
        return AssistantReply(success=True, message=f"You said: {message}")


class RecordingAction:
    def __init__(self, result: ExecutionResult):
        self.result = result
        self.calls: List[tuple] = []

    async def __call__(self, *args):
        self.calls.append(args)
        return self.result


def run_async(coro):
    """Helper to run async coroutines inside plain pytest tests."""
    return asyncio.run(coro)


def make_orchestrator(assistant, table=None, context=None, limit=10):
    context = context or ExecutionContext()
    history = ConversationHistory(limit=limit)
    background = BackgroundExecutor(
        AutomationExecutor(table or {}),
        ContextResolver(context),
        history,
        word_delay=0,
    )
    return ConversationOrchestrator(assistant, background, context, history, word_delay=0)


# ---------------------------------------------------------------------------
# Reply cleaning
# ---------------------------------------------------------------------------

def test_strip_command_syntax_removes_directives_and_json_lines():
    raw = 'Sure, creating it now.\n[COMMAND: createWorkspace] {"name": "Acme"}\n{"name": "Acme"}'
    assert strip_command_syntax(raw) == "Sure, creating it now."


def test_strip_command_syntax_removes_bold_directive():
    assert strip_command_syntax("On it! **[COMMAND: listWorkspaces]** {}") == "On it!"


def test_strip_command_syntax_handles_empty():
    assert strip_command_syntax("") == ""


@pytest.mark.parametrize(
    "action, expected",
    [
        ("listWorkspaces", "Let me show you your available workspaces..."),
        ("createProject", "Creating your project now..."),
        ("createTask", "Creating your task now..."),
        ("deleteTask", "Processing your request..."),
        (None, "Let me help you with that..."),
    ],
)
def test_visible_reply_uses_canned_acknowledgement_when_too_short(action, expected):
    assert visible_reply("[COMMAND: x] {}", action) == expected


def test_visible_reply_keeps_long_enough_text():
    assert visible_reply("Here are your workspaces", "listWorkspaces") == "Here are your workspaces"


def test_visible_reply_keeps_short_text_when_no_action():
    assert visible_reply("Hi there", None) == "Hi there"
    assert visible_reply("Hi there", "listWorkspaces") == "Let me show you your available workspaces..."


def test_history_annotation():
    assert history_annotation("createWorkspace", {"name": "Acme"}) == " [Created workspace: Acme]"
    assert (
        history_annotation("createProject", {"name": "Web", "workspaceSlug": "acme"})
        == " [Created project: Web in workspace: acme]"
    )
    assert history_annotation("listWorkspaces", {}) == ""


# ---------------------------------------------------------------------------
# process_message
# ---------------------------------------------------------------------------

def test_history_is_bounded_after_many_turns():
    orchestrator = make_orchestrator(FakeAssistant())

    async def scenario():
        for i in range(12):
            await orchestrator.process_message(f"message number {i}")

    run_async(scenario())

    assert len(orchestrator.history) == 10
    assert orchestrator.history.messages[-1].content == "You said: message number 11"


def test_assistant_receives_prior_history_without_current_message():
    assistant = FakeAssistant()
    ctx = ExecutionContext(current_workspace="acme", current_project="web")
    orchestrator = make_orchestrator(assistant, context=ctx)

    async def scenario():
        await orchestrator.process_message("first message")
        await orchestrator.process_message("second message")

    run_async(scenario())

    second = assistant.calls[1]
    assert second["message"] == "second message"
    assert [m["content"] for m in second["history"]] == ["first message", "You said: first message"]
    assert second["workspace_id"] == "acme"
    assert second["project_id"] == "web"


def test_failed_reply_raises_assistant_error():
    orchestrator = make_orchestrator(FakeAssistant([AssistantReply(success=False, error="quota exceeded")]))

    with pytest.raises(AssistantError, match="quota exceeded"):
        run_async(orchestrator.process_message("hi"))


def test_suggested_action_runs_in_background_and_patches_entry():
    action = RecordingAction(ExecutionResult.ok("Workspace created successfully", {"workspace": {"name": "Acme"}}))
    reply = AssistantReply(
        success=True,
        message='[COMMAND: createWorkspace] {"name": "Acme"}',
        action=SuggestedAction("createWorkspace", {"name": "Acme"}),
    )
    orchestrator = make_orchestrator(FakeAssistant([reply]), table={ActionType.CREATE_WORKSPACE: action})
    chunks: List[str] = []

    async def scenario():
        raw = await orchestrator.process_message("make a workspace Acme", stream=True, on_chunk=chunks.append)
        await orchestrator.background.drain()
        return raw

    raw = run_async(scenario())

    assert raw == reply.message
    assert action.calls == [("Acme", "")]
    assert chunks[0] == "Processing"
    entry = orchestrator.history.last
    assert entry.role == "assistant"
    assert entry.content == (
        "Processing your request...\n\n✅ Workspace created successfully\n📁 Workspace: Acme"
    )
    streamed = "".join(chunks)
    assert streamed.startswith("Processing your request...")
    assert "🔄 Executing..." in streamed


def test_reply_without_action_is_stored_with_no_background_run():
    orchestrator = make_orchestrator(FakeAssistant([AssistantReply(success=True, message="ok")]))

    run_async(orchestrator.process_message("hello"))

    assert orchestrator.background.pending == 0
    assert orchestrator.history.last.content == "ok"


def test_empty_reply_without_action_gets_default_acknowledgement():
    orchestrator = make_orchestrator(FakeAssistant([AssistantReply(success=True, message="")]))

    run_async(orchestrator.process_message("hello"))

    assert orchestrator.history.last.content == "Let me help you with that..."


def test_prefer_local_skips_the_assistant():
    assistant = FakeAssistant()
    action = RecordingAction(ExecutionResult.ok("Logged out successfully"))
    orchestrator = make_orchestrator(assistant, table={ActionType.LOGOUT: action})

    async def scenario():
        shown = await orchestrator.process_message("log out", prefer_local=True)
        await orchestrator.background.drain()
        return shown

    shown = run_async(scenario())

    assert shown == "Processing your request..."
    assert assistant.calls == []
    assert action.calls == [()]
    assert orchestrator.history.last.content.endswith("✅ Logged out successfully")


def test_prefer_local_falls_back_to_assistant_when_no_rule_matches():
    assistant = FakeAssistant()
    orchestrator = make_orchestrator(assistant)

    run_async(orchestrator.process_message("tell me a joke", prefer_local=True))

    assert len(assistant.calls) == 1


def test_clear_history():
    orchestrator = make_orchestrator(FakeAssistant())
    run_async(orchestrator.process_message("hello there"))
    orchestrator.clear_history()
    assert len(orchestrator.history) == 0
