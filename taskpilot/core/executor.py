# taskpilot/core/executor.py
"""
Action execution.

AutomationExecutor validates an action against the registry and calls the
matching entry of the dispatch table. It never raises: every outcome,
including a crash inside the dispatched callable, comes back as an
ExecutionResult.

BackgroundExecutor wraps that in the fire-and-forget lifecycle used by the
chat: resolve parameters, dispatch, format, stream the outcome, patch the
conversation entry, and emit lifecycle events. Nothing escapes run().
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set

from taskpilot.core.arguments import prepare_arguments
from taskpilot.core.conversation import ConversationHistory, Message
from taskpilot.core.events import AutomationEvent, EventBus, EventType
from taskpilot.core.formatter import format_result
from taskpilot.core.registry import ActionName, ActionRegistry, ActionType, coerce_action, default_registry
from taskpilot.core.resolver import ContextResolver
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)

DispatchFn = Callable[..., Awaitable[ExecutionResult]]
DispatchTable = Mapping[ActionType, DispatchFn]
ChunkCallback = Callable[[str], None]

EXECUTING_NOTICE = "\n\n🔄 Executing..."
DEFAULT_WORD_DELAY = 0.03


def _action_label(action: ActionName) -> str:
    return action.value if isinstance(action, ActionType) else str(action)


# ----------------------------------------------------------------------
# Validation + dispatch
# ----------------------------------------------------------------------

class AutomationExecutor:
    def __init__(self, dispatch_table: DispatchTable, registry: ActionRegistry = default_registry):
        self.dispatch_table = dispatch_table
        self.registry = registry

    async def execute_action(self, action: ActionName, parameters: Mapping[str, Any]) -> ExecutionResult:
        """
        Validate and run one action.

        Args:
            action: Wire name or ActionType
            parameters: Parameter bag, already resolved

        Returns:
            The callable's ExecutionResult, or a failure describing why it
            was not (or could not be) run.
        """
        label = _action_label(action)
        parameters = parameters or {}

        if not self.registry.is_action_supported(action):
            return ExecutionResult.fail(
                f'Action "{label}" is not supported',
                self.registry.error_message("unsupported_action"),
            )

        action_type = coerce_action(action)
        fn = self.dispatch_table.get(action_type)
        if fn is None:
            return ExecutionResult.fail(
                f'Action "{label}" is not implemented',
                self.registry.error_message("not_implemented"),
            )

        missing = self.registry.missing_parameters(action_type, parameters)
        if missing:
            return ExecutionResult.fail(
                f"Missing required parameters: {', '.join(missing)}",
                self.registry.error_message("insufficient_context"),
            )

        args = prepare_arguments(action_type, parameters)
        logger.info(f"Executing action: {label}")
        logger.debug(f"Arguments for {label}: {args}")

        try:
            result = await fn(*args)
        except Exception as e:
            logger.exception(f"Action failed: {label}")
            return ExecutionResult.fail(f"Failed to execute {label}", str(e) or type(e).__name__)

        if not isinstance(result, ExecutionResult):
            logger.warning(f"Action {label} returned {type(result).__name__}, expected ExecutionResult")
            return ExecutionResult.fail(
                f"Failed to execute {label}",
                self.registry.error_message("execution_failed"),
            )
        return result


# ----------------------------------------------------------------------
# Background lifecycle
# ----------------------------------------------------------------------

class ExecutionState(Enum):
    PENDING = "pending"
    RESOLVING = "resolving"
    DISPATCHING = "dispatching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AutomationRun:
    """Record of one background invocation."""
    action: str
    parameters: Dict[str, Any]
    state: ExecutionState = ExecutionState.PENDING
    resolved_parameters: Optional[Dict[str, Any]] = None
    result: Optional[ExecutionResult] = None
    formatted: Optional[str] = None
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.state in (ExecutionState.SUCCEEDED, ExecutionState.FAILED)


class BackgroundExecutor:
    """
    Runs actions off the chat's critical path.

    Args:
        executor: validation + dispatch
        resolver: fills placeholders and workspace names
        history: conversation whose entry receives the outcome
        events: lifecycle event sink
        word_delay: seconds between streamed words
    """

    def __init__(
        self,
        executor: AutomationExecutor,
        resolver: ContextResolver,
        history: ConversationHistory,
        events: Optional[EventBus] = None,
        word_delay: float = DEFAULT_WORD_DELAY,
    ):
        self.executor = executor
        self.resolver = resolver
        self.history = history
        self.events = events or EventBus()
        self.word_delay = word_delay
        self._tasks: Set[asyncio.Task] = set()

    async def run(
        self,
        action: ActionName,
        parameters: Mapping[str, Any],
        user_response: str = "",
        on_chunk: Optional[ChunkCallback] = None,
        target: Optional[Message] = None,
    ) -> AutomationRun:
        label = _action_label(action)
        original = dict(parameters or {})
        run = AutomationRun(action=label, parameters=original)

        self.events.emit(AutomationEvent(EventType.AUTOMATION_START, label, dict(original)))

        try:
            run.state = ExecutionState.RESOLVING
            run.resolved_parameters = await self.resolver.resolve(original)

            if on_chunk:
                on_chunk(EXECUTING_NOTICE)

            run.state = ExecutionState.DISPATCHING
            run.result = await self.executor.execute_action(action, run.resolved_parameters)
            run.formatted = format_result(run.result)

            await self._stream_words(run.formatted, on_chunk)
            self._patch_entry(target, f"{user_response}\n\n{run.formatted}")

            if run.result.success:
                run.state = ExecutionState.SUCCEEDED
                self.events.emit(AutomationEvent(
                    EventType.AUTOMATION_SUCCESS,
                    label,
                    dict(run.resolved_parameters),
                    result=run.result.to_dict(),
                ))
            else:
                run.state = ExecutionState.FAILED
                run.error = run.result.error or run.result.message
                self.events.emit(AutomationEvent(
                    EventType.AUTOMATION_ERROR,
                    label,
                    dict(original),
                    result=run.result.to_dict(),
                    error=run.error,
                ))
        except Exception as e:
            logger.exception(f"Background execution failed: {label}")
            run.state = ExecutionState.FAILED
            run.error = str(e) or "Failed to execute command"
            notice = f"❌ {run.error}"
            run.formatted = notice
            self._safe_chunk(on_chunk, f"\n\n{notice}")
            self._patch_entry(target, f"{user_response}\n\n{notice}")
            self.events.emit(AutomationEvent(
                EventType.AUTOMATION_ERROR, label, dict(original), error=run.error
            ))

        logger.info(f"Automation {label} finished: {run.state.value}")
        return run

    def schedule(
        self,
        action: ActionName,
        parameters: Mapping[str, Any],
        user_response: str = "",
        on_chunk: Optional[ChunkCallback] = None,
        target: Optional[Message] = None,
    ) -> asyncio.Task:
        """Start run() as a task and return immediately."""
        task = asyncio.ensure_future(
            self.run(action, parameters, user_response, on_chunk=on_chunk, target=target)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled run to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def pending(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _stream_words(self, text: str, on_chunk: Optional[ChunkCallback]) -> None:
        if not on_chunk:
            return
        for i, word in enumerate(text.split(" ")):
            on_chunk(("\n" if i == 0 else " ") + word)
            if self.word_delay:
                await asyncio.sleep(self.word_delay)

    def _safe_chunk(self, on_chunk: Optional[ChunkCallback], chunk: str) -> None:
        if not on_chunk:
            return
        try:
            on_chunk(chunk)
        except Exception as e:
            logger.warning(f"Chunk callback failed: {e}")

    def _patch_entry(self, target: Optional[Message], content: str) -> None:
        if target is not None:
            target.content = content
        else:
            self.history.update_last(content)
