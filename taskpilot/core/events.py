"""
Automation lifecycle events.

Background executions announce their progress on an EventBus. Consumers
either register a synchronous listener (called inline on emit) or
subscribe to an asyncio.Queue and drain it at their own pace. Emitting
is fire-and-forget: nobody acknowledges an event and a failing listener
never affects the execution that emitted it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    AUTOMATION_START = "automationStart"
    AUTOMATION_SUCCESS = "automationSuccess"
    AUTOMATION_ERROR = "automationError"


@dataclass
class AutomationEvent:
    type: EventType
    action: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type.value,
            "action": self.action,
            "parameters": dict(self.parameters),
        }
        if self.result is not None:
            payload["result"] = self.result
        if self.error is not None:
            payload["error"] = self.error
        return payload


Listener = Callable[[AutomationEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self._queues: List[asyncio.Queue] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def subscribe(self, maxsize: int = 0) -> asyncio.Queue:
        """New queue receiving every event emitted from now on."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._queues.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    def emit(self, event: AutomationEvent) -> None:
        logger.debug(f"Event {event.type.value}: {event.action}")

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Event listener failed on {event.type.value}: {e}")

        for queue in list(self._queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Event queue full, dropping {event.type.value} for {event.action}")
