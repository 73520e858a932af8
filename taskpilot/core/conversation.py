# taskpilot/core/conversation.py
"""
Rolling conversation history for one chat session.

Only the most recent entries are kept; older ones are discarded, never
summarized.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10

# ----------------------------------------------------------------------
# Message model
# ----------------------------------------------------------------------

@dataclass
class Message:
    """One conversation entry. Role is user, assistant or system."""
    role: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}

# ----------------------------------------------------------------------
# History
# ----------------------------------------------------------------------

@dataclass
class ConversationHistory:
    """
    Bounded list of Message entries, owned by a single session.
    """
    limit: int = DEFAULT_HISTORY_LIMIT
    messages: List[Message] = field(default_factory=list)

    def add_message(self, role: str, content: str) -> Message:
        """Append an entry and return it. Does not trim; see prune()."""
        message = Message(role=role, content=content)
        self.messages.append(message)
        logger.debug(f"Added message: role={role}, content_len={len(content)}")
        return message

    def prune(self) -> None:
        """Drop the oldest entries beyond the limit."""
        if self.limit <= 0:
            self.messages.clear()
            return
        if len(self.messages) > self.limit:
            dropped = len(self.messages) - self.limit
            self.messages = self.messages[-self.limit:]
            logger.debug(f"Pruned {dropped} message(s) from history")

    @property
    def last(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None

    def update_last(self, content: str) -> bool:
        """
        Replace the content of whatever entry is last right now.
        Returns False when the history is empty.
        """
        if not self.messages:
            return False
        self.messages[-1].content = content
        return True

    def as_payload(self, exclude_last: bool = False) -> List[Dict[str, Any]]:
        """History as plain dicts for the assistant backend."""
        messages = self.messages[:-1] if exclude_last and self.messages else self.messages
        return [m.to_dict() for m in messages]

    def clear(self) -> None:
        self.messages.clear()
        logger.info("Conversation history cleared.")

    def __len__(self) -> int:
        return len(self.messages)
