# taskpilot/core/results.py

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ExecutionResult:
    """
    Uniform contract returned by every dispatched action.

    `data` is action-specific: a single entity, a list, or a status flag.
    """
    success: bool
    message: str
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "ExecutionResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error: Optional[str] = None) -> "ExecutionResult":
        return cls(success=False, message=message, error=error)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        return result
