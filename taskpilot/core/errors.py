# taskpilot/core/errors.py
"""
Exception hierarchy shared across taskpilot.

Validation problems and dispatch failures are reported as ExecutionResult
values, not exceptions. These types cover the cases that must abort a turn
or a single backend call.
"""

from typing import Any, Optional


class TaskpilotError(Exception):
    """Base exception for taskpilot."""
    pass


class ConfigError(TaskpilotError):
    """Configuration is missing or invalid."""
    pass


class AssistantError(TaskpilotError):
    """The assistant backend failed the turn (success: false or transport error)."""
    pass


class BackendError(TaskpilotError):
    """
    Non-2xx response (or connection failure) from the REST backend.

    Attributes:
        status: HTTP status code, or None for connection-level failures
        details: Decoded response body when available
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.details = details
