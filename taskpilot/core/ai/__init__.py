"""
Assistant backends for taskpilot.
"""

from taskpilot.core.ai.base import (
    AssistantBackend,
    AssistantConfig,
    AssistantReply,
    BackendType,
    SuggestedAction,
)
from taskpilot.core.ai.commands import build_system_prompt, parse_command

__all__ = [
    "AssistantBackend",
    "AssistantConfig",
    "AssistantReply",
    "BackendType",
    "SuggestedAction",
    "build_system_prompt",
    "parse_command",
]
