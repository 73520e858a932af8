"""
Command directives for the assistant.

The model is told which commands exist and asked to answer with a
`[COMMAND: name] {json}` directive. parse_command() pulls that directive
back out of the reply, repairing JSON that was cut off before its closing
braces, and withholds the action when required parameters are missing.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple

from taskpilot.core.ai.base import SuggestedAction
from taskpilot.core.registry import ActionRegistry, default_registry

logger = logging.getLogger(__name__)

_DIRECTIVE_PATTERNS = [
    re.compile(r"\*\*\[COMMAND:\s*([^\]]+)\]\*\*\s*(\{.*\})$", re.MULTILINE),
    re.compile(r"\[COMMAND:\s*([^\]]+)\]\s*(\{.*\})$", re.MULTILINE),
    re.compile(r"\[COMMAND:\s*([^\]]+)\]\s*(\{.*)"),
]

_PROMPT_TEMPLATE = """You are the Taskpilot assistant. You can ONLY execute predefined commands - NEVER create bash commands or make up new commands.

AVAILABLE COMMANDS:
{commands}

CRITICAL RULES:
1. NEVER generate bash commands, shell scripts, or fake commands
2. ONLY use the predefined [COMMAND: commandName] format above
3. If the user asks for something, match it to one of the available commands
4. If no command matches, explain which commands are available instead

COMMAND EXECUTION FORMAT:
- Use EXACT format: [COMMAND: commandName] {{"param": "value"}}
- Example: [COMMAND: navigateToWorkspace] {{"workspaceSlug": "dummy"}}

PARAMETER VALIDATION:
1. Check that ALL required parameters are provided
2. If ANY required parameter is missing, ask a follow-up question
3. Do not execute a command until all required parameters are collected
4. Remember the user's original intent while collecting missing parameters

NAVIGATION EXAMPLES:
- "take me to workspace X" → [COMMAND: navigateToWorkspace] {{"workspaceSlug": "x"}}
- "go to project Y" → [COMMAND: navigateToProject] {{"workspaceSlug": "current", "projectSlug": "y"}}
- "show workspaces" → [COMMAND: listWorkspaces] {{}}

CREATION EXAMPLES:
- "create task X" → [COMMAND: createTask] {{"workspaceSlug": "?", "projectSlug": "?", "taskTitle": "X"}}
- If workspace/project is missing, ask: "Which workspace and project should I create this task in?"

EDITING EXAMPLES:
- "rename workspace test to My New Name" → [COMMAND: editWorkspace] {{"workspaceSlug": "test", "updates": {{"name": "My New Name"}}}}

IMPORTANT: Never make up commands. Only use the commands listed above with exact parameter names."""


def build_system_prompt(registry: ActionRegistry = default_registry) -> str:
    """System prompt listing every registered command and its parameters."""
    lines = []
    for descriptor in registry.list_actions():
        required = descriptor.required_parameters
        optional = descriptor.optional_parameters

        description = ""
        if required:
            description = f"needs {', '.join(required)}"
        if optional:
            prefix = ", " if description else ""
            description += f"{prefix}optional: {', '.join(optional)}"

        example = {
            p.name: ("slug" if "Slug" in p.name else "value")
            for p in descriptor.parameters
        }
        lines.append(
            f"- {descriptor.name}: {description} → [COMMAND: {descriptor.name}] {json.dumps(example)}"
        )
    return _PROMPT_TEMPLATE.format(commands="\n".join(lines))


def _repair_json(text: str) -> str:
    depth = text.count("{") - text.count("}")
    return text + "}" * max(depth, 0)


def _load_parameters(raw: str) -> Dict[str, Any]:
    try:
        parameters = json.loads(raw)
    except ValueError:
        repaired = _repair_json(raw)
        logger.debug(f"Repairing command JSON: {raw!r} -> {repaired!r}")
        parameters = json.loads(repaired)
    if not isinstance(parameters, dict):
        raise ValueError("Command parameters must be a JSON object")
    return parameters


def parse_command(
    message: str,
    registry: ActionRegistry = default_registry,
) -> Tuple[str, Optional[SuggestedAction]]:
    """
    Extract the command directive from an assistant reply.

    Returns:
        (message, action). When the directive names an unknown command or
        lacks required parameters, the action is withheld and the message
        gains a follow-up line asking for what is missing. A directive whose
        JSON cannot be recovered is ignored.
    """
    match = None
    for pattern in _DIRECTIVE_PATTERNS:
        match = pattern.search(message or "")
        if match:
            break
    if not match:
        return message, None

    name = match.group(1).strip()
    try:
        parameters = _load_parameters(match.group(2) or "{}")
    except ValueError as e:
        logger.warning(f"Failed to parse parameters for command {name}: {e}")
        return message, None

    if not registry.is_action_supported(name):
        logger.info(f"Assistant suggested unknown command: {name}")
        return f"{message}\n\nUnknown command: {name}", None

    missing = registry.missing_parameters(name, parameters)
    if missing:
        logger.info(f"Command {name} is missing parameters: {', '.join(missing)}")
        return (
            f"{message}\n\nI need the following information to proceed: {', '.join(missing)}.",
            None,
        )

    return message, SuggestedAction(name=name, parameters=parameters)
