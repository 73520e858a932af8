"""
Natural language → action intent matching for taskpilot.

Deterministic, ordered rule list. Each rule pairs a matcher (any callable
returning a match object or None) with an action name and a builder that
turns the match plus the current ExecutionContext into a parameter bag.
The first rule that matches wins; there is no ranking between rules, so
rules are ordered from most to least specific.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from taskpilot.core.context import ExecutionContext

logger = logging.getLogger(__name__)

RULE_CONFIDENCE = 0.8

Matcher = Callable[[str], Optional[Any]]
Builder = Callable[[Any, Optional[ExecutionContext]], Dict[str, Any]]


@dataclass
class ParsedIntent:
    """Single candidate action extracted from a message."""

    action: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    confidence: float = RULE_CONFIDENCE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "parameters": dict(self.parameters),
            "confidence": self.confidence,
        }


@dataclass
class IntentRule:
    """
    One ordered rule.

    - action: action name the rule produces
    - matcher: text -> captures-or-None (regex search by default)
    - build: (captures, context) -> parameter bag; must not raise on a match
    - example: canonical phrasing, used in help output and tests
    """

    action: str
    matcher: Matcher
    build: Builder
    example: str = ""


def regex_rule(pattern: str, action: str, build: Builder, example: str = "") -> IntentRule:
    """Rule whose matcher is a case-insensitive regex search."""
    compiled = re.compile(pattern, re.IGNORECASE)
    return IntentRule(action=action, matcher=compiled.search, build=build, example=example)


def clean_value(value: Optional[str]) -> str:
    """Trim whitespace and one layer of surrounding quotes."""
    if value is None:
        return ""
    return value.strip().strip("\"'‘’“”").strip()


def _ws(ctx: Optional[ExecutionContext]) -> Optional[str]:
    return ctx.current_workspace if ctx else None


def _ps(ctx: Optional[ExecutionContext]) -> Optional[str]:
    return ctx.current_project if ctx else None


def _scoped(ctx: Optional[ExecutionContext], **params: Any) -> Dict[str, Any]:
    bag = dict(params)
    bag["workspaceSlug"] = _ws(ctx)
    bag["projectSlug"] = _ps(ctx)
    return bag


# Quoted-or-bare tail value, up to end of line.
_VALUE = r"[\"'‘’“”]?([^\"'‘’“”\n]+)[\"'‘’“”]?"


def default_rules() -> List[IntentRule]:
    """The built-in rule list, most specific first."""
    return [
        # Tasks
        regex_rule(
            r"\b(?:create|add|make|new)\s+(?:a\s+)?task\s+(?:called|named|titled)?\s*" + _VALUE,
            "createTask",
            lambda m, ctx: _scoped(ctx, taskTitle=clean_value(m.group(1))),
            "create a task called Fix login bug",
        ),
        regex_rule(
            r"\btask:\s*" + _VALUE,
            "createTask",
            lambda m, ctx: _scoped(ctx, taskTitle=clean_value(m.group(1))),
            "task: Write release notes",
        ),
        regex_rule(
            r"\b(?:mark|update|change|set)\s+(?:task\s+)?[\"']?([^\"']+?)[\"']?\s+(?:as|to)\s+[\"']?([^\"']+)[\"']?",
            "updateTaskStatus",
            lambda m, ctx: _scoped(
                ctx,
                taskTitle=clean_value(m.group(1)),
                newStatus=clean_value(m.group(2)),
            ),
            "mark task Fix login bug as Done",
        ),
        # Workspaces
        regex_rule(
            r"\b(?:create|add|make|new)\s+(?:a\s+)?workspace\s+(?:called|named)?\s*" + _VALUE,
            "createWorkspace",
            lambda m, ctx: {"name": clean_value(m.group(1))},
            "create a workspace called Design Team",
        ),
        regex_rule(
            r"\brename\s+workspace\s+([\w-]+)\s+to\s+(.+)$",
            "editWorkspace",
            lambda m, ctx: {
                "workspaceSlug": clean_value(m.group(1)),
                "name": clean_value(m.group(2)),
            },
            "rename workspace acme to Acme Corp",
        ),
        regex_rule(
            r"\bedit\s+workspace\s+([\w-]+)\s+to\s+(.+)$",
            "editWorkspace",
            lambda m, ctx: {
                "workspaceSlug": clean_value(m.group(1)),
                "name": clean_value(m.group(2)),
            },
            "edit workspace acme to Acme Corp",
        ),
        # Projects
        regex_rule(
            r"\b(?:create|add|make|new)\s+(?:a\s+)?project\s+(?:called|named)?\s*" + _VALUE,
            "createProject",
            lambda m, ctx: {"name": clean_value(m.group(1)), "workspaceSlug": _ws(ctx)},
            "create a project called Website",
        ),
        # Navigation
        regex_rule(
            r"\b(?:go\s+to|navigate\s+to|open|show)\s+(?:the\s+)?(\S+)\s+workspace\b",
            "navigateToWorkspace",
            lambda m, ctx: {"workspaceSlug": clean_value(m.group(1))},
            "go to the acme workspace",
        ),
        regex_rule(
            r"\b(?:go\s+to|navigate\s+to|open|show)\s+(?:the\s+)?(\S+)\s+project\b",
            "navigateToProject",
            lambda m, ctx: {"projectSlug": clean_value(m.group(1)), "workspaceSlug": _ws(ctx)},
            "open the website project",
        ),
        # Listing
        regex_rule(
            r"\b(?:list|show|display|get)\s+(?:all\s+)?(?:my\s+)?workspaces\b",
            "listWorkspaces",
            lambda m, ctx: {},
            "list my workspaces",
        ),
        regex_rule(
            r"\b(?:list|show|display|get)\s+(?:all\s+)?(?:my\s+)?projects\b",
            "listProjects",
            lambda m, ctx: {"workspaceSlug": _ws(ctx)},
            "show all projects",
        ),
        # Filters
        regex_rule(
            r"\b(?:show|filter|find)\s+(?:all\s+)?(?:tasks?\s+)?(?:with\s+)?(?:priority\s+level|priority)\s+(\S+)",
            "filterTasksByPriority",
            lambda m, ctx: _scoped(ctx, priority=clean_value(m.group(1)).upper()),
            "show tasks with priority high",
        ),
        regex_rule(
            r"\b(?:show|filter|find)\s+(?:all\s+)?(?:tasks?\s+)?(?:with\s+)?status\s+" + _VALUE,
            "filterTasksByStatus",
            lambda m, ctx: _scoped(ctx, status=clean_value(m.group(1))),
            "filter tasks with status In Progress",
        ),
        regex_rule(
            r"\b(?:clear|remove|reset)\s+(?:all\s+)?(?:task\s+)?filters\b",
            "clearTaskFilters",
            lambda m, ctx: _scoped(ctx),
            "clear all filters",
        ),
        # Search
        regex_rule(
            r"\b(?:search|find|look\s+for)\s+(?:tasks?\s+)?(?:for\s+)?" + _VALUE,
            "searchTasks",
            lambda m, ctx: _scoped(ctx, query=clean_value(m.group(1))),
            "search tasks for login",
        ),
        # Delete
        regex_rule(
            r"\b(?:delete|remove)\s+task\s+" + _VALUE,
            "deleteTask",
            lambda m, ctx: _scoped(ctx, taskId=clean_value(m.group(1))),
            "delete task TASK-12",
        ),
        # Authentication
        regex_rule(
            r"\b(?:log\s*out|sign\s*out)\b",
            "logout",
            lambda m, ctx: {},
            "log out",
        ),
        regex_rule(
            r"\b(?:am\s+i|check\s+if\s+i['’]?m)\s+(?:logged\s+in|authenticated|signed\s+in)",
            "checkAuthenticationStatus",
            lambda m, ctx: {},
            "am I logged in?",
        ),
    ]


class IntentMatcher:
    """
    Ordered, first-match-wins translator from free text to ParsedIntent.
    """

    def __init__(self, rules: Optional[List[IntentRule]] = None) -> None:
        self.rules: List[IntentRule] = list(rules) if rules is not None else default_rules()

    def parse_intent(
        self,
        message: str,
        context: Optional[ExecutionContext] = None,
    ) -> Optional[ParsedIntent]:
        """
        Return the first matching intent, or None.

        Never raises: malformed input or a misbehaving rule simply fails
        to match.
        """
        if not isinstance(message, str):
            return None
        text = message.strip()
        if not text:
            return None

        for rule in self.rules:
            try:
                match = rule.matcher(text)
            except Exception as e:
                logger.warning(f"Intent matcher for {rule.action} failed: {e}")
                continue
            if not match:
                continue
            try:
                parameters = rule.build(match, context) or {}
            except Exception as e:
                logger.warning(f"Intent builder for {rule.action} failed: {e}")
                parameters = {}
            logger.debug(f"Intent matched: {rule.action} {parameters}")
            return ParsedIntent(action=rule.action, parameters=parameters)

        return None

    def examples(self) -> List[str]:
        return [rule.example for rule in self.rules if rule.example]
