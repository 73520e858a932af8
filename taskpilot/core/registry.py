# taskpilot/core/registry.py
"""
Action Registry

Fixed catalog of supported actions. Each action has exactly one descriptor
declaring its parameters (name + required flag), a human-readable
description and a category. The catalog is built once at import time and
never changes for the life of the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class ActionType(Enum):
    # Authentication
    LOGIN = "login"
    LOGOUT = "logout"
    CHECK_AUTHENTICATION_STATUS = "checkAuthenticationStatus"
    IS_AUTHENTICATED = "isAuthenticated"

    # Workspaces
    CREATE_WORKSPACE = "createWorkspace"
    LIST_WORKSPACES = "listWorkspaces"
    NAVIGATE_TO_WORKSPACE = "navigateToWorkspace"
    EDIT_WORKSPACE = "editWorkspace"
    DELETE_WORKSPACE = "deleteWorkspace"
    SEARCH_WORKSPACES = "searchWorkspaces"

    # Projects
    CREATE_PROJECT = "createProject"
    LIST_PROJECTS = "listProjects"
    NAVIGATE_TO_PROJECT = "navigateToProject"
    EDIT_PROJECT = "editProject"
    DELETE_PROJECT = "deleteProject"
    SEARCH_PROJECTS = "searchProjects"

    # Tasks
    CREATE_TASK = "createTask"
    UPDATE_TASK_STATUS = "updateTaskStatus"
    SEARCH_TASKS = "searchTasks"
    FILTER_TASKS = "filterTasks"
    FILTER_TASKS_BY_PRIORITY = "filterTasksByPriority"
    FILTER_TASKS_BY_STATUS = "filterTasksByStatus"
    CLEAR_TASK_FILTERS = "clearTaskFilters"
    GET_TASK_DETAILS = "getTaskDetails"
    DELETE_TASK = "deleteTask"
    NAVIGATE_TO_TASKS_VIEW = "navigateToTasksView"

    # Members / sprints
    INVITE_MEMBER = "inviteMember"
    CREATE_SPRINT = "createSprint"

    # Navigation
    NAVIGATE_TO = "navigateTo"
    GET_CURRENT_CONTEXT = "getCurrentContext"

    # Workflows
    COMPLETE_PROJECT_SETUP = "completeProjectSetup"
    BULK_TASK_OPERATIONS = "bulkTaskOperations"


class ActionCategory(Enum):
    AUTH = "authentication"
    WORKSPACE = "workspace"
    PROJECT = "project"
    TASK = "task"
    MEMBERS = "members"
    SPRINT = "sprint"
    NAVIGATION = "navigation"
    WORKFLOW = "workflow"


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    required: bool = False
    description: str = ""


@dataclass(frozen=True)
class ActionDescriptor:
    """Immutable description of one action's contract."""
    name: str
    description: str
    parameters: Tuple[ParameterSpec, ...]
    category: ActionCategory

    @property
    def required_parameters(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    @property
    def optional_parameters(self) -> List[str]:
        return [p.name for p in self.parameters if not p.required]


def _req(name: str, description: str = "") -> ParameterSpec:
    return ParameterSpec(name=name, required=True, description=description)


def _opt(name: str, description: str = "") -> ParameterSpec:
    return ParameterSpec(name=name, required=False, description=description)


_WS = _req("workspaceSlug", "Workspace slug, or 'current'")
_PS = _req("projectSlug", "Project slug, or 'current'")

_CATALOG: Tuple[Tuple[ActionType, str, ActionCategory, Tuple[ParameterSpec, ...]], ...] = (
    (ActionType.LOGIN, "Log in with email and password", ActionCategory.AUTH,
     (_req("email"), _req("password"))),
    (ActionType.LOGOUT, "Log out of the current session", ActionCategory.AUTH, ()),
    (ActionType.CHECK_AUTHENTICATION_STATUS, "Check whether you are logged in",
     ActionCategory.AUTH, ()),
    (ActionType.IS_AUTHENTICATED, "Report whether a session token is present",
     ActionCategory.AUTH, ()),

    (ActionType.CREATE_WORKSPACE, "Create a new workspace", ActionCategory.WORKSPACE,
     (_req("name"), _opt("description"))),
    (ActionType.LIST_WORKSPACES, "List all workspaces you can access",
     ActionCategory.WORKSPACE, ()),
    (ActionType.NAVIGATE_TO_WORKSPACE, "Open a workspace", ActionCategory.WORKSPACE,
     (_WS,)),
    (ActionType.EDIT_WORKSPACE, "Rename a workspace or change its description",
     ActionCategory.WORKSPACE,
     (_WS, _opt("name"), _opt("description"), _opt("updates"))),
    (ActionType.DELETE_WORKSPACE, "Delete a workspace", ActionCategory.WORKSPACE,
     (_WS,)),
    (ActionType.SEARCH_WORKSPACES, "Search workspaces by name", ActionCategory.WORKSPACE,
     (_req("query"),)),

    (ActionType.CREATE_PROJECT, "Create a project in a workspace", ActionCategory.PROJECT,
     (_WS, _req("name"), _opt("description"), _opt("options"))),
    (ActionType.LIST_PROJECTS, "List projects, optionally within one workspace",
     ActionCategory.PROJECT, (_opt("workspaceSlug"),)),
    (ActionType.NAVIGATE_TO_PROJECT, "Open a project", ActionCategory.PROJECT,
     (_WS, _PS)),
    (ActionType.EDIT_PROJECT, "Rename a project or change its description",
     ActionCategory.PROJECT,
     (_WS, _PS, _opt("name"), _opt("description"), _opt("updates"))),
    (ActionType.DELETE_PROJECT, "Delete a project", ActionCategory.PROJECT, (_WS, _PS)),
    (ActionType.SEARCH_PROJECTS, "Search projects by name", ActionCategory.PROJECT,
     (_req("query"), _opt("workspaceSlug"))),

    (ActionType.CREATE_TASK, "Create a task in a project", ActionCategory.TASK,
     (_WS, _PS, _req("taskTitle"), _opt("options"))),
    (ActionType.UPDATE_TASK_STATUS, "Move a task to another status", ActionCategory.TASK,
     (_WS, _PS, _req("taskTitle"), _req("newStatus"))),
    (ActionType.SEARCH_TASKS, "Search tasks by text", ActionCategory.TASK,
     (_WS, _PS, _req("query"))),
    (ActionType.FILTER_TASKS, "Filter tasks by several criteria", ActionCategory.TASK,
     (_WS, _PS, _opt("filters"))),
    (ActionType.FILTER_TASKS_BY_PRIORITY, "Show tasks with a given priority",
     ActionCategory.TASK, (_WS, _PS, _req("priority"))),
    (ActionType.FILTER_TASKS_BY_STATUS, "Show tasks with a given status",
     ActionCategory.TASK, (_WS, _PS, _req("status"))),
    (ActionType.CLEAR_TASK_FILTERS, "Remove all task filters", ActionCategory.TASK,
     (_WS, _PS)),
    (ActionType.GET_TASK_DETAILS, "Show details of a task", ActionCategory.TASK,
     (_WS, _PS, _req("taskId"))),
    (ActionType.DELETE_TASK, "Delete a task", ActionCategory.TASK,
     (_WS, _PS, _req("taskId"))),
    (ActionType.NAVIGATE_TO_TASKS_VIEW, "Open the task list, kanban or calendar view",
     ActionCategory.TASK, (_WS, _PS, _opt("view"))),

    (ActionType.INVITE_MEMBER, "Invite someone by email", ActionCategory.MEMBERS,
     (_req("email"), _opt("role"), _opt("workspaceSlug"), _opt("projectSlug"))),
    (ActionType.CREATE_SPRINT, "Create a sprint in a project", ActionCategory.SPRINT,
     (_WS, _PS, _req("name"), _opt("goal"))),

    (ActionType.NAVIGATE_TO, "Go to a page (dashboard, workspace, project, ...)",
     ActionCategory.NAVIGATION,
     (_req("destination"), _opt("workspaceSlug"), _opt("projectSlug"))),
    (ActionType.GET_CURRENT_CONTEXT, "Report the current workspace and project",
     ActionCategory.NAVIGATION, ()),

    (ActionType.COMPLETE_PROJECT_SETUP, "Create a project and seed it with tasks",
     ActionCategory.WORKFLOW, (_WS, _req("projectName"), _opt("tasks"))),
    (ActionType.BULK_TASK_OPERATIONS, "Apply several task operations in one go",
     ActionCategory.WORKFLOW, (_WS, _PS, _req("operations"))),
)

ERROR_MESSAGES: Dict[str, str] = {
    "unsupported_action": "I can't do that yet. Ask me what I can help with to see the available commands.",
    "insufficient_context": "I need a bit more information to do that. Please tell me which workspace, project or item you mean.",
    "not_implemented": "This command is known but not wired to an operation.",
    "execution_failed": "Something went wrong while running that command.",
}


ActionName = Union[str, ActionType]


def coerce_action(name: ActionName) -> Optional[ActionType]:
    """Map a wire name (or an ActionType) to the enum, or None if unknown."""
    if isinstance(name, ActionType):
        return name
    if not isinstance(name, str):
        return None
    try:
        return ActionType(name.strip())
    except ValueError:
        return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


class ActionRegistry:
    """
    Read-only lookup over the action catalog.

    Every ActionType member has exactly one descriptor; this is checked at
    construction time.
    """

    def __init__(self, descriptors: Optional[Iterable[ActionDescriptor]] = None):
        if descriptors is None:
            descriptors = [
                ActionDescriptor(name=at.value, description=desc, parameters=params, category=cat)
                for at, desc, cat, params in _CATALOG
            ]
        self._descriptors: Dict[str, ActionDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in self._descriptors:
                raise ValueError(f"Duplicate action descriptor: {descriptor.name}")
            self._descriptors[descriptor.name] = descriptor

        missing = [at.value for at in ActionType if at.value not in self._descriptors]
        if missing:
            raise ValueError(f"Actions without a descriptor: {', '.join(missing)}")

    def is_action_supported(self, name: ActionName) -> bool:
        action = coerce_action(name)
        return action is not None and action.value in self._descriptors

    def get_action_details(self, name: ActionName) -> Optional[ActionDescriptor]:
        action = coerce_action(name)
        if action is None:
            return None
        return self._descriptors.get(action.value)

    def missing_parameters(self, name: ActionName, parameters: Mapping[str, Any]) -> List[str]:
        """
        Names of required parameters that are absent or empty in the bag.
        Unknown actions have no requirements here; callers check support first.
        """
        descriptor = self.get_action_details(name)
        if descriptor is None:
            return []
        parameters = parameters or {}
        return [p for p in descriptor.required_parameters if _is_blank(parameters.get(p))]

    def list_actions(self, category: Optional[ActionCategory] = None) -> List[ActionDescriptor]:
        descriptors = list(self._descriptors.values())
        if category is not None:
            descriptors = [d for d in descriptors if d.category == category]
        return descriptors

    def error_message(self, kind: str) -> str:
        return ERROR_MESSAGES.get(kind, ERROR_MESSAGES["execution_failed"])

    def describe_capabilities(self) -> str:
        """Human-readable catalog grouped by category."""
        lines: List[str] = []
        for category in ActionCategory:
            actions = self.list_actions(category)
            if not actions:
                continue
            lines.append(f"{category.value.title()}:")
            for d in actions:
                params = ", ".join(
                    p.name if p.required else f"{p.name}?" for p in d.parameters
                )
                suffix = f" ({params})" if params else ""
                lines.append(f"  - {d.name}{suffix}: {d.description}")
        return "\n".join(lines)


# Shared default registry. The catalog is immutable so sharing it is safe.
default_registry = ActionRegistry()
