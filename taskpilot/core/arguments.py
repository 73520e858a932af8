# taskpilot/core/arguments.py
"""
Argument Adapter

Maps a loose parameter bag onto the positional argument list each
dispatched callable expects. Pure: the same bag always yields the same
list, and the bag is never modified.
"""

from typing import Any, Callable, Dict, List, Mapping

from taskpilot.core.registry import ActionName, ActionType, coerce_action


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _edit_payload(params: Mapping[str, Any]) -> Dict[str, str]:
    # The assistant sends either {"updates": {...}} or flat name/description.
    updates = params.get("updates") or {}
    if not isinstance(updates, Mapping):
        updates = {}
    return {
        "name": _text(updates.get("name") or params.get("name") or ""),
        "description": _text(updates.get("description") or params.get("description") or ""),
    }


def _navigate_to(p: Mapping[str, Any]) -> List[Any]:
    destination = p.get("destination")
    if destination == "workspace":
        return [p.get("workspaceSlug")]
    if destination == "project":
        return [p.get("workspaceSlug"), p.get("projectSlug")]
    return [destination]


_ADAPTERS: Dict[ActionType, Callable[[Mapping[str, Any]], List[Any]]] = {
    ActionType.LOGIN: lambda p: [p.get("email"), p.get("password")],
    ActionType.CREATE_TASK: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("taskTitle"),
        p.get("options") or {},
    ],
    ActionType.UPDATE_TASK_STATUS: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("taskTitle"),
        p.get("newStatus"),
    ],
    ActionType.CREATE_WORKSPACE: lambda p: [p.get("name"), p.get("description") or ""],
    ActionType.EDIT_WORKSPACE: lambda p: [p.get("workspaceSlug"), _edit_payload(p)],
    ActionType.DELETE_WORKSPACE: lambda p: [p.get("workspaceSlug")],
    ActionType.SEARCH_WORKSPACES: lambda p: [p.get("query")],
    ActionType.CREATE_PROJECT: lambda p: [
        p.get("workspaceSlug"),
        p.get("name"),
        p.get("description") or "",
        p.get("options") or {},
    ],
    ActionType.EDIT_PROJECT: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        _edit_payload(p),
    ],
    ActionType.DELETE_PROJECT: lambda p: [p.get("workspaceSlug"), p.get("projectSlug")],
    ActionType.SEARCH_PROJECTS: lambda p: (
        [p.get("query"), p.get("workspaceSlug")] if p.get("workspaceSlug") else [p.get("query")]
    ),
    ActionType.NAVIGATE_TO_WORKSPACE: lambda p: [p.get("workspaceSlug")],
    ActionType.NAVIGATE_TO_PROJECT: lambda p: [p.get("workspaceSlug"), p.get("projectSlug")],
    ActionType.NAVIGATE_TO: _navigate_to,
    ActionType.FILTER_TASKS: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("filters") or {},
    ],
    ActionType.FILTER_TASKS_BY_PRIORITY: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("priority"),
    ],
    ActionType.FILTER_TASKS_BY_STATUS: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("status"),
    ],
    ActionType.SEARCH_TASKS: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("query"),
    ],
    ActionType.GET_TASK_DETAILS: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("taskId"),
    ],
    ActionType.DELETE_TASK: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("taskId"),
    ],
    ActionType.CLEAR_TASK_FILTERS: lambda p: [p.get("workspaceSlug"), p.get("projectSlug")],
    ActionType.NAVIGATE_TO_TASKS_VIEW: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("view") or "list",
    ],
    ActionType.INVITE_MEMBER: lambda p: [
        p.get("email"),
        p.get("role") or "MEMBER",
        p.get("workspaceSlug"),
        p.get("projectSlug"),
    ],
    ActionType.CREATE_SPRINT: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("name"),
        p.get("goal") or "",
    ],
    ActionType.COMPLETE_PROJECT_SETUP: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectName"),
        p.get("tasks") or [],
    ],
    ActionType.BULK_TASK_OPERATIONS: lambda p: [
        p.get("workspaceSlug"),
        p.get("projectSlug"),
        p.get("operations") or [],
    ],
    ActionType.LIST_PROJECTS: lambda p: [p["workspaceSlug"]] if p.get("workspaceSlug") else [],
}

# Actions whose callables take no arguments at all.
_NO_ARGS = {
    ActionType.LIST_WORKSPACES,
    ActionType.LOGOUT,
    ActionType.CHECK_AUTHENTICATION_STATUS,
    ActionType.GET_CURRENT_CONTEXT,
    ActionType.IS_AUTHENTICATED,
}


def prepare_arguments(action: ActionName, parameters: Mapping[str, Any]) -> List[Any]:
    """
    Build the positional argument list for `action`.

    Unlisted actions fall back to the bag's values in insertion order.
    """
    parameters = parameters or {}
    action_type = coerce_action(action)

    if action_type in _NO_ARGS:
        return []

    adapter = _ADAPTERS.get(action_type) if action_type is not None else None
    if adapter is None:
        return list(parameters.values())
    return adapter(parameters)
