# taskpilot/actions/dispatch.py
"""
Action Dispatch Table

Maps every ActionType to the coroutine that performs it for one session.
The table is built per session because the callables are bound to that
session's client and context.
"""

import logging
from typing import Awaitable, Callable, Dict

from taskpilot.actions.api_client import BackendClient
from taskpilot.actions.auth import AuthActions
from taskpilot.actions.members import MemberActions
from taskpilot.actions.navigation import NavigationActions
from taskpilot.actions.project import ProjectActions
from taskpilot.actions.sprints import SprintActions
from taskpilot.actions.tasks import TaskActions
from taskpilot.actions.workflows import WorkflowActions
from taskpilot.actions.workspace import WorkspaceActions
from taskpilot.core.context import ExecutionContext
from taskpilot.core.registry import ActionType
from taskpilot.core.results import ExecutionResult
from taskpilot.core.session_store import SessionStore

logger = logging.getLogger(__name__)

DispatchTable = Dict[ActionType, Callable[..., Awaitable[ExecutionResult]]]


def build_dispatch_table(
    client: BackendClient,
    context: ExecutionContext,
    session_store: SessionStore,
) -> DispatchTable:
    """
    Bind every action group to the session and merge their tables.

    Raises:
        ValueError: two groups claim the same action
    """
    projects = ProjectActions(client, context, session_store)
    tasks = TaskActions(client, context, session_store)
    groups = [
        AuthActions(client, context, session_store),
        WorkspaceActions(client, context, session_store),
        projects,
        tasks,
        NavigationActions(client, context, session_store),
        MemberActions(client, context, session_store),
        SprintActions(client, context, session_store),
        WorkflowActions(client, context, session_store, projects=projects, tasks=tasks),
    ]

    table: DispatchTable = {}
    for group in groups:
        for action_type, fn in group.actions().items():
            if action_type in table:
                raise ValueError(f"Action {action_type.value} registered twice")
            table[action_type] = fn

    unbound = [at.value for at in ActionType if at not in table]
    if unbound:
        logger.warning(f"Actions without an implementation: {', '.join(unbound)}")
    return table
