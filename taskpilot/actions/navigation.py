"""
Navigation actions.

There is no browser behind the CLI: navigating means moving the session's
ExecutionContext to a new application path, from which the current
workspace and project are derived.
"""

import logging
from typing import Optional

from taskpilot.actions.base import ActionGroup
from taskpilot.core.context import GLOBAL_ROUTES
from taskpilot.core.registry import ActionType
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)


def destination_path(target: str, project_slug: Optional[str] = None) -> str:
    """
    Application path for a navigation target.

    ("acme", "website") -> "/acme/website"
    ("dashboard",)      -> "/dashboard"
    ("/acme/members",)  -> "/acme/members"
    ("acme",)           -> "/acme"
    """
    if project_slug:
        return f"/{target}/{project_slug}"
    if target.startswith("/"):
        return target
    return f"/{target.strip('/')}"


class NavigationActions(ActionGroup):

    async def navigate_to(self, target: Optional[str], project_slug: Optional[str] = None) -> ExecutionResult:
        if not target:
            return ExecutionResult.fail("Failed to navigate", "No destination given")

        path = destination_path(target, project_slug)
        self.context.navigate(path)
        page = path.strip("/").split("/")[0]
        if page in GLOBAL_ROUTES:
            return ExecutionResult.ok(f"Navigated to {page}")
        return ExecutionResult.ok(f"Navigated to {path}")

    async def get_current_context(self) -> ExecutionResult:
        snapshot = self.context.snapshot()
        if snapshot["projectSlug"]:
            message = (
                f"Currently in project: {snapshot['projectSlug']}"
                f" (workspace: {snapshot['workspaceSlug']})"
            )
        elif snapshot["workspaceSlug"]:
            message = f"Currently in workspace: {snapshot['workspaceSlug']}"
        else:
            message = "Currently in global context (no specific workspace)"
        return ExecutionResult.ok(message, snapshot)

    def actions(self):
        return {
            ActionType.NAVIGATE_TO: self.navigate_to,
            ActionType.GET_CURRENT_CONTEXT: self.get_current_context,
        }
