"""
Workspace actions.
"""

import logging
from typing import Any, Dict, List, Optional

from taskpilot.actions.base import ActionGroup, items_of, reports_failure
from taskpilot.core.registry import ActionType
from taskpilot.core.resolver import generate_slug
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)


def summarize_workspace(workspace: Dict[str, Any]) -> Dict[str, Any]:
    """Shape used in listings: name, slug, description, projectCount."""
    summary: Dict[str, Any] = {
        "id": workspace.get("id"),
        "name": workspace.get("name"),
        "slug": workspace.get("slug"),
        "description": workspace.get("description") or "",
    }
    count = workspace.get("projectCount")
    if count is None and isinstance(workspace.get("_count"), dict):
        count = workspace["_count"].get("projects")
    if count is not None:
        summary["projectCount"] = count
    return summary


class WorkspaceActions(ActionGroup):

    @reports_failure("Failed to create workspace")
    async def create_workspace(self, name: str, description: str = "") -> ExecutionResult:
        organization = self.require_organization()
        payload = {
            "name": name,
            "slug": generate_slug(name),
            "description": description or "",
            "organizationId": organization,
        }
        workspace = await self.client.post("/workspaces", payload)
        logger.info(f"Created workspace {payload['slug']}")
        return ExecutionResult.ok("Workspace created successfully", {"workspace": workspace})

    @reports_failure("Failed to list workspaces")
    async def list_workspaces(self) -> ExecutionResult:
        body = await self.client.get("/workspaces", {"organizationId": self.organization_id})
        workspaces: List[Dict[str, Any]] = [summarize_workspace(ws) for ws in items_of(body)]
        if not workspaces:
            return ExecutionResult.ok("No workspaces found", {"workspaces": []})
        return ExecutionResult.ok("Workspaces retrieved", {"workspaces": workspaces})

    @reports_failure("Failed to navigate to workspace: {0}")
    async def navigate_to_workspace(self, workspace_slug: str) -> ExecutionResult:
        workspace = await self.find_workspace(workspace_slug)
        self.context.navigate(f"/{workspace.get('slug') or workspace_slug}")
        return ExecutionResult.ok(
            f"Successfully navigated to workspace: {workspace_slug}",
            {"workspace": workspace},
        )

    @reports_failure("Failed to edit workspace: {0}")
    async def edit_workspace(self, workspace_slug: str, updates: Dict[str, Any]) -> ExecutionResult:
        changes = {k: v for k, v in (updates or {}).items() if v}
        if not changes:
            return ExecutionResult.fail(
                f"Failed to edit workspace: {workspace_slug}", "No changes provided"
            )

        workspace = await self.find_workspace(workspace_slug)
        updated = await self.client.patch(f"/workspaces/{workspace['id']}", changes)
        return ExecutionResult.ok(
            f"Workspace {workspace_slug} updated successfully",
            {"workspace": updated if isinstance(updated, dict) else {**workspace, **changes}},
        )

    @reports_failure("Failed to delete workspace: {0}")
    async def delete_workspace(self, workspace_slug: str) -> ExecutionResult:
        workspace = await self.find_workspace(workspace_slug)
        await self.client.delete(f"/workspaces/{workspace['id']}")
        if self.context.current_workspace == workspace_slug:
            self.context.navigate("/dashboard")
        return ExecutionResult.ok(f"Workspace {workspace_slug} deleted successfully")

    @reports_failure("Failed to search workspaces for: {0}")
    async def search_workspaces(self, query: str, organization_id: Optional[str] = None) -> ExecutionResult:
        body = await self.client.get(
            "/workspaces/search",
            {"organizationId": organization_id or self.organization_id, "search": query},
        )
        workspaces = [summarize_workspace(ws) for ws in items_of(body)]
        return ExecutionResult.ok(
            f'Found {len(workspaces)} workspaces matching "{query}"',
            {"workspaces": workspaces},
        )

    def actions(self):
        return {
            ActionType.CREATE_WORKSPACE: self.create_workspace,
            ActionType.LIST_WORKSPACES: self.list_workspaces,
            ActionType.NAVIGATE_TO_WORKSPACE: self.navigate_to_workspace,
            ActionType.EDIT_WORKSPACE: self.edit_workspace,
            ActionType.DELETE_WORKSPACE: self.delete_workspace,
            ActionType.SEARCH_WORKSPACES: self.search_workspaces,
        }
