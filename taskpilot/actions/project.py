"""
Project actions.
"""

import logging
import re
from typing import Any, Dict, Optional

from taskpilot.actions.base import ActionGroup, items_of, reports_failure
from taskpilot.core.registry import ActionType
from taskpilot.core.resolver import generate_slug
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)

# Project fields the create endpoint accepts besides the basics.
_PROJECT_OPTIONS = ("key", "color", "status", "priority", "startDate", "endDate", "visibility")


def project_key(name: str, length: int = 4) -> str:
    """
    Short upper-case key from a project name.

    "Website Redesign" -> "WR", "Backend" -> "BACK"
    """
    words = re.findall(r"[A-Za-z0-9]+", name or "")
    if not words:
        return "PRJ"
    if len(words) == 1:
        return words[0][:length].upper()
    return "".join(word[0] for word in words)[:length].upper()


def summarize_project(project: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": project.get("id"),
        "name": project.get("name"),
        "slug": project.get("slug"),
        "key": project.get("key"),
        "description": project.get("description") or "",
    }


class ProjectActions(ActionGroup):

    @reports_failure("Failed to create project")
    async def create_project(
        self,
        workspace_slug: str,
        name: str,
        description: str = "",
        options: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        workspace = await self.find_workspace(workspace_slug)
        options = options or {}
        payload: Dict[str, Any] = {
            "name": name,
            "slug": generate_slug(name),
            "key": project_key(name),
            "description": description or "",
            "workspaceId": workspace["id"],
        }
        payload.update({k: options[k] for k in _PROJECT_OPTIONS if options.get(k)})

        project = await self.client.post("/projects", payload)
        logger.info(f"Created project {payload['slug']} in {workspace_slug}")
        return ExecutionResult.ok("Project created successfully", {"project": project})

    @reports_failure("Failed to list projects")
    async def list_projects(self, workspace_slug: Optional[str] = None) -> ExecutionResult:
        workspace_slug = workspace_slug or self.context.current_workspace
        if workspace_slug:
            workspace = await self.find_workspace(workspace_slug)
            body = await self.client.get("/projects", {"workspaceId": workspace["id"]})
        else:
            body = await self.client.get(
                "/projects/by-organization", {"organizationId": self.require_organization()}
            )

        projects = [summarize_project(p) for p in items_of(body)]
        if not projects:
            return ExecutionResult.ok("No projects found", {"projects": []})
        return ExecutionResult.ok("Projects retrieved", {"projects": projects})

    @reports_failure("Failed to navigate to project: {1}")
    async def navigate_to_project(self, workspace_slug: str, project_slug: str) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        self.context.navigate(f"/{workspace_slug}/{project.get('slug') or project_slug}")
        return ExecutionResult.ok(
            f"Successfully navigated to project: {project_slug}",
            {"project": project},
        )

    @reports_failure("Failed to edit project: {1}")
    async def edit_project(
        self,
        workspace_slug: str,
        project_slug: str,
        updates: Dict[str, Any],
    ) -> ExecutionResult:
        changes = {k: v for k, v in (updates or {}).items() if v}
        if not changes:
            return ExecutionResult.fail(f"Failed to edit project: {project_slug}", "No changes provided")

        project = await self.find_project(workspace_slug, project_slug)
        updated = await self.client.patch(f"/projects/{project['id']}", changes)
        return ExecutionResult.ok(
            f"Project {project_slug} updated successfully",
            {"project": updated if isinstance(updated, dict) else {**project, **changes}},
        )

    @reports_failure("Failed to delete project: {1}")
    async def delete_project(self, workspace_slug: str, project_slug: str) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        await self.client.delete(f"/projects/{project['id']}")
        if self.context.current_project == project_slug:
            self.context.navigate(f"/{workspace_slug}")
        return ExecutionResult.ok(f"Project {project_slug} deleted successfully")

    @reports_failure("Failed to search projects for: {0}")
    async def search_projects(self, query: str, workspace_slug: Optional[str] = None) -> ExecutionResult:
        params: Dict[str, Any] = {"search": query, "organizationId": self.organization_id}
        if workspace_slug:
            workspace = await self.find_workspace(workspace_slug)
            params["workspaceId"] = workspace["id"]

        projects = [summarize_project(p) for p in items_of(await self.client.get("/projects/search", params))]
        return ExecutionResult.ok(
            f'Found {len(projects)} projects matching "{query}"',
            {"projects": projects},
        )

    def actions(self):
        return {
            ActionType.CREATE_PROJECT: self.create_project,
            ActionType.LIST_PROJECTS: self.list_projects,
            ActionType.NAVIGATE_TO_PROJECT: self.navigate_to_project,
            ActionType.EDIT_PROJECT: self.edit_project,
            ActionType.DELETE_PROJECT: self.delete_project,
            ActionType.SEARCH_PROJECTS: self.search_projects,
        }
