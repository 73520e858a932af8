"""
Sprint actions.
"""

from taskpilot.actions.base import ActionGroup, reports_failure
from taskpilot.core.registry import ActionType
from taskpilot.core.results import ExecutionResult


class SprintActions(ActionGroup):

    @reports_failure("Failed to create sprint")
    async def create_sprint(
        self,
        workspace_slug: str,
        project_slug: str,
        name: str,
        goal: str = "",
    ) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        payload = {"name": name, "projectId": project["id"]}
        if goal:
            payload["goal"] = goal
        sprint = await self.client.post("/sprints", payload)
        status = sprint.get("status", "PLANNING") if isinstance(sprint, dict) else "PLANNING"
        return ExecutionResult.ok(f'Created sprint "{name}" with status {status}', {"sprint": sprint})

    def actions(self):
        return {ActionType.CREATE_SPRINT: self.create_sprint}
