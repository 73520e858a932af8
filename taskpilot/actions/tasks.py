"""
Task actions: creation, status changes, search, filters and views.

Tasks are addressed by id, by key (PROJ-12) or by title. Statuses are
per-workflow and addressed by name; the backend wants their ids.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from taskpilot.actions.base import ActionGroup, items_of, reports_failure
from taskpilot.core.errors import BackendError
from taskpilot.core.registry import ActionType
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)

PRIORITIES = ("LOWEST", "LOW", "MEDIUM", "HIGH", "HIGHEST")
DEFAULT_PRIORITY = "MEDIUM"
TASK_VIEWS = ("list", "kanban", "calendar", "gantt")

# Optional task fields passed straight through on creation.
_TASK_OPTIONS = ("description", "dueDate", "startDate", "type", "storyPoints", "assigneeId", "sprintId")

_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_TASK_KEY = re.compile(r"^[A-Za-z][A-Za-z0-9]*-\d+$")


def summarize_task(task: Dict[str, Any]) -> Dict[str, Any]:
    status = task.get("status")
    return {
        "id": task.get("id"),
        "key": task.get("key"),
        "title": task.get("title"),
        "priority": task.get("priority"),
        "status": status.get("name") if isinstance(status, dict) else status,
    }


class TaskActions(ActionGroup):

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    async def project_statuses(self, project: Dict[str, Any]) -> List[Dict[str, Any]]:
        workflow = project.get("workflowId")
        statuses = items_of(await self.client.get("/task-statuses", {"workflowId": workflow}))
        return sorted(statuses, key=lambda s: s.get("position") or 0)

    def match_status(self, statuses: List[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
        wanted = (name or "").strip().lower()
        for status in statuses:
            if (status.get("name") or "").lower() == wanted:
                return status
        # "done" also matches "Done ✓", "in progress" matches "In-Progress"
        squashed = re.sub(r"[^a-z0-9]", "", wanted)
        for status in statuses:
            if squashed and re.sub(r"[^a-z0-9]", "", (status.get("name") or "").lower()) == squashed:
                return status
        return None

    async def query_tasks(self, project: Dict[str, Any], **filters: Any) -> List[Dict[str, Any]]:
        params = {
            "organizationId": self.require_organization(),
            "projectId": project["id"],
        }
        params.update({k: v for k, v in filters.items() if v})
        return items_of(await self.client.get("/tasks", params))

    async def find_task(self, project: Dict[str, Any], reference: str) -> Dict[str, Any]:
        """
        Task by id, key or title.

        Raises:
            BackendError: no such task
        """
        reference = (reference or "").strip()
        if _UUID.match(reference):
            return await self.client.get(f"/tasks/{reference}")
        if _TASK_KEY.match(reference):
            return await self.client.get(f"/tasks/key/{reference.upper()}")

        candidates = await self.query_tasks(project, search=reference)
        for task in candidates:
            if (task.get("title") or "").lower() == reference.lower():
                return task
        if candidates:
            return candidates[0]
        raise BackendError(f"Task not found: {reference}", status=404)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    @reports_failure("Failed to create task: {2}")
    async def create_task(
        self,
        workspace_slug: str,
        project_slug: str,
        title: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        options = options or {}
        project = await self.find_project(workspace_slug, project_slug)
        statuses = await self.project_statuses(project)

        status = self.match_status(statuses, options["status"]) if options.get("status") else None
        status = status or (statuses[0] if statuses else None)
        if status is None:
            return ExecutionResult.fail(f"Failed to create task: {title}", "Project has no task statuses")

        priority = str(options.get("priority") or DEFAULT_PRIORITY).upper()
        if priority not in PRIORITIES:
            return ExecutionResult.fail(
                f"Failed to create task: {title}",
                f"Unknown priority {priority}. Use one of: {', '.join(PRIORITIES)}",
            )

        payload: Dict[str, Any] = {
            "title": title,
            "projectId": project["id"],
            "statusId": status["id"],
            "priority": priority,
        }
        payload.update({k: options[k] for k in _TASK_OPTIONS if options.get(k)})

        task = await self.client.post("/tasks", payload)
        logger.info(f"Created task {title!r} in {workspace_slug}/{project_slug}")
        return ExecutionResult.ok("Task created successfully", {"task": task})

    @reports_failure("Failed to update status of task: {2}")
    async def update_task_status(
        self,
        workspace_slug: str,
        project_slug: str,
        title: str,
        new_status: str,
    ) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        statuses = await self.project_statuses(project)
        status = self.match_status(statuses, new_status)
        if status is None:
            available = ", ".join(s.get("name", "") for s in statuses)
            return ExecutionResult.fail(
                f"Unknown status: {new_status}",
                f"Available statuses: {available}" if available else None,
            )

        task = await self.find_task(project, title)
        updated = await self.client.patch(f"/tasks/{task['id']}/status", {"statusId": status["id"]})
        return ExecutionResult.ok(
            f'Task "{task.get("title") or title}" moved to {status.get("name")}',
            {"task": updated if isinstance(updated, dict) else task},
        )

    @reports_failure('Failed to search tasks for: {2}')
    async def search_tasks(self, workspace_slug: str, project_slug: str, query: str) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        tasks = [summarize_task(t) for t in await self.query_tasks(project, search=query)]
        return ExecutionResult.ok(f'Found {len(tasks)} task(s) matching "{query}"', tasks)

    @reports_failure("Failed to filter tasks")
    async def filter_tasks(
        self,
        workspace_slug: str,
        project_slug: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        filters = dict(filters or {})
        project = await self.find_project(workspace_slug, project_slug)

        priorities = filters.get("priorities") or filters.get("priority")
        if isinstance(priorities, str):
            priorities = [priorities]
        priorities = [str(p).upper() for p in priorities or []]
        unknown = [p for p in priorities if p not in PRIORITIES]
        if unknown:
            return ExecutionResult.fail(
                "Failed to filter tasks",
                f"Unknown priority {', '.join(unknown)}. Use one of: {', '.join(PRIORITIES)}",
            )

        names = filters.get("statuses") or filters.get("status")
        if isinstance(names, str):
            names = [names]
        status_ids: List[str] = []
        if names:
            statuses = await self.project_statuses(project)
            for name in names:
                status = self.match_status(statuses, name)
                if status is None:
                    return ExecutionResult.fail("Failed to filter tasks", f"Unknown status: {name}")
                status_ids.append(status["id"])

        tasks = await self.query_tasks(
            project,
            priorities=",".join(priorities),
            statuses=",".join(status_ids),
            search=filters.get("search"),
        )
        self.context.update(task_filters={k: v for k, v in filters.items() if v})
        summaries = [summarize_task(t) for t in tasks]
        return ExecutionResult.ok(f"Found {len(summaries)} task(s) matching the filters", summaries)

    async def filter_tasks_by_priority(
        self, workspace_slug: str, project_slug: str, priority: str
    ) -> ExecutionResult:
        return await self.filter_tasks(workspace_slug, project_slug, {"priority": priority})

    async def filter_tasks_by_status(
        self, workspace_slug: str, project_slug: str, status: str
    ) -> ExecutionResult:
        return await self.filter_tasks(workspace_slug, project_slug, {"status": status})

    @reports_failure("Failed to clear task filters")
    async def clear_task_filters(self, workspace_slug: str, project_slug: str) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        tasks = [summarize_task(t) for t in await self.query_tasks(project)]
        self.context.update(task_filters={})
        return ExecutionResult.ok("Task filters cleared", tasks)

    @reports_failure("Failed to get details of task: {2}")
    async def get_task_details(self, workspace_slug: str, project_slug: str, task_id: str) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        task = await self.find_task(project, task_id)
        return ExecutionResult.ok(f"Details for task {task.get('key') or task_id}", {"task": task})

    @reports_failure("Failed to delete task: {2}")
    async def delete_task(self, workspace_slug: str, project_slug: str, task_id: str) -> ExecutionResult:
        project = await self.find_project(workspace_slug, project_slug)
        task = await self.find_task(project, task_id)
        await self.client.delete(f"/tasks/{task['id']}")
        return ExecutionResult.ok(f'Task "{task.get("title") or task_id}" deleted successfully')

    async def navigate_to_tasks_view(
        self, workspace_slug: str, project_slug: str, view: str = "list"
    ) -> ExecutionResult:
        view = (view or "list").lower()
        if view not in TASK_VIEWS:
            return ExecutionResult.fail(
                f"Unknown task view: {view}", f"Use one of: {', '.join(TASK_VIEWS)}"
            )
        path = f"/{workspace_slug}/{project_slug}/tasks"
        if view != "list":
            path += f"/{view}"
        self.context.navigate(path)
        return ExecutionResult.ok(f"Switched to {view} view", {"view": view})

    def actions(self):
        return {
            ActionType.CREATE_TASK: self.create_task,
            ActionType.UPDATE_TASK_STATUS: self.update_task_status,
            ActionType.SEARCH_TASKS: self.search_tasks,
            ActionType.FILTER_TASKS: self.filter_tasks,
            ActionType.FILTER_TASKS_BY_PRIORITY: self.filter_tasks_by_priority,
            ActionType.FILTER_TASKS_BY_STATUS: self.filter_tasks_by_status,
            ActionType.CLEAR_TASK_FILTERS: self.clear_task_filters,
            ActionType.GET_TASK_DETAILS: self.get_task_details,
            ActionType.DELETE_TASK: self.delete_task,
            ActionType.NAVIGATE_TO_TASKS_VIEW: self.navigate_to_tasks_view,
        }
