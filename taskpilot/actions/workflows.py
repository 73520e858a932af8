"""
Multi-step workflows built from the single actions.

Steps run one after another; a failed step is recorded and the rest
still run. Nothing is rolled back.
"""

import logging
from typing import Any, Dict, List, Optional

from taskpilot.actions.base import ActionGroup
from taskpilot.actions.project import ProjectActions
from taskpilot.actions.tasks import TaskActions
from taskpilot.core.registry import ActionType
from taskpilot.core.resolver import generate_slug
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)


class WorkflowActions(ActionGroup):

    def __init__(self, client, context, session_store, projects: ProjectActions, tasks: TaskActions):
        super().__init__(client, context, session_store)
        self.projects = projects
        self.tasks = tasks

    async def complete_project_setup(
        self,
        workspace_slug: str,
        project_name: str,
        tasks: Optional[List[Any]] = None,
    ) -> ExecutionResult:
        """Create a project, then one task per entry of `tasks` (titles or dicts)."""
        created = await self.projects.create_project(workspace_slug, project_name)
        if not created.success:
            return ExecutionResult.fail("Complete project setup failed", created.error or created.message)

        project = (created.data or {}).get("project") or {}
        project_slug = project.get("slug") or generate_slug(project_name)

        failures: List[Dict[str, Any]] = []
        successful = 0
        for entry in tasks or []:
            spec = entry if isinstance(entry, dict) else {"title": str(entry)}
            title = spec.get("title")
            if not title:
                failures.append({"task": spec, "error": "Missing title"})
                continue
            result = await self.tasks.create_task(workspace_slug, project_slug, title, spec)
            if result.success:
                successful += 1
            else:
                failures.append({"task": spec, "error": result.error or result.message})

        total = len(tasks or [])
        return ExecutionResult.ok(
            f"Complete project setup finished. Created {successful}/{total} tasks successfully.",
            {
                "project": {"name": project_name, "slug": project_slug},
                "tasks": {"total": total, "successful": successful, "failed": len(failures), "failures": failures},
            },
        )

    async def bulk_task_operations(
        self,
        workspace_slug: str,
        project_slug: str,
        operations: List[Dict[str, Any]],
    ) -> ExecutionResult:
        """Run create/update/delete task operations in order."""
        results = []
        for operation in operations or []:
            op_type = operation.get("type") if isinstance(operation, dict) else None

            if op_type == "create" and operation.get("taskTitle"):
                result = await self.tasks.create_task(
                    workspace_slug, project_slug, operation["taskTitle"], operation.get("taskData") or {}
                )
            elif op_type == "update" and operation.get("taskId") and operation.get("newStatus"):
                result = await self.tasks.update_task_status(
                    workspace_slug, project_slug, operation["taskId"], operation["newStatus"]
                )
            elif op_type == "delete" and operation.get("taskId"):
                result = await self.tasks.delete_task(workspace_slug, project_slug, operation["taskId"])
            elif op_type in ("create", "update", "delete"):
                result = ExecutionResult.fail(f"Missing fields for {op_type} operation", "Incomplete operation")
            else:
                result = ExecutionResult.fail(f"Unknown operation type: {op_type}", "Invalid operation type")

            results.append({"operation": operation, "result": result.to_dict()})

        successful = sum(1 for r in results if r["result"]["success"])
        failed = len(results) - successful
        message = f"Bulk operations completed. {successful} successful, {failed} failed."
        data = {"total": len(results), "successful": successful, "failed": failed, "results": results}
        if failed:
            return ExecutionResult(success=False, message=message, data=data, error=f"{failed} operation(s) failed")
        return ExecutionResult.ok(message, data)

    def actions(self):
        return {
            ActionType.COMPLETE_PROJECT_SETUP: self.complete_project_setup,
            ActionType.BULK_TASK_OPERATIONS: self.bulk_task_operations,
        }
