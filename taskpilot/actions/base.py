"""
Base class for backend action groups.

Every group shares the session's BackendClient, ExecutionContext and
SessionStore, and the slug -> entity lookups most actions start with.
"""

import functools
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from taskpilot.actions.api_client import BackendClient
from taskpilot.core.context import ExecutionContext
from taskpilot.core.errors import BackendError
from taskpilot.core.results import ExecutionResult
from taskpilot.core.session_store import SessionStore

logger = logging.getLogger(__name__)


def reports_failure(message: str) -> Callable:
    """
    Turn a BackendError raised by the wrapped action into a failed
    ExecutionResult. `message` may use the action's positional arguments
    ({0}, {1}, ...).
    """

    def decorator(fn: Callable[..., Awaitable[ExecutionResult]]):
        @functools.wraps(fn)
        async def wrapper(self, *args: Any) -> ExecutionResult:
            try:
                return await fn(self, *args)
            except BackendError as e:
                logger.warning(f"{fn.__name__} failed: {e} (status={e.status})")
                try:
                    text = message.format(*args)
                except (IndexError, KeyError):
                    text = message
                return ExecutionResult.fail(text, str(e))

        return wrapper

    return decorator


def items_of(body: Any) -> List[Dict[str, Any]]:
    """List payload of a response that is either a list or {data: [...]}."""
    if isinstance(body, list):
        return [item for item in body if isinstance(item, dict)]
    if isinstance(body, dict):
        for key in ("data", "items", "results"):
            if isinstance(body.get(key), list):
                return [item for item in body[key] if isinstance(item, dict)]
    return []


class ActionGroup(ABC):
    """
    Shared plumbing for the action modules.
    """

    def __init__(
        self,
        client: BackendClient,
        context: ExecutionContext,
        session_store: SessionStore,
    ):
        self.client = client
        self.context = context
        self.session_store = session_store

    @property
    def organization_id(self) -> Optional[str]:
        return self.context.current_organization or self.session_store.current_organization

    def require_organization(self) -> str:
        organization = self.organization_id
        if not organization:
            raise BackendError("No current organization selected")
        return organization

    async def find_workspace(self, workspace_slug: str) -> Dict[str, Any]:
        """
        Workspace entity for a slug.

        Raises:
            BackendError: unknown slug or backend failure
        """
        organization = self.organization_id
        if organization:
            workspace = await self.client.get(
                f"/workspaces/organization/{organization}/slug/{workspace_slug}"
            )
            if isinstance(workspace, dict) and workspace.get("id"):
                return workspace

        for workspace in items_of(await self.client.get("/workspaces", {"organizationId": organization})):
            if workspace.get("slug") == workspace_slug:
                return workspace
        raise BackendError(f"Workspace not found: {workspace_slug}", status=404)

    async def find_project(self, workspace_slug: str, project_slug: str) -> Dict[str, Any]:
        """
        Project entity for a slug inside a workspace.

        Raises:
            BackendError: unknown slug or backend failure
        """
        project = await self.client.get(f"/projects/by-slug/{project_slug}")
        if isinstance(project, dict) and project.get("id"):
            return project

        workspace = await self.find_workspace(workspace_slug)
        for project in items_of(await self.client.get("/projects", {"workspaceId": workspace["id"]})):
            if project.get("slug") == project_slug:
                return project
        raise BackendError(f"Project not found: {project_slug}", status=404)

    @abstractmethod
    def actions(self) -> Dict[Any, Callable[..., Awaitable[ExecutionResult]]]:
        """ActionType -> bound coroutine method for this group."""
        pass
