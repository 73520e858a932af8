# taskpilot/core/context.py
"""
Session-scoped execution context.

One ExecutionContext is created per chat session and passed explicitly to
every component that needs it. It is updated on navigation (or through
update()) and is never persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# First path segments that are application routes, not workspace slugs.
GLOBAL_ROUTES = {"dashboard", "workspaces", "settings", "activities"}
# Second path segments that are workspace sub-pages, not project slugs.
WORKSPACE_SUBROUTES = {"projects", "members", "settings"}


@dataclass
class CurrentUser:
    id: str
    email: str
    name: str


@dataclass
class ExecutionContext:
    """
    Ambient state read by the resolver and the background executor to fill
    in omitted or symbolic ("current") parameters.
    """
    current_workspace: Optional[str] = None
    current_project: Optional[str] = None
    current_user: Optional[CurrentUser] = None
    permissions: List[str] = field(default_factory=list)
    current_organization: Optional[str] = None
    current_path: str = "/"
    task_filters: Dict[str, Any] = field(default_factory=dict)

    def update(self, **updates: Any) -> None:
        """
        Merge updates into the context. Unknown keys raise TypeError so
        typos do not silently create new state.
        """
        known = {f.name for f in fields(self)}
        for key, value in updates.items():
            if key not in known:
                raise TypeError(f"Unknown context field: {key}")
            setattr(self, key, value)
        logger.debug(f"Context updated: {sorted(updates)}")

    def navigate(self, path: str) -> None:
        """
        Record a navigation and re-derive workspace/project from the path.
        Task filters are page state and are dropped on navigation.
        """
        derived = extract_context_from_path(path)
        self.current_path = path or "/"
        self.current_workspace = derived.get("current_workspace")
        self.current_project = derived.get("current_project")
        self.task_filters = {}
        logger.info(f"Navigated to {self.current_path}")

    @property
    def path_segments(self) -> List[str]:
        return [part for part in (self.current_path or "").split("/") if part]

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view, used by getCurrentContext and the CLI."""
        if self.current_project:
            scope = "project"
        elif self.current_workspace:
            scope = "workspace"
        else:
            scope = "global"
        return {
            "type": scope,
            "workspaceSlug": self.current_workspace,
            "projectSlug": self.current_project,
            "organizationId": self.current_organization,
            "path": self.current_path,
            "filters": dict(self.task_filters),
        }


def extract_context_from_path(pathname: str) -> Dict[str, Optional[str]]:
    """
    Derive workspace and project slugs from an application path.

    "/acme/website/tasks" -> {"current_workspace": "acme", "current_project": "website"}
    "/dashboard"          -> {}
    """
    parts = [part for part in (pathname or "").split("/") if part]
    context: Dict[str, Optional[str]] = {}

    if parts and parts[0] not in GLOBAL_ROUTES:
        context["current_workspace"] = parts[0]

    if len(parts) > 1 and context.get("current_workspace") and parts[1] not in WORKSPACE_SUBROUTES:
        context["current_project"] = parts[1]

    return context
