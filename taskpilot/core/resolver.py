# taskpilot/core/resolver.py
"""
Context Resolver

Turns a parameter bag that may hold symbolic ("current") or human-entered
values into one that holds concrete identifiers.

Workspace names are mapped to slugs through three ordered tiers. Each
tier is its own method returning a SlugResolution; resolve_workspace_slug
folds them in order. The last tier never fails, so resolution always
produces a usable slug.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from taskpilot.core.context import GLOBAL_ROUTES, ExecutionContext
from taskpilot.core.results import ExecutionResult
from taskpilot.core.session_store import SessionStore

logger = logging.getLogger(__name__)

CURRENT = "current"
DEFAULT_LISTING_TIMEOUT = 5.0

# First path segments that never name a workspace.
RESERVED_SEGMENTS = {"dashboard", "settings", "activity"} | GLOBAL_ROUTES

WorkspaceLister = Callable[[], Awaitable[ExecutionResult]]


@dataclass(frozen=True)
class SlugResolution:
    """Outcome of one resolution tier: a slug, or the reason there is none."""

    slug: Optional[str] = None
    error: Optional[str] = None
    source: str = ""

    @property
    def ok(self) -> bool:
        return bool(self.slug)

    @classmethod
    def found(cls, slug: str, source: str) -> "SlugResolution":
        return cls(slug=slug, source=source)

    @classmethod
    def failed(cls, error: str, source: str) -> "SlugResolution":
        return cls(error=error, source=source)


def generate_slug(name: str) -> str:
    """
    Deterministic slug from a display name.

    "Marketing Team" -> "marketing-team", "QA & Test!" -> "qa-test"
    """
    slug = (name or "").lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def looks_like_name(value: str) -> bool:
    """True when the value reads as a display name rather than a slug."""
    if not isinstance(value, str) or not value:
        return False
    if re.search(r"\s", value) or re.search(r"[A-Z]", value):
        return True
    return value.lower() != re.sub(r"[^a-z0-9-]", "", value)


class ContextResolver:
    """
    Resolves placeholders and workspace names against the session.

    Args:
        context: the session's ExecutionContext
        session_store: fallback source for the current organization id
        list_workspaces: async listing collaborator used by the lookup tier
        timeout: seconds the listing call may take before it is abandoned
    """

    def __init__(
        self,
        context: ExecutionContext,
        session_store: Optional[SessionStore] = None,
        list_workspaces: Optional[WorkspaceLister] = None,
        timeout: float = DEFAULT_LISTING_TIMEOUT,
    ):
        self.context = context
        self.session_store = session_store
        self.list_workspaces = list_workspaces
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    async def resolve(self, parameters: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a resolved copy of `parameters`; the input is not modified."""
        resolved = self.resolve_placeholders(parameters)

        workspace = resolved.get("workspaceSlug")
        if isinstance(workspace, str) and looks_like_name(workspace):
            logger.debug(f"Workspace value looks like a name: {workspace!r}")
            resolved["workspaceSlug"] = await self.resolve_workspace_slug(workspace)

        return resolved

    def resolve_placeholders(self, parameters: Mapping[str, Any]) -> Dict[str, Any]:
        resolved = dict(parameters or {})

        if resolved.get("workspaceSlug") == CURRENT and self.context.current_workspace:
            resolved["workspaceSlug"] = self.context.current_workspace

        if resolved.get("projectSlug") == CURRENT and self.context.current_project:
            resolved["projectSlug"] = self.context.current_project

        if resolved.get("organizationId") == CURRENT:
            organization = self.current_organization()
            if organization:
                resolved["organizationId"] = organization

        return resolved

    def current_organization(self) -> Optional[str]:
        if self.context.current_organization:
            return self.context.current_organization
        if self.session_store is not None:
            return self.session_store.current_organization
        return None

    # ------------------------------------------------------------------
    # Workspace name -> slug tiers
    # ------------------------------------------------------------------
    async def resolve_workspace_slug(self, name: str) -> str:
        for tier in (self.from_navigation_path, self.from_workspace_listing):
            resolution = tier(name)
            if asyncio.iscoroutine(resolution):
                resolution = await resolution
            if resolution.ok:
                logger.info(f"Resolved workspace {name!r} -> {resolution.slug!r} ({resolution.source})")
                return resolution.slug
            logger.debug(f"Tier {resolution.source} did not resolve {name!r}: {resolution.error}")

        resolution = self.from_generated_slug(name)
        logger.info(f"Using generated slug for workspace {name!r}: {resolution.slug!r}")
        return resolution.slug or name

    def from_navigation_path(self, name: str) -> SlugResolution:
        segments = self.context.path_segments
        if not segments:
            return SlugResolution.failed("no navigation path", "path")
        if segments[0] in RESERVED_SEGMENTS:
            return SlugResolution.failed(f"'{segments[0]}' is a reserved route", "path")
        return SlugResolution.found(segments[0], "path")

    async def from_workspace_listing(self, name: str) -> SlugResolution:
        if self.list_workspaces is None:
            return SlugResolution.failed("no workspace listing available", "listing")

        try:
            result = await asyncio.wait_for(self.list_workspaces(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Workspace listing timed out after {self.timeout}s")
            return SlugResolution.failed("listing timed out", "listing")
        except Exception as e:
            logger.warning(f"Workspace listing failed: {e}")
            return SlugResolution.failed(str(e), "listing")

        data = result.data if result is not None and result.success else None
        workspaces = data.get("workspaces") if isinstance(data, Mapping) else None
        if not isinstance(workspaces, list):
            return SlugResolution.failed("listing returned no workspaces", "listing")

        wanted = name.lower()
        for workspace in workspaces:
            if not isinstance(workspace, Mapping):
                continue
            ws_name = workspace.get("name")
            if ws_name and ws_name.lower() == wanted and workspace.get("slug"):
                return SlugResolution.found(workspace["slug"], "listing")

        return SlugResolution.failed(f"no workspace named {name!r}", "listing")

    def from_generated_slug(self, name: str) -> SlugResolution:
        return SlugResolution.found(generate_slug(name), "generated")
