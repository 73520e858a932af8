"""
Member invitations.
"""

import logging
from typing import Any, Dict, Optional

from taskpilot.actions.base import ActionGroup, reports_failure
from taskpilot.core.registry import ActionType
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)

ROLES = ("VIEWER", "MEMBER", "MANAGER", "OWNER")


class MemberActions(ActionGroup):

    @reports_failure("Failed to invite member")
    async def invite_member(
        self,
        email: str,
        role: str = "MEMBER",
        workspace_slug: Optional[str] = None,
        project_slug: Optional[str] = None,
    ) -> ExecutionResult:
        role = (role or "MEMBER").upper()
        if role not in ROLES:
            return ExecutionResult.fail(
                "Failed to invite member", f"Unknown role {role}. Use one of: {', '.join(ROLES)}"
            )

        # Narrowest scope wins: project, then workspace, then organization.
        payload: Dict[str, Any] = {"inviteeEmail": email, "role": role}
        scope = "organization"
        if workspace_slug and project_slug:
            project = await self.find_project(workspace_slug, project_slug)
            payload["projectId"] = project["id"]
            scope = f"{workspace_slug}/{project_slug}"
        elif workspace_slug:
            workspace = await self.find_workspace(workspace_slug)
            payload["workspaceId"] = workspace["id"]
            scope = workspace_slug
        else:
            payload["organizationId"] = self.require_organization()

        await self.client.post("/invitations", payload)
        logger.info(f"Invited {email} as {role} to {scope}")
        return ExecutionResult.ok(
            f"Invited {email} as {role} to {scope}",
            {"email": email, "role": role, "workspaceSlug": workspace_slug, "projectSlug": project_slug},
        )

    def actions(self):
        return {ActionType.INVITE_MEMBER: self.invite_member}
