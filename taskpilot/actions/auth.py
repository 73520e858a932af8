"""
Authentication actions.
"""

import logging
from typing import Any, Dict

from taskpilot.actions.base import ActionGroup, reports_failure
from taskpilot.core.context import CurrentUser
from taskpilot.core.errors import BackendError
from taskpilot.core.registry import ActionType
from taskpilot.core.results import ExecutionResult

logger = logging.getLogger(__name__)


def _user_from(payload: Dict[str, Any]) -> CurrentUser:
    name = payload.get("name") or " ".join(
        part for part in (payload.get("firstName"), payload.get("lastName")) if part
    )
    return CurrentUser(
        id=str(payload.get("id", "")),
        email=payload.get("email", ""),
        name=name or payload.get("email", ""),
    )


class AuthActions(ActionGroup):

    @reports_failure("Login failed for {0}")
    async def login(self, email: str, password: str) -> ExecutionResult:
        body = await self.client.post("/auth/login", {"email": email, "password": password})
        body = body if isinstance(body, dict) else {}

        token = body.get("access_token") or body.get("accessToken")
        if not token:
            return ExecutionResult.fail(f"Login failed for {email}", "No access token in response")

        self.client.set_token(token)
        user = body.get("user") or {}
        if isinstance(user, dict) and user:
            self.context.update(current_user=_user_from(user))
        logger.info(f"Logged in as {email}")
        return ExecutionResult.ok(f"Logged in as {email}", {"authenticated": True})

    async def logout(self) -> ExecutionResult:
        if self.client.token:
            try:
                await self.client.post("/auth/logout")
            except BackendError as e:
                # Local logout still proceeds.
                logger.warning(f"Backend logout failed: {e}")
        self.client.set_token(None)
        self.context.update(current_user=None)
        return ExecutionResult.ok("Logged out successfully")

    async def check_authentication_status(self) -> ExecutionResult:
        if not self.client.token:
            return ExecutionResult.ok("Not logged in", {"authenticated": False})

        try:
            profile = await self.client.post("/auth/profile")
        except BackendError as e:
            if e.status in (401, 403):
                return ExecutionResult.ok("Session expired", {"authenticated": False})
            return ExecutionResult.fail("Failed to check authentication status", str(e))

        if isinstance(profile, dict) and profile:
            self.context.update(current_user=_user_from(profile))
        return ExecutionResult.ok("Authenticated", {"authenticated": True})

    async def is_authenticated(self) -> ExecutionResult:
        authenticated = bool(self.client.token)
        return ExecutionResult.ok(
            "Session token present" if authenticated else "No session token",
            {"authenticated": authenticated},
        )

    def actions(self):
        return {
            ActionType.LOGIN: self.login,
            ActionType.LOGOUT: self.logout,
            ActionType.CHECK_AUTHENTICATION_STATUS: self.check_authentication_status,
            ActionType.IS_AUTHENTICATED: self.is_authenticated,
        }
