"""
Tests for the backend action groups and the dispatch table, using a
routed in-memory stand-in for BackendClient.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest

from taskpilot.actions.auth import AuthActions
from taskpilot.actions.base import ActionGroup, items_of
from taskpilot.actions.dispatch import build_dispatch_table
from taskpilot.actions.members import MemberActions
from taskpilot.actions.navigation import NavigationActions, destination_path
from taskpilot.actions.project import ProjectActions, project_key
from taskpilot.actions.sprints import SprintActions
from taskpilot.actions.tasks import TaskActions
from taskpilot.actions.workflows import WorkflowActions
from taskpilot.actions.workspace import WorkspaceActions, summarize_workspace
from taskpilot.core.context import ExecutionContext
from taskpilot.core.errors import BackendError
from taskpilot.core.executor import AutomationExecutor
from taskpilot.core.registry import ActionType
from taskpilot.core.session_store import MemorySessionStore


# ---------------------------------------------------------------------------
# Helpers / Fakes
# ---------------------------------------------------------------------------

class FakeBackend:
    """
    Stand-in for BackendClient. Responses are keyed by (METHOD, path);
    an Exception value is raised instead of returned.
    """

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Any]] = None, token: Optional[str] = "tok"):
        self.routes = dict(routes or {})
        self.calls: List[Tuple[str, str, Any]] = []
        self._token = token

    @property
    def token(self):
        return self._token

    def set_token(self, token):
        self._token = token

    async def _respond(self, method, path, body):
        self.calls.append((method, path, body))
        if (method, path) not in self.routes:
            raise BackendError(f"Cannot {method} {path}", status=404)
        response = self.routes[(method, path)]
        if isinstance(response, Exception):
            raise response
        return response

    async def get(self, path, params=None):
        return await self._respond("GET", path, params)

    async def post(self, path, payload=None):
        return await self._respond("POST", path, payload)

    async def patch(self, path, payload=None):
        return await self._respond("PATCH", path, payload)

    async def delete(self, path):
        return await self._respond("DELETE", path, None)

    async def close(self):
        pass

    def bodies(self, method, path):
        return [body for m, p, body in self.calls if m == method and p == path]


WORKSPACE = {"id": "ws-1", "name": "Acme", "slug": "acme", "_count": {"projects": 2}}
PROJECT = {"id": "pr-1", "name": "Website", "slug": "website", "workflowId": "wf-1"}
STATUSES = [
    {"id": "st-2", "name": "In Progress", "position": 2},
    {"id": "st-1", "name": "To Do", "position": 1},
    {"id": "st-3", "name": "Done", "position": 3},
]

BASE_ROUTES = {
    ("GET", "/workspaces/organization/org-1/slug/acme"): WORKSPACE,
    ("GET", "/projects/by-slug/website"): PROJECT,
    ("GET", "/task-statuses"): STATUSES,
}


def run_async(coro):
    """Helper to run async coroutines inside plain pytest tests."""
    return asyncio.run(coro)


def make_group(cls, routes=None, context=None, **kwargs):
    backend = FakeBackend({**BASE_ROUTES, **(routes or {})})
    store = MemorySessionStore()
    store.current_organization = "org-1"
    context = context or ExecutionContext()
    return cls(backend, context, store, **kwargs), backend, context


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_action_group_requires_an_action_table():
    with pytest.raises(TypeError):
        make_group(ActionGroup)


def test_items_of_accepts_lists_and_wrappers():
    assert items_of([{"a": 1}, "skip"]) == [{"a": 1}]
    assert items_of({"data": [{"a": 1}]}) == [{"a": 1}]
    assert items_of({"items": [{"b": 2}]}) == [{"b": 2}]
    assert items_of(None) == []


def test_summarize_workspace_reads_nested_project_count():
    summary = summarize_workspace(WORKSPACE)
    assert summary["projectCount"] == 2
    assert summary["slug"] == "acme"


@pytest.mark.parametrize("name, key", [("Website Redesign", "WR"), ("Backend", "BACK"), ("", "PRJ")])
def test_project_key(name, key):
    assert project_key(name) == key


@pytest.mark.parametrize(
    "target, project, path",
    [("acme", "web", "/acme/web"), ("dashboard", None, "/dashboard"), ("/acme/members", None, "/acme/members")],
)
def test_destination_path(target, project, path):
    assert destination_path(target, project) == path


# ---------------------------------------------------------------------------
# Workspaces
# ---------------------------------------------------------------------------

def test_create_workspace_posts_slug_and_organization():
    group, backend, _ = make_group(WorkspaceActions, {("POST", "/workspaces"): {"id": "ws-9", "name": "Design Team"}})

    result = run_async(group.create_workspace("Design Team", "UI work"))

    assert result.success
    assert result.data == {"workspace": {"id": "ws-9", "name": "Design Team"}}
    assert backend.bodies("POST", "/workspaces") == [
        {"name": "Design Team", "slug": "design-team", "description": "UI work", "organizationId": "org-1"}
    ]


def test_create_workspace_without_organization_fails():
    backend = FakeBackend()
    group = WorkspaceActions(backend, ExecutionContext(), MemorySessionStore())

    result = run_async(group.create_workspace("Design Team"))

    assert not result.success
    assert result.error == "No current organization selected"
    assert backend.calls == []


def test_list_workspaces_summarizes():
    group, _, _ = make_group(WorkspaceActions, {("GET", "/workspaces"): {"data": [WORKSPACE]}})

    result = run_async(group.list_workspaces())

    assert result.success
    assert result.data["workspaces"][0]["name"] == "Acme"
    assert result.data["workspaces"][0]["projectCount"] == 2


def test_list_workspaces_empty():
    group, _, _ = make_group(WorkspaceActions, {("GET", "/workspaces"): []})
    result = run_async(group.list_workspaces())
    assert result.message == "No workspaces found"
    assert result.data == {"workspaces": []}


def test_navigate_to_workspace_updates_context():
    group, _, ctx = make_group(WorkspaceActions)
    result = run_async(group.navigate_to_workspace("acme"))
    assert result.success
    assert ctx.current_workspace == "acme"
    assert ctx.current_path == "/acme"


def test_navigate_to_unknown_workspace_reports_failure():
    group, _, ctx = make_group(WorkspaceActions)
    result = run_async(group.navigate_to_workspace("ghost"))
    assert not result.success
    assert result.message == "Failed to navigate to workspace: ghost"
    assert ctx.current_workspace is None


def test_edit_workspace_without_changes():
    group, backend, _ = make_group(WorkspaceActions)
    result = run_async(group.edit_workspace("acme", {"name": "", "description": ""}))
    assert not result.success
    assert result.error == "No changes provided"
    assert backend.calls == []


def test_edit_workspace_patches_only_changed_fields():
    group, backend, _ = make_group(
        WorkspaceActions, {("PATCH", "/workspaces/ws-1"): {**WORKSPACE, "name": "Acme Corp"}}
    )
    result = run_async(group.edit_workspace("acme", {"name": "Acme Corp", "description": ""}))
    assert result.success
    assert backend.bodies("PATCH", "/workspaces/ws-1") == [{"name": "Acme Corp"}]


def test_delete_current_workspace_returns_to_dashboard():
    ctx = ExecutionContext()
    ctx.navigate("/acme/website")
    group, _, _ = make_group(WorkspaceActions, {("DELETE", "/workspaces/ws-1"): None}, context=ctx)

    result = run_async(group.delete_workspace("acme"))

    assert result.success
    assert ctx.current_path == "/dashboard"
    assert ctx.current_workspace is None


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

def test_create_project_in_workspace():
    group, backend, _ = make_group(ProjectActions, {("POST", "/projects"): {"id": "pr-9", "name": "Mobile App"}})

    result = run_async(group.create_project("acme", "Mobile App", "", {"color": "#fff", "bogus": 1}))

    assert result.success
    body = backend.bodies("POST", "/projects")[0]
    assert body["slug"] == "mobile-app"
    assert body["key"] == "MA"
    assert body["workspaceId"] == "ws-1"
    assert body["color"] == "#fff"
    assert "bogus" not in body


def test_list_projects_without_workspace_uses_organization():
    group, backend, _ = make_group(ProjectActions, {("GET", "/projects/by-organization"): [PROJECT]})

    result = run_async(group.list_projects())

    assert result.data["projects"][0]["slug"] == "website"
    assert backend.bodies("GET", "/projects/by-organization") == [{"organizationId": "org-1"}]


def test_navigate_to_project_updates_context():
    group, _, ctx = make_group(ProjectActions)
    run_async(group.navigate_to_project("acme", "website"))
    assert (ctx.current_workspace, ctx.current_project) == ("acme", "website")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def test_create_task_uses_first_status_by_position():
    group, backend, _ = make_group(TaskActions, {("POST", "/tasks"): {"id": "t-1", "title": "Fix login bug"}})

    result = run_async(group.create_task("acme", "website", "Fix login bug"))

    assert result.success
    assert result.data == {"task": {"id": "t-1", "title": "Fix login bug"}}
    assert backend.bodies("POST", "/tasks") == [
        {"title": "Fix login bug", "projectId": "pr-1", "statusId": "st-1", "priority": "MEDIUM"}
    ]


def test_create_task_with_named_status_and_priority():
    group, backend, _ = make_group(TaskActions, {("POST", "/tasks"): {"id": "t-1"}})

    run_async(group.create_task("acme", "website", "Ship", {"status": "done", "priority": "high"}))

    body = backend.bodies("POST", "/tasks")[0]
    assert body["statusId"] == "st-3"
    assert body["priority"] == "HIGH"


def test_create_task_rejects_unknown_priority():
    group, backend, _ = make_group(TaskActions)
    result = run_async(group.create_task("acme", "website", "Ship", {"priority": "urgent"}))
    assert not result.success
    assert "URGENT" in result.error
    assert backend.bodies("POST", "/tasks") == []


def test_update_task_status_by_title():
    group, backend, _ = make_group(
        TaskActions,
        {
            ("GET", "/tasks"): [{"id": "t-1", "title": "Fix login bug"}],
            ("PATCH", "/tasks/t-1/status"): {"id": "t-1", "title": "Fix login bug"},
        },
    )

    result = run_async(group.update_task_status("acme", "website", "Fix login bug", "in-progress"))

    assert result.success
    assert result.message == 'Task "Fix login bug" moved to In Progress'
    assert backend.bodies("PATCH", "/tasks/t-1/status") == [{"statusId": "st-2"}]


def test_update_task_status_unknown_status_lists_available():
    group, _, _ = make_group(TaskActions)
    result = run_async(group.update_task_status("acme", "website", "x", "Blocked"))
    assert not result.success
    assert result.error == "Available statuses: To Do, In Progress, Done"


def test_get_task_details_by_key():
    group, _, _ = make_group(TaskActions, {("GET", "/tasks/key/WEB-12"): {"id": "t-12", "key": "WEB-12", "title": "X"}})
    result = run_async(group.get_task_details("acme", "website", "web-12"))
    assert result.success
    assert result.data["task"]["id"] == "t-12"


def test_filter_tasks_by_priority_records_filters():
    ctx = ExecutionContext()
    group, backend, _ = make_group(TaskActions, {("GET", "/tasks"): [{"id": "t", "title": "A", "priority": "HIGH"}]}, context=ctx)

    result = run_async(group.filter_tasks_by_priority("acme", "website", "high"))

    assert result.success
    assert result.data == [{"id": "t", "key": None, "title": "A", "priority": "HIGH", "status": None}]
    assert ctx.task_filters == {"priority": "high"}
    assert backend.bodies("GET", "/tasks")[0]["priorities"] == "HIGH"


def test_clear_task_filters_resets_context():
    ctx = ExecutionContext(task_filters={"priority": "HIGH"})
    group, _, _ = make_group(TaskActions, {("GET", "/tasks"): []}, context=ctx)
    result = run_async(group.clear_task_filters("acme", "website"))
    assert result.success
    assert ctx.task_filters == {}


def test_navigate_to_tasks_view():
    group, _, ctx = make_group(TaskActions)
    assert run_async(group.navigate_to_tasks_view("acme", "website", "kanban")).success
    assert ctx.current_path == "/acme/website/tasks/kanban"
    assert ctx.current_project == "website"
    assert run_async(group.navigate_to_tasks_view("acme", "website")).success
    assert ctx.current_path == "/acme/website/tasks"
    assert not run_async(group.navigate_to_tasks_view("acme", "website", "timeline")).success


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def test_login_stores_token_and_user():
    group, backend, ctx = make_group(
        AuthActions,
        {("POST", "/auth/login"): {"access_token": "new-token", "user": {"id": 7, "email": "a@b.co", "firstName": "Ada"}}},
    )

    result = run_async(group.login("a@b.co", "secret"))

    assert result.success
    assert result.data == {"authenticated": True}
    assert backend.token == "new-token"
    assert ctx.current_user.name == "Ada"


def test_check_authentication_status_expired_session():
    group, _, _ = make_group(AuthActions, {("POST", "/auth/profile"): BackendError("Unauthorized", status=401)})
    result = run_async(group.check_authentication_status())
    assert result.success
    assert result.data == {"authenticated": False}


def test_logout_clears_token_even_if_backend_fails():
    group, backend, _ = make_group(AuthActions, {("POST", "/auth/logout"): BackendError("down", status=500)})
    result = run_async(group.logout())
    assert result.success
    assert backend.token is None


# ---------------------------------------------------------------------------
# Navigation, members, sprints
# ---------------------------------------------------------------------------

def test_navigate_to_dashboard_and_context_report():
    group, _, ctx = make_group(NavigationActions)

    run_async(group.navigate_to("acme", "website"))
    report = run_async(group.get_current_context())
    assert report.message == "Currently in project: website (workspace: acme)"

    result = run_async(group.navigate_to("dashboard"))
    assert result.message == "Navigated to dashboard"
    assert run_async(group.get_current_context()).data["type"] == "global"


def test_invite_member_to_workspace():
    group, backend, _ = make_group(MemberActions, {("POST", "/invitations"): {"id": "inv-1"}})

    result = run_async(group.invite_member("new@b.co", "manager", "acme"))

    assert result.success
    assert backend.bodies("POST", "/invitations") == [
        {"inviteeEmail": "new@b.co", "role": "MANAGER", "workspaceId": "ws-1"}
    ]


def test_invite_member_rejects_unknown_role():
    group, _, _ = make_group(MemberActions)
    assert not run_async(group.invite_member("new@b.co", "emperor")).success


def test_create_sprint():
    group, _, _ = make_group(SprintActions, {("POST", "/sprints"): {"id": "sp-1", "status": "PLANNING"}})
    result = run_async(group.create_sprint("acme", "website", "Sprint 1", "Ship login"))
    assert result.message == 'Created sprint "Sprint 1" with status PLANNING'


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------

def make_workflows(routes):
    backend = FakeBackend({**BASE_ROUTES, **routes})
    store = MemorySessionStore()
    store.current_organization = "org-1"
    ctx = ExecutionContext()
    projects = ProjectActions(backend, ctx, store)
    tasks = TaskActions(backend, ctx, store)
    return WorkflowActions(backend, ctx, store, projects=projects, tasks=tasks), backend


def test_complete_project_setup_creates_project_then_tasks():
    workflows, backend = make_workflows(
        {
            ("POST", "/projects"): {"id": "pr-1", "name": "Website", "slug": "website"},
            ("POST", "/tasks"): {"id": "t"},
        }
    )

    result = run_async(workflows.complete_project_setup("acme", "Website", ["Design", {"title": "Build"}, {}]))

    assert result.success
    assert result.data["tasks"]["successful"] == 2
    assert result.data["tasks"]["failed"] == 1
    assert [b["title"] for b in backend.bodies("POST", "/tasks")] == ["Design", "Build"]


def test_bulk_task_operations_reports_failures():
    workflows, _ = make_workflows({("POST", "/tasks"): {"id": "t"}})

    result = run_async(
        workflows.bulk_task_operations(
            "acme",
            "website",
            [{"type": "create", "taskTitle": "A"}, {"type": "explode"}, {"type": "delete"}],
        )
    )

    assert not result.success
    assert result.data["successful"] == 1
    assert result.data["failed"] == 2
    assert result.error == "2 operation(s) failed"


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

def test_dispatch_table_covers_every_action():
    table = build_dispatch_table(FakeBackend(), ExecutionContext(), MemorySessionStore())
    assert set(table) == set(ActionType)


def test_dispatch_table_through_executor():
    backend = FakeBackend({**BASE_ROUTES, ("GET", "/workspaces"): [WORKSPACE]})
    store = MemorySessionStore()
    store.current_organization = "org-1"
    executor = AutomationExecutor(build_dispatch_table(backend, ExecutionContext(), store))

    result = run_async(executor.execute_action("listWorkspaces", {}))

    assert result.success
    assert result.data["workspaces"][0]["slug"] == "acme"
