from taskpilot.core.formatter import format_result
from taskpilot.core.results import ExecutionResult


def test_success_without_data():
    assert format_result(ExecutionResult.ok("Logged out successfully")) == "✅ Logged out successfully"


def test_success_with_empty_message_uses_default():
    assert format_result(ExecutionResult.ok("")) == "✅ Action completed successfully"


def test_failure_includes_message_and_error():
    text = format_result(ExecutionResult.fail("x", "y"))
    assert text == "❌ x\ny"


def test_failure_without_error():
    assert format_result(ExecutionResult(success=False, message="")) == "❌ Action failed\n"


def test_workspace_listing():
    result = ExecutionResult.ok(
        "Workspaces retrieved",
        {
            "workspaces": [
                {"name": "Acme", "slug": "acme", "description": "Main", "projectCount": 3},
                {"name": "Design", "slug": "design"},
            ]
        },
    )
    text = format_result(result)

    assert text.startswith("✅ Workspaces retrieved")
    assert "Found 2 workspace(s)" in text
    assert "📁 Acme - Main (3 projects)" in text
    assert "📁 Design" in text


def test_project_listing():
    text = format_result(ExecutionResult.ok("Projects retrieved", {"projects": [{"name": "Web", "description": "Site"}]}))
    assert "Found 1 project(s):" in text
    assert "🎯 Web - Site" in text


def test_single_entities():
    assert format_result(ExecutionResult.ok("ok", {"workspace": {"name": "Acme"}})).endswith("\n📁 Workspace: Acme")
    assert format_result(ExecutionResult.ok("ok", {"project": {"name": "Web"}})).endswith("\n🎯 Project: Web")
    assert format_result(ExecutionResult.ok("ok", {"task": {"title": "Fix"}})).endswith("\n✅ Task: Fix")


def test_authentication_flag_replaces_message():
    assert format_result(ExecutionResult.ok("Authenticated", {"authenticated": True})) == "✅ You are currently logged in"
    assert format_result(ExecutionResult.ok("Not logged in", {"authenticated": False})) == "❌ You are not logged in"


def test_short_list_is_itemized():
    text = format_result(ExecutionResult.ok("Found 2 task(s)", [{"title": "A"}, {"title": "B"}]))
    assert text == "✅ Found 2 task(s)\n\nFound 2 items:\n• A\n• B"


def test_empty_list_still_reports_count():
    text = format_result(ExecutionResult.ok("Search done", []))
    assert text == "✅ Search done\n\nFound 0 items"


def test_long_list_is_only_counted():
    items = [{"title": str(i)} for i in range(11)]
    text = format_result(ExecutionResult.ok("Search done", items))
    assert text == "✅ Search done\n\nFound 11 items"


def test_unknown_data_shape_shows_bare_message():
    result = ExecutionResult.ok("Created sprint", {"sprint": {"nested": {"deep": 1}}})
    assert format_result(result) == "✅ Created sprint"
