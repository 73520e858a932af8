# taskpilot/core/formatter.py
"""
Turns an ExecutionResult into the short text shown in the chat.

Pure function of its input. Only a few known data shapes are rendered;
anything else falls back to the bare message so nested payloads never
leak into the conversation.
"""

from typing import Any, List, Mapping

from taskpilot.core.results import ExecutionResult

# Arrays up to this size are itemized.
MAX_ITEMIZED = 10


def _label(item: Any) -> str:
    if isinstance(item, Mapping):
        return str(item.get("name") or item.get("title") or item)
    return str(item)


def _format_list(items: List[Any]) -> str:
    text = f"\n\nFound {len(items)} items"
    if 0 < len(items) <= MAX_ITEMIZED:
        text += ":\n" + "\n".join(f"• {_label(item)}" for item in items)
    return text


def _format_workspaces(workspaces: List[Any]) -> str:
    text = f"\n\nFound {len(workspaces)} workspace(s):"
    for ws in workspaces:
        ws = ws if isinstance(ws, Mapping) else {"name": str(ws)}
        text += f"\n📁 {ws.get('name') or ws.get('slug')}"
        if ws.get("description"):
            text += f" - {ws['description']}"
        if ws.get("projectCount") is not None:
            text += f" ({ws['projectCount']} projects)"
    return text


def _format_projects(projects: List[Any]) -> str:
    text = f"\n\nFound {len(projects)} project(s):"
    for project in projects:
        project = project if isinstance(project, Mapping) else {"name": str(project)}
        text += f"\n🎯 {project.get('name') or project.get('slug')}"
        if project.get("description"):
            text += f" - {project['description']}"
    return text


def format_result(result: ExecutionResult) -> str:
    """
    Render a result for the chat.

    Success:  "✅ <message>" plus a data-dependent suffix.
    Failure:  "❌ <message>\\n<error>".
    """
    if not result.success:
        return f"❌ {result.message or 'Action failed'}\n{result.error or ''}"

    response = f"✅ {result.message or 'Action completed successfully'}"
    data = result.data
    if data is None:
        return response

    if isinstance(data, (list, tuple)):
        return response + _format_list(list(data))

    if not isinstance(data, Mapping):
        return response

    if isinstance(data.get("workspaces"), list):
        response += _format_workspaces(data["workspaces"])
    elif isinstance(data.get("projects"), list):
        response += _format_projects(data["projects"])
    elif isinstance(data.get("workspace"), Mapping):
        response += f"\n📁 Workspace: {data['workspace'].get('name')}"
    elif isinstance(data.get("project"), Mapping):
        response += f"\n🎯 Project: {data['project'].get('name')}"
    elif isinstance(data.get("task"), Mapping):
        response += f"\n✅ Task: {data['task'].get('title')}"
    elif isinstance(data.get("authenticated"), bool):
        response = (
            "✅ You are currently logged in"
            if data["authenticated"]
            else "❌ You are not logged in"
        )
    return response
