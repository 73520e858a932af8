"""
Tests for configuration loading, the session store, and session wiring.
"""

import asyncio
import json

import pytest

from taskpilot.config.settings import DEFAULTS, Settings, load_settings, save_setting
from taskpilot.core.ai.remote import RemoteAssistant
from taskpilot.core.context import ExecutionContext
from taskpilot.core.errors import ConfigError
from taskpilot.core.registry import ActionType
from taskpilot.core.session import create_session
from taskpilot.core.session_store import ACCESS_TOKEN_KEY, MemorySessionStore, SessionStore
from taskpilot.services.config_service import CONFIG_ENV_VAR, ConfigService, default_config_path


def run_async(coro):
    """Helper to run async coroutines inside plain pytest tests."""
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# ConfigService
# ---------------------------------------------------------------------------

def test_config_service_dot_notation_round_trip(tmp_path):
    path = tmp_path / "config.json"
    service = ConfigService(config_path=path)
    service.set("assistant.model", "gpt-x")
    service.update({"history.limit": 4, "api_url": "http://api.test"})
    assert service.save()

    reloaded = ConfigService(config_path=path)
    data = reloaded.load()

    assert data == {"assistant": {"model": "gpt-x"}, "history": {"limit": 4}, "api_url": "http://api.test"}
    assert reloaded.get("assistant.model") == "gpt-x"
    assert reloaded.get("assistant.missing", "fallback") == "fallback"
    assert reloaded.get("api_url.nested", "x") == "x"


def test_config_service_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigService(config_path=tmp_path / "nope.json").load()


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_config_service_rejects_invalid_content(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        ConfigService(config_path=path).load()


def test_default_config_path_honours_env(monkeypatch, tmp_path):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "custom.json"))
    assert default_config_path() == tmp_path / "custom.json"

    monkeypatch.delenv(CONFIG_ENV_VAR)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_config_path() == tmp_path / ".taskpilot" / "config.json"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def test_load_settings_defaults_when_file_missing(tmp_path):
    settings = load_settings(tmp_path / "missing.json")
    assert settings.api_url == DEFAULTS["api_url"]
    assert settings.assistant_provider == "remote"
    assert settings.history_limit == 10
    assert settings.resolver_timeout == 5.0


def test_load_settings_reads_overrides(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"api_url": "https://pm.example/api", "assistant": {"provider": "openai", "api_key": "sk"}, "history": {"limit": 4}}),
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.api_url == "https://pm.example/api"
    assert settings.assistant_provider == "openai"
    assert settings.assistant_api_key == "sk"
    assert settings.assistant_model == "gpt-4o-mini"
    assert settings.history_limit == 4
    assert settings.config_path == path


def test_load_settings_invalid_json_is_config_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_load_settings_bad_value_is_config_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"history": {"limit": "many"}}), encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid value"):
        load_settings(path)


def test_save_setting_keeps_other_keys(tmp_path):
    path = tmp_path / "config.json"
    assert save_setting("api_url", "http://a", path)
    assert save_setting("assistant.model", "gpt-y", path)

    settings = load_settings(path)
    assert settings.api_url == "http://a"
    assert settings.assistant_model == "gpt-y"


# ---------------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------------

def test_session_store_persists_between_instances(tmp_path):
    store = SessionStore(storage_dir=tmp_path)
    store.current_organization = "org-1"
    store.set(ACCESS_TOKEN_KEY, "tok")

    again = SessionStore(storage_dir=tmp_path)
    assert again.current_organization == "org-1"
    assert again.get(ACCESS_TOKEN_KEY) == "tok"

    again.current_organization = None
    assert SessionStore(storage_dir=tmp_path).current_organization is None


def test_session_store_corrupt_file_degrades_to_empty(tmp_path):
    (tmp_path / "session.json").write_text("{oops", encoding="utf-8")
    assert SessionStore(storage_dir=tmp_path).get("anything", "default") == "default"


def test_memory_session_store_never_writes(tmp_path):
    store = MemorySessionStore(storage_dir=tmp_path)
    store.set("k", "v")
    assert store.get("k") == "v"
    assert not (tmp_path / "session.json").exists()


# ---------------------------------------------------------------------------
# Session wiring
# ---------------------------------------------------------------------------

def test_create_session_wires_components():
    store = MemorySessionStore()
    store.current_organization = "org-1"

    session = create_session(Settings(history_limit=3), session_store=store)

    assert session.context.current_organization == "org-1"
    assert set(session.dispatch_table) == set(ActionType)
    assert session.history.limit == 3
    assert isinstance(session.orchestrator.assistant, RemoteAssistant)
    assert session.orchestrator.assistant.client is session.client
    assert session.resolver.list_workspaces == session.dispatch_table[ActionType.LIST_WORKSPACES]
    run_async(session.close())


def test_create_session_without_assistant_has_no_orchestrator():
    ctx = ExecutionContext()
    ctx.navigate("/acme")
    session = create_session(Settings(), session_store=MemorySessionStore(), context=ctx, with_assistant=False)

    assert session.orchestrator is None
    assert session.context is ctx
    result = run_async(session.executor.execute_action("getCurrentContext", {}))
    assert result.message == "Currently in workspace: acme"
    run_async(session.close())


def test_create_session_with_misconfigured_assistant_raises():
    with pytest.raises(ConfigError):
        create_session(Settings(assistant_provider="openai"), session_store=MemorySessionStore())
