"""Tests for settings and per-client tracking contexts."""

import asyncio

from behavior.context import TrackingContext
from behavior.models import ActionType
from behavior.session_store import InMemorySessionStore, JsonFileSessionStore
from config.settings import Settings


def test_settings_defaults():
    settings = Settings(_env_file=None, storage_backend="file")
    assert settings.session_timeout_seconds == 1800
    assert settings.max_sessions == 50
    assert settings.lead_score_threshold_hot == 70
    assert settings.lead_score_threshold_warm == 45
    assert settings.is_file_storage


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_SESSIONS", "5")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    settings = Settings(_env_file=None)
    assert settings.max_sessions == 5
    assert settings.cors_origins_list == ["https://a.example", "https://b.example"]


def test_memory_backend(clock):
    context = TrackingContext.create("web", Settings(_env_file=None, storage_backend="memory"), clock=clock)
    assert isinstance(context.session_manager.store, InMemorySessionStore)


def test_file_backend_survives_restart(tmp_path, clock):
    settings = Settings(_env_file=None, storage_backend="file", storage_directory=str(tmp_path))
    first = TrackingContext.create("web", settings, clock=clock)
    assert isinstance(first.session_manager.store, JsonFileSessionStore)
    first.session_manager.record_action(ActionType.PAGE_VIEW, page="/pricing")
    session_id = first.session_manager.get_current_session().id

    clock.advance(minutes=5)
    second = TrackingContext.create("web", settings, clock=clock)
    assert second.session_manager.get_current_session().id == session_id
    assert (tmp_path / "web_current_session.json").exists()


def test_clients_use_separate_files(tmp_path, clock):
    settings = Settings(_env_file=None, storage_backend="file", storage_directory=str(tmp_path))
    TrackingContext.create("alpha", settings, clock=clock).session_manager.record_action(ActionType.PAGE_VIEW)
    beta = TrackingContext.create("beta", settings, clock=clock)
    assert beta.session_manager.get_current_session().actions == []


def test_activity_feed_is_subscribed(clock):
    settings = Settings(_env_file=None, storage_backend="memory", activity_feed_size=2)
    context = TrackingContext.create("web", settings, clock=clock)
    for page in ("/a", "/b", "/c"):
        context.session_manager.record_action(ActionType.PAGE_VIEW, page=page)
    assert [a.page for a in context.activity_feed.recent()] == ["/c", "/b"]


def test_start_and_stop(clock):
    async def scenario():
        context = TrackingContext.create(
            "web", Settings(_env_file=None, storage_backend="memory", pattern_analysis_interval=0.01), clock=clock
        )
        context.session_manager.record_action(ActionType.PAGE_VIEW)
        context.start()
        await asyncio.sleep(0.03)
        await context.stop()
        return context

    context = asyncio.run(scenario())
    assert not context.pattern_miner.is_running
    assert context.session_manager.get_current_session() is None
    assert len(context.session_manager.get_all_sessions()) == 1


def test_debug_setting_reaches_app(monkeypatch):
    import api.main

    monkeypatch.setattr(
        api.main, "get_settings", lambda: Settings(_env_file=None, storage_backend="memory", debug=True)
    )
    assert api.main.create_app().debug is True

    monkeypatch.setattr(api.main, "get_settings", lambda: Settings(_env_file=None, storage_backend="memory"))
    assert api.main.create_app().debug is False
