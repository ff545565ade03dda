import pytest

import database_schema
from tryon_studio import db
from tryon_studio.config import Settings
from tryon_studio.errors import ConfigurationError


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.test")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
    for name in (
        "VIDEO_POLL_INTERVAL_SECONDS",
        "VIDEO_POLL_MAX_ATTEMPTS",
        "VIDEO_POLL_DEADLINE_SECONDS",
        "GEMINI_IMAGE_MODEL",
        "GEMINI_VIDEO_MODEL",
        "HTTP_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_from_env_defaults(env):
    settings = Settings.from_env()

    assert settings.supabase_url == "https://project.supabase.test"
    assert settings.gemini_api_key == "gemini-key"
    assert settings.video_poll_interval_seconds == 10.0
    assert settings.video_model == "veo-3.1-generate-preview"


def test_settings_tunables_from_env(env):
    env.setenv("VIDEO_POLL_MAX_ATTEMPTS", "12")
    env.setenv("GEMINI_VIDEO_MODEL", "veo-3.0-generate-001")

    settings = Settings.from_env()

    assert settings.video_poll_max_attempts == 12
    assert settings.video_model == "veo-3.0-generate-001"


@pytest.mark.parametrize("missing", ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "GEMINI_API_KEY"])
def test_missing_required_variable_fails_fast(env, missing):
    env.delenv(missing)

    with pytest.raises(ConfigurationError, match=missing):
        Settings.from_env()


def test_invalid_tunable_is_configuration_error(env):
    env.setenv("VIDEO_POLL_MAX_ATTEMPTS", "many")

    with pytest.raises(ConfigurationError):
        Settings.from_env()


def test_supabase_client_forwards_authorization(env, monkeypatch):
    calls = {}

    def fake_create_client(url, key, options=None):
        calls.update(url=url, key=key, headers=options.headers)
        return object()

    monkeypatch.setattr(db, "create_client", fake_create_client)

    db.supabase_create_client(Settings.from_env(), "Bearer user-jwt")
    assert calls["url"] == "https://project.supabase.test"
    assert calls["key"] == "service-key"
    assert calls["headers"]["Authorization"] == "Bearer user-jwt"

    db.supabase_create_client(Settings.from_env(), None)
    assert "Authorization" not in calls["headers"]


def test_schema_declares_one_row_per_combination():
    sql = database_schema.FULL_SCHEMA_SETUP
    assert "UNIQUE (user_id, clothing_id, user_image_id)" in sql
    assert "tryon_count INTEGER NOT NULL DEFAULT 1" in sql
    for bucket in ("user_uploads", "tryon_results", "tryon_combination_results", "videos"):
        assert f"'{bucket}'" in sql


def test_supabase_client_failure_is_configuration_error(env, monkeypatch):
    def failing_create_client(url, key, options=None):
        raise ValueError("Invalid URL")

    monkeypatch.setattr(db, "create_client", failing_create_client)

    with pytest.raises(ConfigurationError, match="Failed to create Supabase client: Invalid URL"):
        db.supabase_create_client(Settings.from_env())
