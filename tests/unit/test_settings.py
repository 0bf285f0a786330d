from __future__ import annotations

import pytest

from config.settings import DEFAULT_SHEET_ID, ConfigError, Settings, load_settings

ENV_VARS = ["SHEET_ID", "SHEET_GID", "SHEET_CSV_URL", "FETCH_TIMEOUT_SECONDS", "CACHE_TTL_SECONDS",
            "CORS_ORIGINS", "API_HOST", "PORT", "API_URLS", "DASH_USERNAME", "DASH_EMPLOYEE_ID",
            "LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so values loaded from .env files are removed on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    settings = load_settings()
    assert settings.sheet_id == DEFAULT_SHEET_ID
    assert settings.cache_ttl == 300.0
    assert settings.api_port == 3000
    assert settings.csv_url == (f"https://docs.google.com/spreadsheets/d/{DEFAULT_SHEET_ID}"
                                "/export?format=csv&gid=0")
    assert "http://localhost:4200" in settings.cors_origins


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SHEET_ID", "abc")
    monkeypatch.setenv("SHEET_GID", "7")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "0")
    monkeypatch.setenv("API_URLS", "https://a.example/api, http://localhost:3000/api")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()
    assert settings.csv_url.endswith("/d/abc/export?format=csv&gid=7")
    assert settings.cache_ttl == 0.0
    assert settings.api_urls == ("https://a.example/api", "http://localhost:3000/api")
    assert settings.log_level == "DEBUG"


def test_explicit_csv_url_wins(monkeypatch):
    monkeypatch.setenv("SHEET_CSV_URL", "https://example.com/sheet.csv")
    assert load_settings().csv_url == "https://example.com/sheet.csv"


def test_env_file_is_read(tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("DASH_USERNAME=Someone Else\nPORT=8080\n", encoding="utf-8")

    settings = load_settings(str(env_file))
    assert settings.dash_username == "Someone Else"
    assert settings.api_port == 8080


@pytest.mark.parametrize("name, value", [("PORT", "abc"), ("FETCH_TIMEOUT_SECONDS", "soon"),
                                         ("CACHE_TTL_SECONDS", "-5")])
def test_invalid_numbers_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError) as excinfo:
        load_settings()
    assert name in str(excinfo.value)


def test_settings_are_frozen():
    with pytest.raises(AttributeError):
        Settings().sheet_id = "other"
