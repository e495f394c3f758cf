from __future__ import annotations

import pytest

from panchangbot.config import load_config

_VARS = (
    "BOT_ENV",
    "DISCORD_TOKEN",
    "COMMAND_PREFIX",
    "LOG_LEVEL",
    "LOG_JSON",
    "CONTENT_API_BASE",
    "GEONAMES_BASE",
    "GEONAMES_USERNAME",
    "REQUEST_TIMEOUT_SECONDS",
    "STORE_TIMEOUT_SECONDS",
    "STORE_CONNECT_ATTEMPTS",
    "STORE_CONNECT_DELAY_SECONDS",
    "MISFIRE_GRACE_SECONDS",
    "FIREBASE_ENABLED",
    "FIREBASE_CREDENTIALS_PATH",
    "FIREBASE_PROJECT_ID",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # Run from an empty directory so no real .env file is picked up
    monkeypatch.chdir(tmp_path)
    for name in _VARS:
        # set first so the undo also removes values load_dotenv writes
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    config = load_config()

    assert config.bot_env == "production"
    assert not config.is_test
    assert config.discord_token is None
    assert config.command_prefix == "!"
    assert config.store_connect_attempts == 5
    assert config.store_connect_delay_seconds == 5.0
    assert config.misfire_grace_seconds == 300
    assert config.firebase_enabled is False
    assert config.log_json is False


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("BOT_ENV", "test")
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    monkeypatch.setenv("COMMAND_PREFIX", "/")
    monkeypatch.setenv("FIREBASE_ENABLED", "yes")
    monkeypatch.setenv("STORE_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("LOG_JSON", "1")

    config = load_config()

    assert config.is_test
    assert config.discord_token == "abc"
    assert config.command_prefix == "/"
    assert config.firebase_enabled is True
    assert config.store_timeout_seconds == 2.5
    assert config.log_json is True


def test_reads_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("GEONAMES_USERNAME=panchang\nDISCORD_TOKEN=from-file\n")

    config = load_config()

    assert config.geonames_username == "panchang"
    assert config.discord_token == "from-file"


def test_invalid_bot_env(monkeypatch):
    monkeypatch.setenv("BOT_ENV", "staging")
    with pytest.raises(ValueError, match="BOT_ENV"):
        load_config()


def test_invalid_integer(monkeypatch):
    monkeypatch.setenv("MISFIRE_GRACE_SECONDS", "soon")
    with pytest.raises(ValueError, match="MISFIRE_GRACE_SECONDS"):
        load_config()


def test_invalid_number(monkeypatch):
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "fast")
    with pytest.raises(ValueError, match="REQUEST_TIMEOUT_SECONDS"):
        load_config()


def test_connect_attempts_must_be_positive(monkeypatch):
    monkeypatch.setenv("STORE_CONNECT_ATTEMPTS", "0")
    with pytest.raises(ValueError, match="STORE_CONNECT_ATTEMPTS"):
        load_config()
