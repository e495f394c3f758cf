from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

BotEnv = Literal["production", "test"]

_TRUTHY = {"1", "true", "yes", "y", "on"}


def _parse_int_env(name: str, default: int) -> int:
    """Parse an integer environment variable, falling back to ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer")


def _parse_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number")


def _parse_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Config:
    bot_env: BotEnv
    discord_token: str | None
    command_prefix: str
    log_level: str
    log_json: bool
    content_api_base: str
    geonames_base: str
    geonames_username: str
    request_timeout_seconds: float
    store_timeout_seconds: float
    store_connect_attempts: int
    store_connect_delay_seconds: float
    misfire_grace_seconds: int
    firebase_enabled: bool
    firebase_credentials_path: str | None
    firebase_project_id: str | None

    @property
    def is_test(self) -> bool:
        """Whether the bot is running in test mode."""
        return self.bot_env == "test"


def _load_env_files(bot_env: BotEnv) -> None:
    """Load the appropriate .env files based on bot environment.

    Loading order (later files do NOT override earlier ones):
      test  -> .env.test, .env
      production -> .env
    """
    root = Path.cwd()
    if bot_env == "test":
        test_env = root / ".env.test"
        if test_env.is_file():
            load_dotenv(test_env, override=False)
            LOGGER.info("Loaded environment from %s", test_env)
        else:
            LOGGER.warning("BOT_ENV=test but .env.test not found, falling back to .env")
    load_dotenv(root / ".env", override=False)


def load_config() -> Config:
    # BOT_ENV can be set before dotenv is loaded (e.g. shell var)
    bot_env_raw = os.getenv("BOT_ENV", "production").strip().lower()
    if bot_env_raw not in ("production", "test"):
        raise ValueError("BOT_ENV must be 'production' or 'test'")
    bot_env: BotEnv = bot_env_raw  # type: ignore[assignment]

    _load_env_files(bot_env)

    store_connect_attempts = _parse_int_env("STORE_CONNECT_ATTEMPTS", 5)
    if store_connect_attempts < 1:
        raise ValueError("STORE_CONNECT_ATTEMPTS must be at least 1")

    LOGGER.info("Bot environment: %s", bot_env)

    return Config(
        bot_env=bot_env,
        discord_token=os.getenv("DISCORD_TOKEN") or None,
        command_prefix=os.getenv("COMMAND_PREFIX", "!"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=_parse_bool_env("LOG_JSON"),
        content_api_base=os.getenv("CONTENT_API_BASE", "http://localhost:4000"),
        geonames_base=os.getenv("GEONAMES_BASE", "http://api.geonames.org"),
        geonames_username=os.getenv("GEONAMES_USERNAME", "demo"),
        request_timeout_seconds=_parse_float_env("REQUEST_TIMEOUT_SECONDS", 30.0),
        store_timeout_seconds=_parse_float_env("STORE_TIMEOUT_SECONDS", 10.0),
        store_connect_attempts=store_connect_attempts,
        store_connect_delay_seconds=_parse_float_env("STORE_CONNECT_DELAY_SECONDS", 5.0),
        misfire_grace_seconds=_parse_int_env("MISFIRE_GRACE_SECONDS", 300),
        firebase_enabled=_parse_bool_env("FIREBASE_ENABLED"),
        firebase_credentials_path=os.getenv("FIREBASE_CREDENTIALS_PATH") or None,
        firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
    )
