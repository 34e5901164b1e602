from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_PORT = 3000
DEFAULT_MAX_BODY_BYTES = 2 * 1024 * 1024

# Levels both logging and uvicorn understand.
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v


def _int_env(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"valid {name} (got {raw!r})") from e


def _log_level_env(name: str, default: str) -> str:
    raw = _env(name, default) or default
    level = raw.strip().upper()
    level = _LOG_LEVEL_ALIASES.get(level, level)
    if level not in LOG_LEVELS:
        raise ConfigurationError(f"valid {name} (got {raw!r}, expected one of {', '.join(LOG_LEVELS)})")
    return level


@dataclass(frozen=True)
class Settings:
    auth_token: str | None = None
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    check_handler: str = "main"
    identify_duplicates_handler: str = "identify_duplicates"
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    log_level: str = "INFO"


def load_settings(*, dotenv: bool = True) -> Settings:
    """
    Build Settings from the environment once at startup.

    Values from a local .env file fill in variables that are not already set.
    """
    if dotenv:
        load_dotenv()

    return Settings(
        auth_token=_env("INTERNAL_AUTH_TOKEN"),
        host=_env("HOST", "0.0.0.0"),
        port=_int_env("PORT", DEFAULT_PORT),
        check_handler=_env("CHECK_HANDLER", "main"),
        identify_duplicates_handler=_env("IDENTIFY_DUPLICATES_HANDLER", "identify_duplicates"),
        max_body_bytes=_int_env("MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
        log_level=_log_level_env("LOG_LEVEL", "INFO"),
    )
