"""
Configuration - Environment-driven settings.

Variables:
    CANOGA_ENV                 development | production (default development)
    CANOGA_LOG_LEVEL           logging level name (default INFO)
    CANOGA_DEFAULT_BOARD_SIZE  9, 10 or 11 (default 9)
    CANOGA_AUTOPLAY_MAX_STEPS  bound on automated rolls per call (default 500)
    CANOGA_SESSION_TTL         seconds before a finished session is dropped (default 3600)
    ALLOWED_ORIGINS            comma separated CORS origins (default *)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

from .engine_core.errors import ConfigError
from .engine_core.round import validate_board_size


def _int_env(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    log_level: str = "INFO"
    default_board_size: int = 9
    autoplay_max_steps: int = 500
    session_ttl: int = 3600
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, environ=None) -> Settings:
        environ = os.environ if environ is None else environ

        log_level = environ.get("CANOGA_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"CANOGA_LOG_LEVEL is not a logging level: {log_level!r}")

        board_size = validate_board_size(_int_env(environ, "CANOGA_DEFAULT_BOARD_SIZE", 9))

        max_steps = _int_env(environ, "CANOGA_AUTOPLAY_MAX_STEPS", 500)
        if max_steps < 1:
            raise ConfigError("CANOGA_AUTOPLAY_MAX_STEPS must be at least 1")

        ttl = _int_env(environ, "CANOGA_SESSION_TTL", 3600)
        if ttl < 0:
            raise ConfigError("CANOGA_SESSION_TTL must not be negative")

        origins = [o.strip() for o in environ.get("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            env=environ.get("CANOGA_ENV", "development"),
            log_level=log_level,
            default_board_size=board_size,
            autoplay_max_steps=max_steps,
            session_ttl=ttl,
            allowed_origins=origins or ["*"],
        )


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
