"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
Connection, listener and timeout settings have no defaults: a missing or
malformed value raises at startup and the process exits before serving.

Durations accept plain seconds ("30", "2.5") or unit strings
("250ms", "5s", "1m30s", "1h").

Usage:
    from backend.app.core.config import get_settings
    settings = get_settings()
    print(settings.DATABASE_URL)
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_duration(value: object) -> float:
    """Parse a duration into seconds."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty duration")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos != len(text):
                raise ValueError(f"invalid duration {value!r}")
    else:
        raise ValueError(f"invalid duration {value!r}")

    if seconds < 0:
        raise ValueError(f"negative duration {value!r}")
    return seconds


def split_address(addr: str) -> Tuple[str, int]:
    """Split "host:port" (or ":port") into a bindable host and port."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {addr!r}")
    return host or "0.0.0.0", int(port)


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "posts-service"
    APP_VERSION: str = "dev"
    BUILD_TIME: str = "unknown"
    ENVIRONMENT: str = "production"  # development | staging | production
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str
    DATABASE_CONNS: int
    DATABASE_IDLE_CONN_TIMEOUT: float = 30 * 60.0
    DATABASE_CREATE_SCHEMA: bool = False  # dev only

    # ── Server ──
    SERVER_ADDR: str
    SERVER_READ_TIMEOUT: float
    SERVER_WRITE_TIMEOUT: float
    SERVER_IDLE_TIMEOUT: float
    SHUTDOWN_TIMEOUT: float = 30.0

    # ── CORS ──
    CORS_ORIGINS: List[str] = ["*"]

    # ── External APIs ──
    QUOTE_API_URL: str = "https://dummyjson.com/quotes/random"
    USER_API_URL: str = "https://jsonplaceholder.typicode.com/users"
    EXTERNAL_API_TIMEOUT: float = 10.0

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level == "WARN":
            level = "WARNING"
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator("DATABASE_URL")
    @classmethod
    def _check_database_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("DATABASE_URL is empty")
        return value

    @field_validator("DATABASE_CONNS")
    @classmethod
    def _check_conns(cls, value: int) -> int:
        if value < 1 or value > 2**31 - 1:
            raise ValueError("DATABASE_CONNS must be a positive int32")
        return value

    @field_validator("SERVER_ADDR")
    @classmethod
    def _check_addr(cls, value: str) -> str:
        split_address(value)
        return value

    @field_validator(
        "DATABASE_IDLE_CONN_TIMEOUT",
        "SERVER_READ_TIMEOUT",
        "SERVER_WRITE_TIMEOUT",
        "SERVER_IDLE_TIMEOUT",
        "SHUTDOWN_TIMEOUT",
        "EXTERNAL_API_TIMEOUT",
        mode="before",
    )
    @classmethod
    def _parse_durations(cls, value: object) -> float:
        return parse_duration(value)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def request_timeout(self) -> float:
        """Per-request budget enforced by the timeout middleware."""
        return self.SERVER_READ_TIMEOUT + self.SERVER_WRITE_TIMEOUT

    @property
    def listen_host(self) -> str:
        return split_address(self.SERVER_ADDR)[0]

    @property
    def listen_port(self) -> int:
        return split_address(self.SERVER_ADDR)[1]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
