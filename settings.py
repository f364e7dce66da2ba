"""Settings loaded from TASKFLOW_* environment variables (+ optional .env)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKFLOW"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    jwt_algorithm: str
    jwt_ttl_days: int
    bcrypt_rounds: int
    reset_ttl_minutes: int
    cookie_name: str
    cookie_secure: bool
    cors_origins: List[str]
    log_level: str
    log_file: Optional[str]
    base_url: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=_env(_k("DATABASE_URL"), "sqlite:///./taskflow.db"),
        # change in any real deployment
        jwt_secret=_env(_k("JWT_SECRET"), "dev-secret-change-me"),
        jwt_algorithm="HS256",
        jwt_ttl_days=_env_int(_k("JWT_TTL_DAYS"), 30),
        bcrypt_rounds=_env_int(_k("BCRYPT_ROUNDS"), 12),
        reset_ttl_minutes=_env_int(_k("RESET_TTL_MINUTES"), 60),
        cookie_name="taskflow_token",
        cookie_secure=_env_bool(_k("COOKIE_SECURE"), False),
        cors_origins=_env_list(_k("CORS_ORIGINS"), ["*"]),
        log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
        log_file=os.getenv(_k("LOG_FILE")) or None,
        base_url=_env(_k("BASE_URL"), "http://localhost:8000").rstrip("/"),
    )
