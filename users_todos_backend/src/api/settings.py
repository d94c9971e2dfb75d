from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# Values already present in the process environment win over the .env file.
load_dotenv()

BACKENDS = {"memory", "postgres"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - CONNECTION_STR / DATABASE_URL: PostgreSQL DSN
    - PERSISTENCE_BACKEND: 'postgres' or 'memory'. Defaults to 'postgres' when a DSN is set
    - POOL_MIN_SIZE / POOL_MAX_SIZE: asyncpg pool bounds (1 / 10)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - DEBUG_ERRORS: 'true' to echo raw storage errors in 500 responses (default: false)
    - LOG_LEVEL: root logger level (default: INFO)
    """

    persistence_backend: str
    database_url: Optional[str]
    pool_min_size: int
    pool_max_size: int
    cors_allow_origins: List[str]
    debug_errors: bool
    log_level: str
    host: str = "0.0.0.0"
    port: int = 5000


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    database_url = os.getenv("CONNECTION_STR") or os.getenv("DATABASE_URL") or None

    default_backend = "postgres" if database_url else "memory"
    backend = _get_env("PERSISTENCE_BACKEND", default_backend).strip().lower()
    if backend not in BACKENDS:
        backend = default_backend

    pool_min = max(_parse_int(_get_env("POOL_MIN_SIZE", "1"), 1), 0)
    pool_max = max(_parse_int(_get_env("POOL_MAX_SIZE", "10"), 10), 1)

    return Settings(
        persistence_backend=backend,
        database_url=database_url,
        pool_min_size=min(pool_min, pool_max),
        pool_max_size=pool_max,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        debug_errors=_parse_bool(_get_env("DEBUG_ERRORS", "false"), False),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
