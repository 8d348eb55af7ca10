"""Environment-driven settings for the transaction monitoring service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_origins() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS")
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration resolved once from the process environment."""

    storage_backend: str = "memory"
    neo4j_uri: str | None = None
    neo4j_user: str | None = None
    neo4j_password: str | None = None
    cors_allow_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    max_upload_bytes: int = 10 * 1024 * 1024
    upload_error_limit: int = 10
    structuring_window_hours: int = 24
    structuring_min_similar: int = 3
    history_lookup_timeout: int = 5
    seed_metrics: bool = True
    analytics_limit: int = 1000

    @classmethod
    def from_env(cls) -> "Settings":
        backend = os.getenv("TXMONITOR_STORAGE", "memory").strip().lower()
        if backend not in {"memory", "neo4j"}:
            raise ValueError(f"Unsupported TXMONITOR_STORAGE value: {backend}")

        return cls(
            storage_backend=backend,
            neo4j_uri=os.getenv("NEO4J_URI"),
            neo4j_user=os.getenv("NEO4J_USER"),
            neo4j_password=os.getenv("NEO4J_PASSWORD"),
            cors_allow_origins=_env_origins(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
            upload_error_limit=_env_int("UPLOAD_ERROR_LIMIT", 10),
            structuring_window_hours=_env_int("STRUCTURING_WINDOW_HOURS", 24),
            structuring_min_similar=_env_int("STRUCTURING_MIN_SIMILAR", 3),
            history_lookup_timeout=_env_int("HISTORY_LOOKUP_TIMEOUT", 5),
            seed_metrics=_env_bool("SEED_METRICS", True),
            analytics_limit=_env_int("ANALYTICS_LIMIT", 1000),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings instance for this process."""
    return Settings.from_env()


__all__ = ["Settings", "get_settings"]
