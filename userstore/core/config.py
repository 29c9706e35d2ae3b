"""
Configuration helpers for the user store.

Exposes a Settings object that reads environment variables (storage path,
write mode, log level) so that services/routers do not fetch os.environ
directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    users_file: Path
    atomic_writes: bool
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        users_file=Path(os.getenv("USERS_FILE") or "data/users.json"),
        atomic_writes=_bool(os.getenv("USERS_ATOMIC_WRITES"), False),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
