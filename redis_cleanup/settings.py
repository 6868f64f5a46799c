from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the cleanup/seed CLI.

    Values are loaded from environment variables and `.env`.
    Command-line options take precedence over everything here.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Connection
    REDIS_URL: str | None = Field(default=None)
    # Seconds; applies to connect and every command. Unset waits forever.
    REDIS_CLEANUP_SOCKET_TIMEOUT: float | None = Field(default=None)

    # Logging (stderr always; file only when a directory is configured)
    REDIS_CLEANUP_LOG_LEVEL: str = Field(default="INFO")
    REDIS_CLEANUP_LOG_DIR: Path | None = Field(default=None)
    # Timed rotation retention count (days).
    REDIS_CLEANUP_LOG_BACKUP_COUNT: int = Field(default=14)

    # Key prefixes owned by other systems (comma separated). `bull` is the
    # queue library that stores its job hashes under `bull:<queue>:<id>`.
    REDIS_CLEANUP_MANAGED_PREFIXES: str = Field(default="bull")

    @property
    def managed_prefixes(self) -> tuple[str, ...]:
        raw = self.REDIS_CLEANUP_MANAGED_PREFIXES or ""
        return tuple(p.strip() for p in raw.split(",") if p.strip())


def load_settings() -> Settings:
    return Settings()
