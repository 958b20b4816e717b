"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """MindMatters server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    mindmatters_host: str = "127.0.0.1"
    mindmatters_port: int = 8001
    mindmatters_log_level: str = "info"
    mindmatters_allow_insecure_bind: bool = False

    # Storage (wellness journal, moods, assessments, focus sessions)
    db_path: str = "~/.mindmatters/wellness.db"

    # Encryption (storage is disabled when empty)
    encryption_key: str = ""

    # Focus cycle durations (seconds)
    focus_work_seconds: int = 25 * 60
    focus_short_break_seconds: int = 5 * 60
    focus_long_break_seconds: int = 15 * 60
    focus_long_break_interval: int = 4

    # Assessment instruments (empty = bundled definitions)
    instrument_dir: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
