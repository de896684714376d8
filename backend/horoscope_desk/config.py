"""
Horoscope Desk Backend: Application Configuration
==================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

Backend selection:
    DATABASE_TYPE=sqlite           → embedded SQLite file
    SQLITE_PATH=/some/file.db      → embedded SQLite file (path alone is enough)
    neither                        → MySQL server (MYSQL_* settings)

    The desktop shell sets both DATABASE_TYPE and SQLITE_PATH before it
    spawns the server; a plain server deployment sets neither.
"""

import os
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


APP_DIR_NAME = "wedding-horoscope"


def default_app_data_dir() -> Path:
    """
    Per-user application data directory used by the desktop build.

    Resolution order: APPDATA, LOCALAPPDATA, then <home>/AppData/Local.
    """
    base = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
    if not base:
        home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or os.getcwd()
        base = os.path.join(home, "AppData", "Local")
    return Path(base) / APP_DIR_NAME


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for a developer laptop running a
    local MySQL. Attributes are grouped by concern.
    """

    # ── Backend Selection ─────────────────────────────────────────────────
    # What: Explicit backend flag. Only "sqlite" is meaningful; anything
    # else falls through to the relational server.
    database_type: str = Field(default="", description="'sqlite' or empty for MySQL")

    # What: Embedded database file. Presence alone selects SQLite.
    sqlite_path: Optional[str] = Field(default=None)

    # ── MySQL ─────────────────────────────────────────────────────────────
    mysql_host: str = Field(default="localhost")
    mysql_port: int = Field(default=3306, ge=1, le=65535)
    mysql_user: str = Field(default="root")
    mysql_password: str = Field(default="")
    mysql_database: str = Field(default="wedding_horoscope")

    # What: Size of the single shared connection pool.
    # The pool never overflows; extra requests wait in an unbounded queue.
    db_pool_size: int = Field(default=10, ge=1, le=100)

    # ── Bootstrap ─────────────────────────────────────────────────────────
    # What: Password given to admin@local when a fresh SQLite file is seeded
    admin_password: str = Field(default="admin123", min_length=1)

    # ── Sessions ──────────────────────────────────────────────────────────
    # What: "production" turns on the Secure cookie flag (server backend only)
    environment: str = Field(default="development")

    # What: Optional HMAC key. Unset keeps the historical unsigned cookie.
    session_secret: Optional[str] = Field(default=None)

    # ── Diagnostics ───────────────────────────────────────────────────────
    # What: Adds the exception text to 500 responses of the lookup endpoint
    debug_errors: bool = Field(default=False)

    # ── HTTP ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")
    app_url: str = Field(default="http://localhost:3000")
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("database_type", "environment")
    @classmethod
    def normalize_lower(cls, v: str) -> str:
        return (v or "").strip().lower()

    # ── Derived ───────────────────────────────────────────────────────────
    @property
    def use_sqlite(self) -> bool:
        """True when the embedded backend is configured."""
        return self.database_type == "sqlite" or bool(self.sqlite_path)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def resolve_sqlite_path(self) -> Path:
        """Explicit SQLITE_PATH, else <app data>/data/horoscope.db."""
        if self.sqlite_path:
            return Path(self.sqlite_path).expanduser()
        return default_app_data_dir() / "data" / "horoscope.db"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance imported throughout the application
settings = Settings()
