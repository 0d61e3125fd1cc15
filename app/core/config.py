"""
Centralized configuration management.

Rules:
- All secrets (DB credentials, demo identity) come from environment variables
  or a .env file, never from the repository
- Configuration is centralized in this module
- Do not spread os.getenv calls all over the codebase
- Do not log secrets or environment values
"""
from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Postgres ---
    PG_HOST: str = Field(..., description="PostgreSQL host")
    PG_PORT: int = Field(default=5432, description="PostgreSQL port")
    PG_DB: str = Field(..., description="PostgreSQL database name")
    PG_USER: str = Field(..., description="PostgreSQL user")
    PG_PASSWORD: str = Field(..., description="PostgreSQL password")
    PG_SSLMODE: str = Field(default="require", description="PostgreSQL SSL mode (require/disable)")
    PG_SCHEMA: str = Field(default="public", description="PostgreSQL search_path")

    # --- Pool / statements ---
    DB_POOL_SIZE: int = Field(default=10, description="Persistent connections kept in the pool")
    DB_MAX_OVERFLOW: int = Field(default=10, description="Extra connections allowed under load")
    DB_STATEMENT_TIMEOUT_MS: int = Field(default=30000, description="Server-side statement timeout")
    SLOW_QUERY_MS: int = Field(default=200, description="Statements slower than this are logged")

    # --- Demo identity (non-production only) ---
    DEMO_AUTH: bool = Field(default=False, description="Substitute a fixed admin identity when no credential resolves")
    DEMO_USER_ID: str = Field(default="c67f737f-662a-4530-8d07-ba13d56bc54b", description="Demo identity employee id")
    DEMO_USER_EMAIL: str = Field(default="admin@rotaclock.com", description="Demo identity email")
    DEMO_EMPLOYEE_CODE: str = Field(default="EMP001", description="Demo identity employee code")

    # --- Passwords ---
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=16, description="bcrypt cost factor for new hashes")

    # --- CORS ---
    CORS_ORIGINS: str = Field(default="*", description="CORS allowed origins (comma-separated)")

    # --- Logging ---
    LOG_LEVEL: str = Field(default="INFO", description="Root level for the rotaclock logger")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
