"""App Hub configuration system using Pydantic Settings."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HubConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "APP HUB"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Database
    database_url: str = "sqlite+aiosqlite:///./apphub.db"
    db_busy_timeout: int = 30

    # Auth
    secret_key: str = "CHANGE_ME_IN_PRODUCTION"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60
    seed_admin_username: str = "admin"
    seed_admin_password: str | None = None

    # Catalog
    admin_role_threshold: int = 6
    unknown_position_sentinel: int = 9999
    default_card_color: str = "bg-white"
    favicon_service_url: str = "https://www.google.com/s2/favicons?domain={domain}&sz=64"

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("admin_role_threshold")
    @classmethod
    def validate_admin_role_threshold(cls, v: int) -> int:
        if v < 1:
            raise ValueError("admin_role_threshold must be at least 1")
        return v


def get_config() -> HubConfig:
    """Factory function to create config instance."""
    return HubConfig()
