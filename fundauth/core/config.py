"""Application configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FUNDAUTH_",
        extra="ignore",
    )

    environment: Literal["local", "test", "staging", "production"] = Field(default="local")
    service_name: str = Field(default="fund-authz-core")
    database_url: str = Field(default="sqlite:///./data/fundauth.db")
    sql_echo: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)

    bulk_max_items: int = Field(default=100, ge=1)
    seed_on_startup: bool = Field(default=False)
    super_admin_role: str = Field(default="SUPER_ADMIN")
    system_actor_id: str = Field(default="SYSTEM")

    actor_header: str = Field(default="X-Actor-Id")
    actor_email_header: str = Field(default="X-Actor-Email")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("bulk_max_items", mode="before")
    @classmethod
    def default_bulk_ceiling(cls, value: int | str | None) -> int | str:
        if value in (None, ""):
            return 100
        return value


@lru_cache
def get_settings() -> AppSettings:
    """Return cached application settings instance."""

    return AppSettings()
