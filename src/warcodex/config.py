"""Configuration for the warcodex service."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REFERENCE_HIERARCHY: dict[str, list[str]] = {
    "profiles": ["weapons", "armors", "traits", "keywords", "sources"],
    "weapons": ["traits", "keywords", "sources"],
    "armors": ["traits", "keywords", "sources"],
    "traits": ["keywords", "sources"],
    "keywords": ["sources"],
}


class Settings(BaseSettings):
    """Application settings, read from the environment and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="WARCODEX_"
    )

    data_dir: Path = Field(
        default=Path("data"), description="Where the JSON store keeps collections"
    )
    store_backend: Literal["json", "sql"] = Field(
        default="json", description="Document store implementation to use"
    )
    database_url: str = Field(
        default="sqlite:///warcodex.db", description="SQLAlchemy URL for the sql backend"
    )
    database_echo: bool = Field(default=False, description="Log every SQL statement")
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=10, ge=0)

    app_version: str = Field(default="0.3.0", description="Version reported by /health")
    version_file: Path = Field(
        default=Path("version.json"), description="File served by the /version endpoint"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the HTTP API",
    )

    admin_email_list: str = Field(
        default="", description="Comma-separated emails granted administrator rights"
    )
    email_header: str = Field(default="X-Forwarded-Email")
    user_header: str = Field(default="X-Forwarded-User")
    preferred_username_header: str = Field(default="X-Forwarded-Preferred-Username")
    picture_header: str = Field(default="X-Forwarded-Picture")

    diagnostic_collection: str = Field(default="tests")
    diagnostic_document_id: str = Field(default="RbuKnGM87660UTdVV9bq")

    reference_hierarchy: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_REFERENCE_HIERARCHY.items()},
        description="Default collection -> collections-it-may-refer-to graph",
    )
    mention_cache_path: Path | None = Field(
        default=None, description="JSON file persisting last non-zero mention counts"
    )
    mention_zero_confirmations: int | None = Field(
        default=None,
        ge=1,
        description="Consecutive zero mention reads that clear a cached count (None: never)",
    )
    delete_batch_size: int = Field(default=15, ge=1)
    log_level: str = Field(default="INFO", description="Root log level for the CLI")

    @property
    def admin_emails(self) -> set[str]:
        return {
            email.strip().lower() for email in self.admin_email_list.split(",") if email.strip()
        }


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
