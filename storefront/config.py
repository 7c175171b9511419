# storefront/config.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from STOREFRONT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = "http://localhost:8000/api"
    timeout: float = 10.0
    storage_path: Path = Path.home() / ".storefront" / "storage.json"
    log_level: str = "INFO"
    stripe_publishable_key: Optional[str] = None


def load_settings() -> Settings:
    return Settings()


settings = load_settings()
