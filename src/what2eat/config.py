"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_store: bool = False
    suggestion_temperature: float = 0.9
    quick_search_temperature: float = 0.8
    recipe_temperature: float = 0.7
    generation_timeout_seconds: float = 60.0
    vision_model: str = "gpt-4o"
    vision_temperature: float = 0.3
    snapshot_bucket: str = "fridge-photos"
    max_excluded_names: int | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_user_id_header(raw: str | None) -> str | None:
    """Normalize the caller id forwarded by the auth layer."""
    if raw is None:
        return None
    cleaned = raw.strip()
    return cleaned or None
