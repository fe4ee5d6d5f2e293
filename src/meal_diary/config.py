"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from meal_diary.domain.meals import MealType

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    meal_api_base_url: str = "http://localhost:8000"
    meal_api_timeout_seconds: float = 15
    user_id: int = 1
    persona: str | None = "friendly"
    default_meal_type_hint: MealType | None = None
    auto_analyze: bool = False
    rate_limit_cooldown_seconds: int = 60
    timezone: str = "UTC"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="MEAL_DIARY_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
