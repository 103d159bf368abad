"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost/wellnest"

    # Meal plan generation
    default_servings: int = Field(default=2, ge=1)
    snack_skip_probability: float = Field(default=0.5, ge=0.0, le=1.0)
    dietary_match_policy: Literal["any", "all"] = "any"
    week_start_day: int = Field(default=6, ge=0, le=6)  # 0=Monday ... 6=Sunday
    generation_timeout_seconds: float = 10.0

    # Grocery aggregation
    grocery_scale_mode: Literal["flat", "per_base_serving"] = "flat"

    # Lottery
    lottery_max_count: int = Field(default=20, ge=1)
    random_seed: int | None = None  # Fixed seed for reproducible draws

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def origins(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
