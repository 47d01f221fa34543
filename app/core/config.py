"""Configuration management for Skill Path Progress Service."""

from typing import List
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import json


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    # Application
    APP_NAME: str = "Skill Path Progress Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    SERVICE_NAME: str = "skillpath-progress-service"
    SERVICE_PORT: int = 8004

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/skillpath"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40
    DATABASE_ECHO: bool = False

    # JWT
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    # Point ledger multipliers (applied per level sequence number)
    POINTS_PER_FIGURE: int = 1
    POINTS_PER_TRAINING: int = 2
    POINTS_PER_CHALLENGE: int = 3

    # Access
    PREMIUM_ROLES: List[str] = Field(default_factory=lambda: ["premium", "trainer", "admin"])
    ADMIN_ROLE: str = "admin"
    PREMIUM_DIFFICULTY_LEVELS: List[str] = Field(default_factory=lambda: ["Expert", "Advanced"])

    # Logging
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = Field(default="json", pattern="^(json|plain)$")

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    @field_validator("CORS_ORIGINS", "PREMIUM_ROLES", "PREMIUM_DIFFICULTY_LEVELS", mode="before")
    def parse_string_list(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
        return v

    # Monitoring
    ENABLE_METRICS: bool = True

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
