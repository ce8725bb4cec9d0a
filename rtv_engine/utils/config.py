"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.

The loss-rule table is fixed in code and is not part of the settings;
only logging and analysis defaults are configurable.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Default analysis settings
    DEFAULT_POSITION: int = Field(default=1, ge=1, le=100)
    COMPARE_TIE_THRESHOLD: int = Field(default=100, ge=0)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
