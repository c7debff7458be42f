"""
Configuration management using pydantic-settings.
Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Configuration
    APP_NAME: str = "Rulechain Validation Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_TO_FILE: bool = False  # Write LOG_FILE in addition to stdout
    LOG_FILE: str = "logs/validation.log"

    # Validation defaults (overridable per call via ValidationConfig)
    VALIDATION_LOCALE: str = "en"
    VALIDATION_BAIL: bool = True  # Stop a field's chain at its first failure
    VALIDATION_AUTO_TRIM: bool = True
    VALIDATION_EMPTY_STRING_TO_NULL: bool = True
    VALIDATION_RESPONSE_TYPE: Literal["laravel", "flat", "grouped", "nested"] = "laravel"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
