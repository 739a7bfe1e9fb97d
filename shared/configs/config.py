"""
Application configuration using Pydantic settings.
"""
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Stock Rating Engine"
    debug: bool = False

    # Database (watchlist store)
    database_url: str = "sqlite:///rating_engine.db"

    # Scoring configuration directory (rating_engine.yaml)
    config_dir: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    log_file: Optional[str] = None

    # General
    environment: str = "development"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"  # Allow extra fields from .env file
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance
    """
    return Settings()
