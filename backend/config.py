"""Application configuration module."""

from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database settings
    # Unset: resolved from DB_TYPE, DB_PATH, DB_HOST, DB_NAME, ... (backend.common.db.connection)
    DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None

    # API settings
    PROJECT_NAME: str = "Hotel Academy Assessments"
    ALLOW_ORIGINS: List[str] = ["http://localhost:3000"]

    # Assessment session settings
    ASSESSMENT_STORE: str = "sql"
    ASSESSMENT_SEED_FILE: Optional[str] = None
    ASSESSMENT_ALLOW_CONCURRENT_ATTEMPTS: bool = False
    ASSESSMENT_SENIOR_THRESHOLD: int = 90
    ASSESSMENT_MIDDLE_THRESHOLD: int = 70

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("ASSESSMENT_STORE")
    @classmethod
    def validate_store(cls, v: str) -> str:
        """Validate the session store backend name"""
        if v not in ("sql", "memory"):
            raise ValueError(f"Invalid assessment store: {v}. Must be 'sql' or 'memory'")
        return v


# Create global settings instance
settings = Settings()
