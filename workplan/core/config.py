"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./workplan.db"
    DATABASE_ECHO: bool = False

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # Fallback user when no X-User-Id header is sent
    DEV_USER_ID: str = "dev_user"

    # ===========================================
    # Scheduler
    # ===========================================
    # Calendar days the allocator may walk past its start date
    SCHEDULING_HORIZON_DAYS: int = 365
    # Occurrences generated for a recurring commitment without an end date
    RECURRING_DEFAULT_HORIZON_DAYS: int = 365

    # ===========================================
    # Calendar defaults (new users)
    # ===========================================
    DEFAULT_WORK_HOURS_WEEKDAY: float = 8.0
    DEFAULT_WORK_HOURS_WEEKEND: float = 0.0
    DEFAULT_WORK_START: str = "09:00"
    DEFAULT_HOBBY_HOURS: float = 0.0
    DEFAULT_HOBBY_START: str = "19:00"
    DEFAULT_LUNCH_START: str = "12:00"
    DEFAULT_LUNCH_DURATION_MINUTES: int = 60

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
