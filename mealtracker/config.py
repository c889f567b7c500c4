"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    PROJECT_NAME: str = "Mealtracker"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = Field(
        "sqlite:///./mealtracker.db",
        description="SQLAlchemy database URL",
    )

    REDIS_URL: Optional[AnyUrl] = Field(
        "redis://localhost:6379/0", description="Redis connection string for cache and Celery"
    )

    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost", "http://localhost:5000"],
        description="Allowed CORS origins",
    )

    CELERY_BROKER_URL: Optional[AnyUrl] = None
    CELERY_RESULT_BACKEND: Optional[AnyUrl] = None

    # Web push (VAPID). Notifications are disabled when either key is missing.
    VAPID_PUBLIC_KEY: Optional[str] = None
    VAPID_PRIVATE_KEY: Optional[str] = None
    VAPID_SUBJECT: str = Field(
        "mailto:support@mealtracker.app", description="Contact claim sent to push services"
    )
    PUSH_TTL_SECONDS: int = Field(86400, ge=0, description="How long push services keep a message")
    PUSH_TIMEOUT_SECONDS: float = Field(10.0, gt=0, description="Timeout for a single push request")

    # Scheduling
    TIMEZONE: str = Field("Europe/Berlin", description="Wall clock for quiet hours and calendar days")
    DEFAULT_TARGET_HOURS: int = Field(3, ge=1, le=24, description="Interval reminder threshold")
    BADGE_MAX_COUNT: int = Field(99, ge=1)
    INTERVAL_CHECK_MINUTES: int = Field(5, ge=1, le=59)
    DAILY_REMINDER_HOUR: int = Field(9, ge=0, le=23)
    PASS_TIME_LIMIT_SECONDS: int = Field(240, ge=1, description="Soft budget for one evaluation pass")
    NOTIFICATION_ICON: str = "/icon-192.png"

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.VAPID_PUBLIC_KEY and self.VAPID_PRIVATE_KEY)


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


settings = get_settings()
