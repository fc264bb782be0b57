"""
Application settings and configuration
"""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Basic app settings
    DEBUG: bool = Field(default=False)
    APP_NAME: str = Field(default="Booking Availability Service")

    # Token verification (tokens are issued by the external auth provider)
    JWT_SECRET_KEY: str = Field(
        default="change-this-jwt-secret-in-production-use-long-random-string"
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60)

    # Server settings
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Database settings
    DATABASE_URL: str = Field(default="sqlite:///./bookings.db")
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)
    AUTO_CREATE_TABLES: bool = Field(default=False)

    # Celery settings
    CELERY_BROKER_URL: str = Field(default="redis://localhost:6379/1")
    CELERY_RESULT_BACKEND: str = Field(default="redis://localhost:6379/2")
    CELERY_TASK_SERIALIZER: str = Field(default="json")
    CELERY_TASK_ALWAYS_EAGER: bool = Field(default=False)

    # Availability settings
    DEFAULT_SLOT_DURATION_MINUTES: int = Field(default=60)
    MAX_SLOT_DURATION_MINUTES: int = Field(default=24 * 60)
    FALLBACK_AVAILABILITY_ENABLED: bool = Field(default=True)

    # Booking settings
    BOOKING_LOCK_TIMEOUT_SECONDS: float = Field(default=10.0)

    # Notification sink (booking created / appointment confirmed)
    NOTIFICATION_WEBHOOK_URL: Optional[str] = None
    NOTIFICATION_WEBHOOK_SECRET: str = Field(default="")
    NOTIFICATION_TIMEOUT_SECONDS: float = Field(default=15.0)

    # Monitoring settings
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # allows extra env vars without breaking
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Convenience accessor for settings
settings = get_settings()
