"""
Application Settings for the Video Exchange API

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    External collaborators (billing, media storage, moderation) are optional
    in development; the adapters raise a ConfigurationError on first use when
    their credentials are missing.
    """

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Authentication (tokens are issued by the identity service)
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    # Plans
    basic_plan_name: str = "basic"

    # Stripe (billing provider)
    stripe_secret_key: Optional[str] = None
    billing_timeout_seconds: float = 10.0

    # Media storage (S3-compatible)
    storage_endpoint_url: Optional[str] = None
    storage_bucket_name: Optional[str] = None
    storage_access_key_id: Optional[str] = None
    storage_secret_access_key: Optional[str] = None
    storage_url_expiry_seconds: int = 3600
    storage_connect_timeout: int = 5
    storage_read_timeout: int = 60

    # Content moderation (Sightengine)
    moderation_api_url: str = "https://api.sightengine.com/1.0/video/check.json"
    moderation_api_user: Optional[str] = None
    moderation_api_secret: Optional[str] = None
    moderation_callback_url: Optional[str] = None
    moderation_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_production_secrets(self) -> "Settings":
        """Refuse to boot production with the placeholder JWT secret."""
        if self.is_production and self.jwt_secret == "change-me":
            raise ValueError("JWT_SECRET must be set when ENVIRONMENT=production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
