"""Configuration management."""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(
        default="sqlite:///./social_insights.db",
        description="SQLAlchemy database URL"
    )

    # Report defaults
    default_limit: int = Field(default=10, ge=1)
    default_window_days: int = Field(default=30, ge=0)
    default_threshold_set: str = Field(default="standard")
    strict_validation: bool = Field(
        default=False,
        description="Abort reports on dangling foreign keys instead of counting them"
    )

    # Config versioning
    config_version: str = Field(default="1.0.0")

    class Config:
        env_prefix = "SOCIAL_INSIGHTS_"
        env_file = ".env"


def get_settings() -> Settings:
    """Get settings - environment variables and .env take priority over defaults."""
    return Settings()


settings = get_settings()
