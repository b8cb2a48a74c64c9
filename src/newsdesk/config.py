"""Configuration management using Pydantic Settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(
        default="Newsdesk",
        description="Application name",
    )
    app_version: str = Field(
        default="0.3.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Debug mode",
    )

    # Admin API settings
    admin_api_base_url: str = Field(
        default="http://localhost:3000",
        description="Origin serving the /api/admin endpoints",
    )
    admin_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent with every admin API request",
    )
    admin_api_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout for admin API calls",
    )

    # Scheduling settings
    schedule_preview_occurrences: int = Field(
        default=5,
        ge=0,
        description="Occurrences projected after the first publication date",
    )

    # Duplicate detection settings
    duplicate_fetch_limit: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum number of duplicate groups requested per fetch",
    )
    duplicate_similarity_threshold: float = Field(
        default=0.8,
        ge=0.5,
        le=1.0,
        description="Default similarity threshold for duplicate detection",
    )
    duplicate_date_range_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Default look-back window for duplicate detection in days",
    )

    @property
    def user_agent(self) -> str:
        """User-Agent header value for admin API requests."""
        return f"{self.app_name}/{self.app_version}"


# Global settings instance
settings = Settings()
