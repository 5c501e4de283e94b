"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment-based configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./thread_merge.db",
        description="Database connection URL",
    )
    test_database_url: Optional[str] = Field(
        default=None,
        description="Test database connection URL",
    )

    # Web Application
    web_host: str = Field(
        default="0.0.0.0",
        description="Web server host",
    )
    web_port: int = Field(
        default=8000,
        description="Web server port",
    )
    verbose_errors_enabled: bool = Field(
        default=True,
        description="Enable verbose error messages (disable in production)",
    )

    # Merging
    merge_headroom_slack: int = Field(
        default=100,
        ge=0,
        description="Extra numbers left free above the destination's posts before a merge",
    )
    merge_record_post: bool = Field(
        default=False,
        description="Append a thread_merged event post to the destination after a merge",
    )
    locale: str = Field(
        default="en",
        description="Locale used for user-facing error messages",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = {"development", "testing", "production"}
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL based on environment."""
        if self.is_testing and self.test_database_url:
            return self.test_database_url
        return self.database_url


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def override_settings(**kwargs) -> Settings:
    """Create a settings instance with overrides (useful for testing)."""
    return Settings(**kwargs)
