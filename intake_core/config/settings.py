"""
Application settings using Pydantic Settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults for the record intake validation core.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment enumeration."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format enumeration."""

    JSON = "json"
    CONSOLE = "console"


class DuplicateDetectionSettings(BaseSettings):
    """Duplicate detection thresholds, bounds and field weights."""

    model_config = SettingsConfigDict(
        env_prefix="DUPLICATE_",
        extra="ignore",
    )

    max_candidates: Annotated[int, Field(ge=1, le=10000)] = Field(
        default=100,
        description="Maximum number of existing records scored per detection call",
    )
    similarity_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.7,
        description="Minimum composite score for a similar-record warning",
    )
    first_name_weight: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.3,
        description="Weight of the first name score in the composite score",
    )
    last_name_weight: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.5,
        description="Weight of the last name score in the composite score",
    )
    identifier_weight: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.2,
        description="Weight of the identifier prefix score in the composite score",
    )
    identifier_prefix_length: Annotated[int, Field(ge=1, le=50)] = Field(
        default=6,
        description="Number of leading identifier characters compared",
    )
    order_window_days: Annotated[int, Field(ge=1, le=365)] = Field(
        default=30,
        description="Window in days for duplicate order detection",
    )

    @model_validator(mode="after")
    def validate_weights(self) -> "DuplicateDetectionSettings":
        """Ensure the field weights form a convex combination."""
        total = self.first_name_weight + self.last_name_weight + self.identifier_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(
                f"Duplicate detection weights must sum to 1.0 (got {total:.4f})"
            )
        return self


class PrivacySettings(BaseSettings):
    """PHI handling configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="HIPAA_",
        extra="ignore",
    )

    phi_masking_enabled: bool = Field(
        default=True,
        description="Enable PHI masking in logs",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore",
    )

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    file_path: Path | None = Field(
        default=None,
        description="Optional rotating log file path",
    )
    file_max_size_mb: Annotated[int, Field(ge=1, le=1000)] = Field(
        default=100,
        description="Maximum log file size in MB",
    )
    file_backup_count: Annotated[int, Field(ge=1, le=20)] = Field(
        default=5,
        description="Number of backup log files to keep",
    )
    include_caller: bool = Field(
        default=False,
        description="Include caller information in log entries",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def create_log_dir(cls, v: Any) -> Path | None:
        """Ensure log directory exists when a log file is configured."""
        if v is None or v == "":
            return None
        path = Path(v) if isinstance(v, str) else v
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


class Settings(BaseSettings):
    """
    Main application settings aggregating all configuration sections.

    Settings are loaded from environment variables with optional .env file support.
    Each section has its own prefix for environment variable naming.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application metadata
    app_name: str = Field(
        default="patient-intake-core",
        description="Application name",
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version",
    )
    app_env: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Component settings
    duplicate_detection: DuplicateDetectionSettings = Field(
        default_factory=DuplicateDetectionSettings
    )
    hipaa: PrivacySettings = Field(default_factory=PrivacySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate critical settings for production environment."""
        if self.app_env == Environment.PRODUCTION:
            if self.debug:
                raise ValueError("DEBUG must be False in production")
            if not self.hipaa.phi_masking_enabled:
                raise ValueError("PHI masking cannot be disabled in production")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.app_env == Environment.TESTING


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
