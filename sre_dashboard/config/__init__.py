"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="sre-dashboard", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/sre_dashboard",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Health Configuration ==========
    health_config_path: Path = Field(
        default=Path("health_config.yaml"),
        description="Path to health scoring / validation YAML file"
    )

    # ========== Query Facade ==========
    list_default_limit: int = Field(
        default=100,
        description="Default row cap for log and metric listings",
        ge=1
    )
    list_max_limit: int = Field(
        default=1000,
        description="Largest row cap a caller may request",
        ge=1
    )

    # ========== Slack Integration ==========
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack webhook URL for alert and incident notifications"
    )
    slack_channel: str = Field(
        default="#sre-alerts",
        description="Slack channel for notifications"
    )
    slack_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for Slack API calls",
        ge=0.1,
        le=30
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class ServiceStatus(str, Enum):
    """Operational status of a monitored service."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


class AlertSeverity(str, Enum):
    """Alert severities."""
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class IncidentSeverity(str, Enum):
    """Incident severities."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class IncidentStatus(str, Enum):
    """Incident lifecycle statuses."""
    OPEN = "OPEN"
    ONGOING = "ONGOING"
    RESOLVED = "RESOLVED"


class IncidentEventType(str, Enum):
    """Incident timeline event types."""
    TRIGGERED = "triggered"
    ACKNOWLEDGED = "acknowledged"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    COMMENT = "comment"


class LogLevel(str, Enum):
    """Log entry levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class CheckStatus(str, Enum):
    """Release validation check outcomes."""
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"


class OverallHealth(str, Enum):
    """Aggregate system health classification."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


# ========== Lists for validation ==========

VALID_LOG_LEVELS = [lvl.value for lvl in LogLevel]

# Incidents at these severities block a release while unresolved
BLOCKING_INCIDENT_SEVERITIES = [IncidentSeverity.HIGH.value, IncidentSeverity.CRITICAL.value]
UNRESOLVED_INCIDENT_STATUSES = [IncidentStatus.OPEN.value, IncidentStatus.ONGOING.value]

# Only these may be appended by hand; the rest come from transitions
MANUAL_EVENT_TYPES = [IncidentEventType.COMMENT.value, IncidentEventType.ESCALATED.value]
