"""
UNMUTE Application Settings

Production-grade configuration management using Pydantic Settings.
All sensitive values are loaded from environment variables.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


StageName = Literal[
    "trigger", "spiral", "distortions", "overload",
    "isolation", "ideation", "planning", "action",
]
RiskLevelName = Literal["low", "medium", "high", "critical"]


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="UNMUTE_DB_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="unmute_db", description="Database name")
    user: str = Field(default="unmute_user", description="Database user")
    password: SecretStr = Field(default=SecretStr("dev_password"), description="Database password")
    pool_size: int = Field(default=10, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=20, ge=0, le=100, description="Max overflow connections")
    url_override: str = Field(
        default="",
        description="Full SQLAlchemy URL (e.g. sqlite+aiosqlite://) replacing host/port/name",
    )

    @property
    def async_url(self) -> str:
        """Generate async database URL for SQLAlchemy."""
        if self.url_override:
            return self.url_override
        password = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{password}@{self.host}:{self.port}/{self.name}"


class ClassifierSettings(BaseSettings):
    """Signal classifier limits."""

    model_config = SettingsConfigDict(env_prefix="UNMUTE_CLASSIFIER_")

    max_scan_chars: int = Field(
        default=4000,
        ge=200,
        le=100_000,
        description="Only this many leading characters are scanned",
    )
    negation_window: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Words before a match inspected for negation cues",
    )


class AlertSettings(BaseSettings):
    """Real-time alert bus configuration."""

    model_config = SettingsConfigDict(env_prefix="UNMUTE_ALERT_")

    cooldown_minutes: float = Field(default=15.0, ge=0.0, le=1440.0)
    subscriber_buffer_size: int = Field(default=100, ge=1, le=10_000)
    min_stage: StageName = Field(
        default="ideation",
        description="Lowest stage that produces a staff alert",
    )


class EscalationSettings(BaseSettings):
    """Risk update and assignment escalation configuration."""

    model_config = SettingsConfigDict(env_prefix="UNMUTE_ESCALATION_")

    profile_write_attempts: int = Field(default=3, ge=1, le=10)
    retry_backoff_min_seconds: float = Field(default=0.05, ge=0.0)
    retry_backoff_max_seconds: float = Field(default=1.0, ge=0.0)
    auto_escalate_min_level: RiskLevelName = Field(
        default="critical",
        description="Risk level at which the pipeline opens or upgrades an assignment",
    )
    sweep_interval_seconds: float = Field(default=60.0, ge=1.0)
    max_deferred_updates: int = Field(
        default=1000,
        ge=1,
        description="Deferred risk updates kept in memory; the oldest is abandoned past this",
    )
    max_deferred_sweeps: int = Field(
        default=10,
        ge=1,
        description="Failed sweeps after which a deferred risk update is abandoned",
    )
    shutdown_timeout_seconds: float = Field(
        default=10.0,
        ge=0.0,
        description="How long shutdown waits for in-flight message processing",
    )


class NotificationSettings(BaseSettings):
    """Outbound e-mail / SMS notification configuration."""

    model_config = SettingsConfigDict(env_prefix="UNMUTE_NOTIFY_")

    resend_api_key: SecretStr = Field(default=SecretStr(""), description="Resend API key")
    email_from: str = Field(default="UNMUTE Crisis Alerts <alerts@resend.dev>")
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: SecretStr = Field(default=SecretStr(""))
    twilio_phone_number: str = Field(default="")
    recipient_emails: list[str] = Field(default_factory=list)
    recipient_phones: list[str] = Field(default_factory=list)
    timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)
    alerts_enabled: bool = Field(
        default=False,
        description="Send e-mail/SMS for every emitted crisis alert",
    )
    resources_file: str = Field(
        default="",
        description="Optional JSON file overriding the built-in crisis helplines",
    )


class SentrySettings(BaseSettings):
    """Sentry error tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="UNMUTE_SENTRY_")

    dsn: str = Field(default="", description="Sentry DSN (empty disables tracking)")
    traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with UNMUTE_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        db_url = settings.database.async_url
    """

    model_config = SettingsConfigDict(
        env_prefix="UNMUTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    store_backend: Literal["sql", "memory"] = Field(
        default="sql",
        description="Record store backing profiles, assignments and logs",
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    alerts: AlertSettings = Field(default_factory=AlertSettings)
    escalation: EscalationSettings = Field(default_factory=EscalationSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, pass a Settings instance explicitly instead.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
