"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="kbw-notes", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Authentication
    auth_secret_key: str = Field(
        default="dev-jwt-secret-key-change-in-production-32chars!",
        description="JWT signing key (min 32 chars)",
    )
    auth_algorithm: str = Field(default="HS256", description="JWT algorithm")
    auth_access_token_expire_minutes: int = Field(
        default=60 * 24, description="Access token expiration (minutes)"
    )
    auth_reset_token_expire_minutes: int = Field(
        default=30, description="Password reset token expiration (minutes)"
    )
    auth_allowed_email_domain: str = Field(
        default="kbw.vc", description="Only emails on this exact domain may sign in"
    )
    auth_password_min_length: int = Field(
        default=8, description="Minimum password length on sign-up"
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(default=10, description="Max Redis connections")
    redis_socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Redis connect timeout"
    )

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Cassandra hosts"
    )
    cassandra_port: int = Field(default=9042, description="Cassandra port")
    cassandra_keyspace: str = Field(
        default="kbw_notes", description="Cassandra keyspace"
    )
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_connect_timeout: float = Field(
        default=10.0, description="Connect timeout"
    )

    # Rate limiting (moderation gateway)
    rate_limit_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Where fixed-window counters live (memory is per process)",
    )
    rate_limit_window_seconds: int = Field(
        default=60, description="Fixed window length in seconds"
    )
    rate_limit_max_requests: int = Field(
        default=10, description="Requests allowed per identifier per window"
    )

    # Moderation classifier
    moderation_api_key: str | None = Field(
        default=None, description="Classifier API key (KEEP SECRET!)"
    )
    moderation_api_url: str = Field(
        default="https://api.anthropic.com/v1/messages",
        description="Classifier messages endpoint",
    )
    moderation_api_version: str = Field(
        default="2023-06-01", description="Value for the anthropic-version header"
    )
    moderation_model: str = Field(
        default="claude-haiku-4-5-20251001", description="Classifier model name"
    )
    moderation_max_tokens: int = Field(
        default=256, description="Max tokens for a verdict"
    )
    moderation_timeout_seconds: float = Field(
        default=15.0, description="Classifier request timeout"
    )

    # Comments
    comment_max_length: int = Field(
        default=2000, description="Hard ceiling on comment length (chars)"
    )
    comment_tombstone: str = Field(
        default="[This comment has been deleted]",
        description="Content substituted on soft delete",
    )

    # Drafts (client session)
    draft_autosave_interval_seconds: float = Field(
        default=30.0, description="Debounce interval for draft auto-save"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=True, description="Include caller info"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/health/live", "/health/ready"],
        description="Paths to exclude from request logging",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="CORS origins",
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(default=["*"], description="Allowed methods")
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def moderation_configured(self) -> bool:
        """Check if the moderation classifier has credentials."""
        return bool(self.moderation_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
