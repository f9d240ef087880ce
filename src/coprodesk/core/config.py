"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class AuthConfig(BaseSettings):
    """Authentication configuration."""

    model_config = {"env_prefix": "COPRODESK_AUTH_"}

    provider: str = "mock"
    fixtures_path: str = "config/auth_fixtures.yml"
    token_expiry_minutes: int = 60
    session_timeout_seconds: float = 15.0
    password_rounds: int = 12


class TicketConfig(BaseSettings):
    """Ticket lifecycle configuration."""

    model_config = {"env_prefix": "COPRODESK_TICKETS_"}

    code_prefix: str = "TK"
    list_retries: int = 2
    retry_delay_seconds: float = 0.2


class NotificationConfig(BaseSettings):
    """Notification tracking configuration."""

    model_config = {"env_prefix": "COPRODESK_NOTIFICATION_"}

    read_state_backend: str = "memory"
    read_state_dir: str = "data/read_state"
    max_pending_events: int = 1000
    idle_timeout_seconds: float = 3600.0


class StorageConfig(BaseSettings):
    """Attachment storage configuration."""

    model_config = {"env_prefix": "COPRODESK_STORAGE_"}

    upload_dir: str = "data/uploads"
    public_base_url: str = "http://localhost:8000/files"


class DBConfig(BaseSettings):
    """Database configuration. In-memory stores are used when no URL is set."""

    model_config = {"env_prefix": "COPRODESK_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "COPRODESK_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:8080"]
    )

    auth: AuthConfig = Field(default_factory=AuthConfig)
    tickets: TicketConfig = Field(default_factory=TicketConfig)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    db: DBConfig = Field(default_factory=DBConfig)
