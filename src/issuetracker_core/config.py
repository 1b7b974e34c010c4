"""Application settings loaded from the environment."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PERMISSIONS_FILE = Path(__file__).parent / "permissions.yaml"


class Settings(BaseSettings):
    """Runtime configuration for the issue tracker service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    app_name: str = "issuetracker-core"
    environment: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 4000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Database
    database_url: str = "sqlite+aiosqlite:///./issuetracker.db"
    db_pool_size: int = 25
    db_max_overflow: int = 0
    db_pool_recycle: int = 900
    db_pool_timeout: int = 30
    db_echo: bool = False

    # Deadline applied to every domain operation, in seconds
    request_timeout: float = 5.0

    # Bearer credentials
    jwt_secret: SecretStr = SecretStr("change-me-in-production")
    jwt_issuer: str = "issuetracker"
    jwt_ttl_hours: int = 24

    # Password hashing cost
    bcrypt_rounds: int = 12

    # Activation tokens
    activation_token_ttl_days: int = 3

    # Authorization
    permissions_file: Path = DEFAULT_PERMISSIONS_FILE

    # Mail
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: str = ""
    smtp_password: SecretStr = SecretStr("")
    smtp_sender: str = "Issue Tracker <no-reply@issuetracker.local>"
    smtp_timeout: float = 10.0
    smtp_starttls: bool = False
    mail_max_attempts: int = 3
    mail_retry_delay: float = 5.0
    shutdown_timeout: float = 20.0

    # Rate limiting
    limiter_enabled: bool = True
    limiter_rps: float = 2.0
    limiter_burst: int = 4
    limiter_sweep_interval: float = 60.0
    limiter_idle_ttl: float = 180.0


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
