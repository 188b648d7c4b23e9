"""Application settings and configuration.

This module defines all configuration options for the Secure Whisper service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from secure_whisper.services.codec import decode_encryption_key


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files. The
    signing secret and the message encryption key have no defaults: a process
    without them refuses to start.
    """

    # Application metadata
    app_name: str = Field(default="Secure Whisper", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    encryption_key: str = Field(alias="ENCRYPTION_KEY")
    bcrypt_rounds: int = Field(default=10, ge=4, le=31, alias="BCRYPT_ROUNDS")

    # Database configuration
    database_url: str = Field(default="sqlite:///./secure_whisper.db", alias="DATABASE_URL")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT session tokens
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Live delivery
    hub_queue_size: int = Field(default=256, ge=1, alias="HUB_QUEUE_SIZE")
    enforce_chat_membership: bool = Field(default=True, alias="ENFORCE_CHAT_MEMBERSHIP")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("encryption_key")
    @classmethod
    def validate_encryption_key(cls, value: str) -> str:
        """Reject keys that do not decode to exactly 32 bytes."""
        decode_encryption_key(value)
        return value

    @property
    def encryption_key_bytes(self) -> bytes:
        """Return the decoded 32-byte message encryption key."""
        return decode_encryption_key(self.encryption_key)


settings = Settings()  # type: ignore[call-arg]
