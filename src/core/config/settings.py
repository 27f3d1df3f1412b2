# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ClassRoster settings, read from the environment and an optional .env file.

Each group has its own variable prefix:

    DB_*         roster database (DB_URL replaces the components)
    JWT_*        access token verification
    TRANSFER_*   undo window and batch size cap
    RATE_LIMIT_* slowapi limits
    CORS_*       allowed origins
    API_*        uvicorn server

Example:
    >>> from src.core.config.settings import get_settings
    >>> get_settings().transfer.undo_window_minutes
    5
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-this-in-production"


class DatabaseSettings(BaseSettings):
    """Connection to the database holding classes, students and enrollments.

    Attributes:
        url_override: Full async URL from DB_URL, e.g. an aiosqlite file for
            local runs. Wins over the PostgreSQL components.
        pool_size: Pooled connections (PostgreSQL only).
        max_overflow: Connections allowed above pool_size.
    """

    model_config = SettingsConfigDict(env_prefix="DB_", extra="ignore")

    user: str = "classroster"
    password: SecretStr = SecretStr("classroster_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "classroster"
    url_override: str | None = Field(default=None, validation_alias="DB_URL")
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        if self.url_override:
            return self.url_override
        password = self.password.get_secret_value()
        return (
            f"postgresql+asyncpg://{self.user}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class JWTSettings(BaseSettings):
    """Shared secret and algorithm used to verify access tokens."""

    model_config = SettingsConfigDict(env_prefix="JWT_", extra="ignore")

    secret_key: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=30,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )


class TransferSettings(BaseSettings):
    """Batch transfer rules.

    Attributes:
        undo_window_minutes: How long the performer may undo a transfer.
        max_batch_size: Most students one batch transfer may move.
    """

    model_config = SettingsConfigDict(env_prefix="TRANSFER_", extra="ignore")

    undo_window_minutes: int = Field(default=5, gt=0)
    max_batch_size: int = Field(default=100, gt=0)


class RateLimitSettings(BaseSettings):
    """Per-client request limits; storage_uri selects the slowapi backend."""

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_", extra="ignore")

    requests_per_minute: int = 60
    storage_uri: str = "memory://"


class CORSSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """CORS_ORIGINS split on commas, blanks dropped."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """Options passed to uvicorn by the classroster-api command."""

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 8082
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """All settings groups plus the environment name, debug flag and log level."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    transfer: TransferSettings = Field(default_factory=TransferSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def require_jwt_secret_in_production(self) -> Self:
        """Refuse to start production with the built-in JWT secret.

        Raises:
            ValueError: If JWT_SECRET_KEY is unset in production.
        """
        if (
            self.environment == "production"
            and self.jwt.secret_key.get_secret_value() == DEFAULT_JWT_SECRET
        ):
            raise ValueError(
                "JWT secret key must be changed from default in production. "
                "Set JWT_SECRET_KEY environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process; clear_settings_cache() forces a reload."""
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
