"""
Configuration management for invoicedb.

- Application settings come from environment variables (and an optional .env file)
  through Pydantic Settings
- Each backend has its own connection block (MYSQL_*, POSTGRES_*); only the block
  of the selected STORAGE_DRIVER is loaded and validated
- Nothing is instantiated at import time: the entry point builds a Settings
  object once and passes it down
"""
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Type

from .database.exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Storage backend: MYSQL or POSTGRES
    storage_driver: str = Field("MYSQL")

    # Application Configuration
    log_level: str = Field("INFO")
    database_connect_timeout: int = Field(10)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields in .env
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return level


class DatabaseSettings(BaseSettings):
    """Connection parameters shared by both backends."""

    host: str = Field("localhost")
    port: int
    user: str
    password: str
    db: str

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class MySQLSettings(DatabaseSettings):
    """MYSQL_HOST, MYSQL_PORT, MYSQL_USER, MYSQL_PASSWORD, MYSQL_DB."""

    model_config = SettingsConfigDict(env_prefix="MYSQL_")


class PostgresSettings(DatabaseSettings):
    """POSTGRES_HOST, POSTGRES_PORT, POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB."""

    sslmode: str = Field("disable")

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")


def _invalid_variables(settings_class: Type[BaseSettings], error: ValidationError) -> List[str]:
    """Environment variable names of the fields that failed validation."""
    prefix = settings_class.model_config.get("env_prefix", "")
    return [
        f"{prefix}{detail['loc'][0]}".upper()
        for detail in error.errors()
        if detail.get("loc")
    ]


def load_settings(**overrides) -> Settings:
    """
    Load the application settings.

    Raises:
        ConfigurationError: If LOG_LEVEL, DATABASE_CONNECT_TIMEOUT or another
            value is malformed
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        invalid = _invalid_variables(Settings, e)
        raise ConfigurationError(
            f"Invalid application settings: {', '.join(invalid)}",
            missing=invalid,
        ) from e


def load_database_settings(
    settings_class: Type[DatabaseSettings],
    **overrides,
) -> DatabaseSettings:
    """
    Load one backend's connection block.

    Args:
        settings_class: MySQLSettings or PostgresSettings
        **overrides: Keyword arguments forwarded to the settings constructor
            (e.g. _env_file=None in tests)

    Raises:
        ConfigurationError: If a required value is missing or malformed
    """
    try:
        return settings_class(**overrides)
    except ValidationError as e:
        missing = _invalid_variables(settings_class, e)
        raise ConfigurationError(
            f"Invalid or missing database settings: {', '.join(missing)}",
            missing=missing,
        ) from e
