"""
Configuration Settings
======================

Connection defaults loaded from the environment using Pydantic V2 Settings.

Every field can be overridden with a ``SQLSESSION_`` prefixed variable,
for example ``SQLSESSION_DRIVER=postgresql+psycopg2``.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Session defaults loaded from environment variables."""

    driver: str = Field(default="mysql+pymysql")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3306, ge=1, le=65535)
    charset: str = Field(default="utf8mb4", min_length=1)
    echo: bool = Field(default=False)
    strict_transactions: bool = Field(default=True)
    connect_timeout: Optional[float] = Field(default=None, gt=0)

    @field_validator("driver")
    @classmethod
    def normalize_driver(cls, v: str) -> str:
        """Driver names are matched case-insensitively by SQLAlchemy's registry."""
        v = v.strip().lower()
        if not v:
            raise ValueError("driver must not be empty")
        return v

    model_config = SettingsConfigDict(
        env_prefix="SQLSESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def print_settings(current: Optional[Settings] = None) -> None:
    """Print the effective settings, one per line."""
    current = current or settings
    for name, value in current.model_dump().items():
        print(f"{name:<20} {value}")
