"""
Mail Encryption Gateway Configuration

Manages all configuration settings with environment variable support.
Secrets (SMTP password, license keys) are never logged.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Mail Encryption Gateway"
    app_version: str = "1.0.0"

    # Sending site, used as the license correlation domain
    site_url: str = "http://localhost"

    # Encryption policy snapshot written by the settings collaborator
    settings_file: Path = Field(default_factory=lambda: Path("./data/encryption_settings.json"))

    # License verification
    license_endpoint: str = "https://api.encryptmail.io/v1/verify"
    license_timeout: float = 15.0

    # Deliver plaintext when encryption cannot be applied
    fail_open: bool = True

    # GnuPG
    gpg_binary: str = "gpg"

    # Transport
    mail_from: Optional[str] = None
    smtp_host: str = "127.0.0.1"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_start_tls: bool = True

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("license_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """A blocking call on the send path must always be bounded."""
        if v <= 0:
            raise ValueError("license_timeout must be positive")
        return v

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        if not urlparse(v).hostname:
            raise ValueError(f"site_url has no host: {v!r}")
        return v

    @property
    def site_domain(self) -> str:
        """Host part of the site URL, sent to the license endpoint."""
        return urlparse(self.site_url).hostname or ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
