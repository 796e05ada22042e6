"""Application settings using Pydantic Settings for configuration management."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    app_name: str = "OpenPGP Validation Service"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # Confirmation listener
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    confirm_base_url: str | None = None

    # Service key
    private_key_path: Path | None = None
    passphrase: SecretStr = Field(default=SecretStr(""))
    gnupg_home: Path = Path("./gnupg")
    gpg_binary: str = "gpg"
    policy_url: str = (
        "https://github.com/TNG/openpgp-validation-server/blob/"
        "d2d11e4d69fa3d050b6bfb48788d8e67d28e7bf4/POLICY-enc-email-click-draft.md"
    )

    # Pending requests
    storage_type: Literal["none", "memory", "file", "sqlite"] = "memory"
    storage_dir: Path = Path("./requests")
    sqlite_db_path: Path = Path("./data/requests.db")
    nonce_ttl_seconds: int | None = None

    # Outgoing mail
    smtp_host: str | None = None
    smtp_port: int = 25
    outbox_dir: Path | None = None

    # Parser
    inline_attachments: bool = True

    @computed_field
    @property
    def smtp_enabled(self) -> bool:
        """Whether outgoing mail is relayed over SMTP."""
        return bool(self.smtp_host)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
