from functools import lru_cache

from pydantic import EmailStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Security
    secret_key: str = "changeme"  # override in .env
    access_token_expire_minutes: int = 60

    # Database
    database_url: str = "sqlite:///./directory.db"

    # Public URL of the directory; internal node api_url values are built from it
    directory_base_url: str = "http://localhost:5173"

    # Connection credentials
    credential_encoder: str = "base64"  # "base64" | "aesgcm"
    credential_encryption_key: str | None = None
    connection_validity_days: int = 365

    # Listings
    default_page_size: int = 50
    max_page_size: int = 100

    # Email
    email_enabled: bool = True
    email_from: EmailStr = "no-reply@example.com"
    email_smtp_host: str = "localhost"
    email_smtp_port: int = 1025
    email_smtp_username: str | None = None
    email_smtp_password: str | None = None
    email_sandbox_mode: bool = True
    email_test_recipient: EmailStr | None = None

    # Bootstrap (scripts/setup_directory.py)
    root_organization_name: str = "Directory Root"
    root_user_email: EmailStr | None = None
    root_user_password: str | None = None
    root_user_full_name: str = "Directory Root"

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
