"""Application configuration and settings management.

This module defines the application settings loaded from environment
variables and provides helper functions for accessing cached settings,
email configuration and logging setup.
"""

import logging
from functools import lru_cache
from typing import List

from fastapi_mail import ConnectionConfig
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        SECRET_KEY: Secret used to sign session cookies and OAuth state.
        ALGORITHM: Algorithm used to sign OAuth state tokens.
        OAUTH_STATE_EXPIRE_MINUTES: Lifetime of an OAuth state token.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        REDIS_URL: Redis connection URL for rate limiting.
        CLOUDINARY_URL: Cloudinary connection URL for contact pictures.
        SMTP_FROM_EMAIL: Sender email address for outgoing emails.
        SMTP_USER: SMTP username.
        SMTP_PASSWORD: SMTP password.
        SMTP_PORT: SMTP server port.
        SMTP_HOST: SMTP server host.
        BASE_URL: Base URL of the application, used in emailed links.
        GOOGLE_CLIENT_ID: OAuth2 client id registered with Google.
        GOOGLE_CLIENT_SECRET: OAuth2 client secret registered with Google.
        GITHUB_CLIENT_ID: OAuth2 client id registered with GitHub.
        GITHUB_CLIENT_SECRET: OAuth2 client secret registered with GitHub.
        PAGE_SIZE: Default number of contacts per page.
        DEFAULT_PROFILE_PIC: Picture assigned to self-registered users.
        LOG_LEVEL: Root logging level.
    """

    DATABASE_URL: str = "sqlite:///./scm.db"
    SECRET_KEY: str = "dev-secret"
    ALGORITHM: str = "HS256"
    OAUTH_STATE_EXPIRE_MINUTES: int = 10
    ALLOWED_ORIGINS: List[str] = ["*"]
    REDIS_URL: str = "redis://redis:6379"
    CLOUDINARY_URL: str | None = None
    SMTP_FROM_EMAIL: str = "noreply@example.com"
    SMTP_USER: str = "user"
    SMTP_PASSWORD: str = "password"
    SMTP_PORT: int = 1025
    SMTP_HOST: str = "localhost"
    BASE_URL: str = "http://localhost:8000"
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""
    PAGE_SIZE: int = 10
    DEFAULT_PROFILE_PIC: str = (
        "https://png.pngtree.com/element_our/20200610/ourmid/"
        "pngtree-character-default-avatar-image_2237203.jpg"
    )
    LOG_LEVEL: str = "INFO"

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()


def get_mail_config() -> ConnectionConfig:
    """Create and return email configuration for FastAPI-Mail.

    Returns:
        ConnectionConfig: Configured email connection settings.
    """

    settings = get_settings()
    return ConnectionConfig(
        MAIL_USERNAME=settings.SMTP_USER,
        MAIL_PASSWORD=settings.SMTP_PASSWORD,
        MAIL_FROM=settings.SMTP_FROM_EMAIL,
        MAIL_PORT=settings.SMTP_PORT,
        MAIL_SERVER=settings.SMTP_HOST,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=True,
    )


def configure_logging() -> None:
    """Configure the root logger from settings."""

    logging.basicConfig(
        level=get_settings().LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
