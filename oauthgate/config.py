"""
Configuration management for oauthgate.

Uses pydantic-settings for environment variable management.
"""
import re
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # App
    APP_NAME: str = "oauthgate"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # Google OAuth
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_AUTHORIZATION_ENDPOINT: str = "https://accounts.google.com/o/oauth2/auth"
    GOOGLE_TOKEN_ENDPOINT: str = "https://oauth2.googleapis.com/token"
    GOOGLE_USERINFO_ENDPOINT: str = "https://www.googleapis.com/oauth2/v2/userinfo"
    OAUTH_SCOPES: str = ""
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Public origin the provider redirects back to
    PUBLIC_BASE_URL: str = "http://localhost:8080"
    POST_LOGIN_PATH: str = "/dashboard"
    LOGOUT_REDIRECT_URL: Optional[str] = None
    LOGIN_TEMPLATE: Optional[str] = None

    # Session cookie
    SESSION_SECRET: str = ""
    SESSION_COOKIE_NAME: str = "oauthgate_session"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 30
    SESSION_HTTPS_ONLY: bool = False
    SESSION_SAME_SITE: str = "lax"

    # Observability
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    SENTRY_DSN: Optional[str] = None

    @field_validator("PUBLIC_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def scopes(self) -> List[str]:
        """Requested scopes; empty when the default set should be used."""
        return [scope for scope in re.split(r"[,\s]+", self.OAUTH_SCOPES) if scope]


# Global settings instance
settings = Settings()
