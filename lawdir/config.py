"""
Configuration for the Legal Directory Service
=============================================

Environment variables (all optional):
- SESSION_COOKIE_NAME: name of the login cookie (default: lawdir_session)
- COOKIE_SECURE: mark the session cookie Secure (default: false)
- ACCESS_TOKEN_EXPIRE_MINUTES: JWT lifetime (default: 7 days)
- CORS_ORIGINS: comma-separated allowed origins
- EMAIL_NOTIFICATIONS_ENABLED: mirror notifications to e-mail (default: false)
- SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, SMTP_FROM, SMTP_USE_TLS
- APP_URL: public site used to build links in e-mails

DATABASE_URL and JWT_SECRET_KEY are read by the modules that use them.
"""

from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Service info
    service_version: str = "1.0.0"

    # Session / auth
    session_cookie_name: str = "lawdir_session"
    cookie_secure: bool = False
    access_token_expire_minutes: int = 60 * 24 * 7

    # CORS
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Search
    search_default_limit: int = 20
    search_max_limit: int = 100
    search_profiles_limit: int = 10

    # Slugs
    slug_max_attempts: int = 10

    # Reviews
    review_duplicate_window_days: int = 30
    review_comment_min_length: int = 50
    review_response_min_length: int = 20

    # Firm team
    invitation_expiry_days: int = 7

    # Notifications
    email_notifications_enabled: bool = False

    # Outgoing mail (log-only when host or credentials are missing)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "noreply@lawdir.local"
    smtp_use_tls: bool = True
    app_url: str = "http://localhost:3000"

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"

    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def smtp_ready(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
