"""Application settings and configuration."""

import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret", "change-me-refresh"}


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "sincut"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console | json
    allowed_origins: str = "http://localhost:3000,https://sincut.vercel.app"

    # JWT
    jwt_access_secret: str = "change-me-in-production"
    jwt_refresh_secret: str = "change-me-refresh"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    # Refresh token cookie
    refresh_cookie_name: str = "jid"

    # Database
    database_url: str = "sqlite:///./sincut.db"

    @property
    def is_production(self) -> bool:
        return self.env == "production"


# Global settings instance
settings = Settings()

# ── Security validation ──────────────────────────────────────────────
if settings.is_production:
    for _secret in (settings.jwt_access_secret, settings.jwt_refresh_secret):
        if _secret in _INSECURE_JWT_DEFAULTS or len(_secret) < 32:
            print(
                "\nFATAL: JWT_ACCESS_SECRET / JWT_REFRESH_SECRET is insecure or too short (min 32 chars).\n"
                "   Set a strong random value:  openssl rand -hex 32\n",
                file=sys.stderr,
            )
            sys.exit(1)
