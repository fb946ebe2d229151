"""Configuration using pydantic-settings.

Settings are read from DROPBOX_* environment variables (or a .env file) and
turned into builder options with Settings.to_options().
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from extradrop.cache import DEFAULT_REFRESH_MARGIN, TOKEN_URL
from extradrop.transport import DEFAULT_TIMEOUT

# Settings fields that map one-to-one onto DropboxBuilder.from_map() keys
OPTION_KEYS = ("root", "access_token", "refresh_token", "client_id", "client_secret")


class Settings(BaseSettings):
    """Backend settings loaded from environment variables.

    Credential variables (set one mode):
    - DROPBOX_ACCESS_TOKEN: temporary access token
    - DROPBOX_REFRESH_TOKEN, DROPBOX_CLIENT_ID, DROPBOX_CLIENT_SECRET:
      long-term refresh token triple
    """

    model_config = SettingsConfigDict(
        env_prefix="DROPBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    root: str | None = None

    access_token: str | None = None
    refresh_token: str | None = None
    client_id: str | None = None
    client_secret: str | None = None

    token_url: str = TOKEN_URL
    refresh_margin_seconds: int = int(DEFAULT_REFRESH_MARGIN.total_seconds())
    http_timeout: float = DEFAULT_TIMEOUT

    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def to_options(self) -> dict[str, str]:
        """Return builder options, leaving out unset and empty values."""
        options: dict[str, str] = {}
        for key in OPTION_KEYS:
            value = getattr(self, key)
            if value:
                options[key] = value
        return options

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of: {allowed}")
        return v

    @field_validator("refresh_margin_seconds")
    @classmethod
    def validate_refresh_margin(cls, v: int) -> int:
        if v < 0:
            raise ValueError("refresh_margin_seconds must not be negative")
        return v

    @field_validator("http_timeout")
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
