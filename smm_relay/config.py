"""
Relay configuration using Pydantic Settings.

Provides centralized configuration for:
- Server binding (host, port)
- SMM panel (Medanpedia) endpoint and credentials
- Telegram bot token and target chat
- Inbound gate (CORS origin, rate limiting, request size)
- Logging

Environment variable names match the plain names used by existing
deployments (PORT, MEDANPEDIA_API_ID, BOT_TOKEN, ...). Values are also read
from a .env file in the current directory.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpstreamCredentials(BaseModel):
    """Credentials injected into every catalog request."""

    api_id: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    def as_payload(self) -> dict:
        return {"api_id": self.api_id, "api_key": self.api_key}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Settings are immutable once constructed; components receive the values
    they need at startup instead of reading the environment themselves.
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="Medanpedia Proxy Server",
        description="Application name, also used in the root banner"
    )
    app_version: str = Field(
        default="1.0.0",
        description="API version"
    )

    host: str = Field(
        default="0.0.0.0",
        description="Bind host"
    )
    port: int = Field(
        default=3000,
        description="Bind port",
        gt=0,
        lt=65536
    )

    # =========================================================================
    # SMM Panel (Medanpedia) Settings
    # =========================================================================

    medanpedia_api_id: Optional[str] = Field(
        default=None,
        description="Medanpedia API id"
    )
    medanpedia_api_key: Optional[str] = Field(
        default=None,
        description="Medanpedia API key"
    )
    medanpedia_endpoint: str = Field(
        default="https://api.medanpedia.co.id/services",
        description="Medanpedia services endpoint"
    )

    # =========================================================================
    # Telegram Settings
    # =========================================================================

    bot_token: Optional[str] = Field(
        default=None,
        description="Telegram bot token"
    )
    chat_id: Optional[str] = Field(
        default=None,
        description="Telegram chat that receives order notifications"
    )
    telegram_api_base: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )

    upstream_timeout: float = Field(
        default=10.0,
        description="Timeout for every upstream call (seconds)",
        gt=0
    )

    # =========================================================================
    # Inbound Gate Settings
    # =========================================================================

    allowed_origin: str = Field(
        default="*",
        description="Allowed cross-origin value: '*' or a single origin"
    )

    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable rate limiting"
    )
    rate_limit_requests: int = Field(
        default=60,
        description="Max requests per window per client IP",
        gt=0,
        le=10000
    )
    rate_limit_window: int = Field(
        default=60,
        description="Rate limit window (seconds)",
        gt=0,
        le=3600
    )
    rate_limit_storage_url: str = Field(
        default="memory://",
        description="Storage URI for rate limit counters (memory:// or redis://)"
    )

    max_request_size: int = Field(
        default=100 * 1024,  # 100 KB
        description="Maximum request body size in bytes",
        gt=0
    )
    security_headers_enabled: bool = Field(
        default=True,
        description="Enable security headers (X-Frame-Options, etc.)"
    )

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG|INFO|WARNING|ERROR|CRITICAL"
    )
    log_format: str = Field(
        default="json",
        description="Log format: json|text"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("allowed_origin")
    @classmethod
    def validate_allowed_origin(cls, v: str) -> str:
        """Fall back to '*' when the origin is blank."""
        v = v.strip()
        return v or "*"

    @field_validator("medanpedia_api_id", "medanpedia_api_key", "bot_token", "chat_id")
    @classmethod
    def blank_as_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def catalog_credentials(self) -> Optional[UpstreamCredentials]:
        """Medanpedia credentials, or None when either half is missing."""
        if not self.medanpedia_api_id or not self.medanpedia_api_key:
            return None
        return UpstreamCredentials(
            api_id=self.medanpedia_api_id,
            api_key=self.medanpedia_api_key,
        )

    @property
    def telegram_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    @property
    def cors_origins(self) -> List[str]:
        return ["*"] if self.allowed_origin == "*" else [self.allowed_origin]

    @property
    def rate_limit(self) -> str:
        """Rate limit in slowapi notation, e.g. '60 per 60 second'."""
        return f"{self.rate_limit_requests} per {self.rate_limit_window} second"

    @property
    def secrets(self) -> List[str]:
        """Configured secret values that must never appear in responses."""
        values = [self.medanpedia_api_id, self.medanpedia_api_key, self.bot_token]
        return [v for v in values if v]

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
        frozen=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process from:
    1. Environment variables
    2. .env file in the current directory
    3. Default values

    Returns:
        Settings: Cached settings instance
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
