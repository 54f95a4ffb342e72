"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Parse token lifetimes ("15m", "1d", "3600") into seconds

Collaborators:
  - api/main.py: reads settings for CORS, lifespan and middleware limits
  - container.py: reads settings to build stores, cache, breakers and tokens
  - identity/tokens.py: secret + lifetimes

Constraints:
  - Lives in API/infrastructure layer, NOT in domain/application
  - No business logic — pure configuration

Notes:
  - Uses pydantic-settings for env parsing and validation
  - Singleton via lru_cache for performance
  - DATABASE_URL empty means in-memory stores (dev / tests)
"""

import re
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str | int) -> int:
    """
    Convert "30s" / "15m" / "12h" / "7d" / "3600" into seconds.

    Raises:
        ValueError: unknown format or non-positive duration
    """
    if isinstance(value, int):
        seconds = value
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ValueError(f"invalid duration: {value!r}")
        seconds = int(match.group(1)) * _DURATION_UNITS[match.group(2).lower()]
    if seconds <= 0:
        raise ValueError("duration must be greater than 0")
    return seconds


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/test/production)
        app_version: Version reported by /api and /api/health
        host / port: Bind address for uvicorn
        database_url: PostgreSQL connection string (empty = in-memory stores)
        jwt_secret: Shared HS256 secret for access and refresh tokens
        jwt_expires_in: Access token lifetime ("1d")
        jwt_refresh_expires_in: Refresh token lifetime ("7d")
        api_key: Legacy static key accepted in X-API-Key (empty = disabled)
        redis_url: Redis connection string for the cache facade (optional)
        cache_default_ttl: Default cache TTL in seconds
        allowed_origins: Comma-separated CORS origins
        cors_allowed_methods: Comma-separated CORS methods
        rate_limit_window_seconds: Fixed window length (default: 15 min)
        rate_limit_max_requests: Requests allowed per window (default: 100)
        max_body_bytes: Max request body size (default: 1MB)
        breaker_failure_threshold: Consecutive failures before OPEN
        breaker_reset_timeout_seconds: Seconds in OPEN before a trial call
        dev_seed: Seed statuses, roles and the admin user at startup
    """

    # Environment
    app_env: str = "development"
    app_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Database
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Security - JWT Auth
    jwt_secret: str = "dev-secret"
    jwt_expires_in: str = "1d"
    jwt_refresh_expires_in: str = "7d"

    # Security - legacy static key
    api_key: str = ""

    # Cache
    redis_url: str = ""
    cache_default_ttl: int = 3600

    # CORS configuration
    allowed_origins: str = "*"
    cors_allowed_methods: str = "GET,POST,PUT,DELETE,OPTIONS"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Security - Rate Limiting (fixed window)
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100

    # Security - Hardening
    max_body_bytes: int = 1024 * 1024  # 1MB

    # Resilience
    breaker_failure_threshold: int = 5
    breaker_reset_timeout_seconds: float = 30.0

    # Dev Tools
    dev_seed: bool = False

    @field_validator("jwt_expires_in", "jwt_refresh_expires_in")
    @classmethod
    def lifetime_must_parse(cls, v: str) -> str:
        parse_duration(v)
        return v

    @field_validator(
        "rate_limit_window_seconds",
        "rate_limit_max_requests",
        "breaker_failure_threshold",
        "max_body_bytes",
    )
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("cache_default_ttl")
    @classmethod
    def ttl_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache_default_ttl must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "secret"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if self.api_key.strip() == "default_api_key":
            raise ValueError("API_KEY must not use the default value in production")
        return self

    @property
    def access_token_ttl_seconds(self) -> int:
        return parse_duration(self.jwt_expires_in)

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return parse_duration(self.jwt_refresh_expires_in)

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def uses_database(self) -> bool:
        return bool(self.database_url.strip())

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    def get_allowed_methods_list(self) -> list[str]:
        return [
            method.strip().upper()
            for method in self.cors_allowed_methods.split(",")
            if method.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
