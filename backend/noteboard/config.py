"""
NoteBoard Backend - Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults that point at a platform running locally.
    Deployments override the PLATFORM_* URLs and CORS_ORIGINS.
    """

    # ── Managed Platform ──────────────────────────────────────────────────
    # What: Base URLs of the platform's data, storage and auth APIs
    # Format: http(s)://host[:port][/prefix], no trailing slash needed
    platform_data_url: str = Field(
        default="http://localhost:4000/data",
        description="Object-model (notes) API base URL",
    )
    platform_storage_url: str = Field(
        default="http://localhost:4000/storage",
        description="Blob storage API base URL",
    )
    platform_auth_url: str = Field(
        default="http://localhost:4000/auth",
        description="Authentication API base URL",
    )

    # What: Per-request timeout in seconds for platform calls
    # Default: httpx's own default timeout
    platform_timeout: float = Field(default=5.0, gt=0, le=300)

    # ── Blob Storage ──────────────────────────────────────────────────────
    # What: First segment of every uploaded image path: <prefix>/<identity>/<key>
    media_prefix: str = Field(default="media")

    # What: Lifetime of signed image URLs in seconds
    # Range: 1 second to 7 days (the usual upper bound for presigned URLs)
    signed_url_expires_in: int = Field(default=900, ge=1, le=604_800)

    # ── Sessions ──────────────────────────────────────────────────────────
    # What: Seconds a session's board may stay unused before it is evicted
    # Range: 1 minute to 7 days
    session_idle_ttl: int = Field(default=3600, ge=60, le=604_800)

    # ── Local Previews ────────────────────────────────────────────────────
    # What: Root directory for image previews, relative to backend CWD
    storage_root: str = Field(default="./storage")

    # What: Maximum allowed image size in bytes
    # Default: 10MB = 10 * 1024 * 1024 = 10485760
    # Valid range: 1MB to 50MB
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs (parsed by the property below)
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("media_prefix")
    @classmethod
    def validate_media_prefix(cls, v: str) -> str:
        """Strips surrounding slashes; the prefix must not be empty."""
        stripped = v.strip("/")
        if not stripped:
            raise ValueError("media_prefix must not be empty")
        return stripped

    # ── Retry Configuration ───────────────────────────────────────────────
    # What: Tenacity settings for platform transport errors
    # Default of 1 attempt means platform calls are never retried
    retry_max_attempts: int = Field(default=1, ge=1, le=10)
    retry_min_wait: int = Field(default=1, ge=1, le=30)
    retry_max_wait: int = Field(default=10, ge=5, le=120)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that the platform endpoints are usable URLs.
        When:  Called during app startup (lifespan).
        How:   Checks each URL's scheme and raises ValueError listing every problem.
        """
        errors = []
        for name in ("platform_data_url", "platform_storage_url", "platform_auth_url"):
            value = getattr(self, name)
            if not value.startswith(("http://", "https://")):
                errors.append(f"{name.upper()} must be an http(s) URL, got '{value}'")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
