"""Configuration management for the question extraction service.

This module uses Pydantic Settings to load configuration from environment
variables. All settings are validated at startup to catch configuration
errors early.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Credentials for the Supabase storage backend must be provided via
    environment variables or .env file.
    """

    # Remote catalog / test-authoring service
    catalog_api_url: Optional[str] = Field(
        default=None,
        description="Base URL of the catalog and test-authoring API"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for calls to the catalog API"
    )

    # Storage for the last extracted question set
    storage_backend: Literal["memory", "file", "supabase"] = Field(
        default="file",
        description="Where the last extracted questions are persisted"
    )
    storage_path: str = Field(
        default=".addin_storage.json",
        description="JSON file used by the 'file' storage backend"
    )
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (storage_backend=supabase)"
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase anonymous/service role key (storage_backend=supabase)"
    )
    supabase_table: str = Field(
        default="addin_storage",
        description="Key/value table used by the Supabase storage backend"
    )

    # HTML enrichment
    enable_image_enrichment: bool = Field(
        default=True,
        description="Inline remote images referenced from extracted HTML"
    )
    image_fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for each remote image fetch"
    )
    max_inline_image_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Images larger than this are left as remote references"
    )

    # Uploads
    max_upload_size_mb: int = Field(
        default=25,
        ge=1,
        le=200,
        description="Maximum accepted .docx upload size in MB"
    )

    log_level: str = Field(default="INFO", description="Root log level")

    # Model configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("catalog_api_url")
    @classmethod
    def validate_catalog_api_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the catalog URL, when set, is HTTPS."""
        if v is None or not v.strip():
            return None

        url = v.strip().rstrip("/")
        if not url.startswith("https://"):
            raise ValueError(
                "CATALOG_API_URL must start with https:// "
                f"(got: {url[:20]}...)"
            )
        return url

    @field_validator("supabase_url", "supabase_key")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard logging level (got: {v})")
        return level

    @model_validator(mode="after")
    def validate_storage_backend(self) -> "Settings":
        """Supabase storage needs both credentials and an HTTPS URL."""
        if self.storage_backend != "supabase":
            return self

        if not self.supabase_url:
            raise ValueError("SUPABASE_URL must be set when STORAGE_BACKEND=supabase")
        if not self.supabase_url.startswith("https://"):
            raise ValueError(
                "SUPABASE_URL must start with https:// "
                f"(got: {self.supabase_url[:20]}...)"
            )
        if not self.supabase_key:
            raise ValueError("SUPABASE_KEY must be set when STORAGE_BACKEND=supabase")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance.

    Returns:
        Settings: Validated application settings

    Raises:
        ValueError: If environment variables are invalid
    """
    return Settings()
