"""Central configuration for the candidate screening gateway.

This module uses Pydantic Settings for validation and env management.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class GoogleSettings(BaseSettings):
    """Service account and Google API configuration."""
    model_config = SettingsConfigDict(env_prefix="GOOGLE_", env_file=".env", extra="ignore")

    service_account_key_base64: str | None = Field(
        default=None,
        description="Base64-encoded service account JSON key",
    )
    scope: str = Field(default="https://www.googleapis.com/auth/spreadsheets.readonly")
    sheets_api_base: str = Field(default="https://sheets.googleapis.com/v4/spreadsheets")
    request_timeout: float = Field(default=20.0, gt=0, le=120)
    token_cache_enabled: bool = Field(default=True)
    token_refresh_margin: float = Field(
        default=60.0,
        ge=0,
        le=3000,
        description="Seconds before expiry at which a cached token is refreshed",
    )


class SheetSettings(BaseSettings):
    """Spreadsheet identifiers and ranges (deployment constants)."""
    model_config = SettingsConfigDict(env_prefix="SHEET_", env_file=".env", extra="ignore")

    dashboard_spreadsheet_id: str = Field(default="1nK6qns3GmM8ESHq-57FIbbCi8B59btU0j_iT0cGRFjs")
    dashboard_range: str = Field(default="DashboardData")
    login_spreadsheet_id: str = Field(default="1Mmtpb52khJDiWMOBZe556R_1EGq8x0LYXFP12BBcZYk")
    login_range: str = Field(default="Sheet1")


class DashboardSettings(BaseSettings):
    """Candidate query defaults."""
    model_config = SettingsConfigDict(env_prefix="DASHBOARD_", extra="ignore")

    page_size: int = Field(default=10, ge=1, le=500)
    keyword_debounce_seconds: float = Field(default=0.3, ge=0.0, le=5.0)
    default_max_experience: float = Field(default=30.0, ge=0)
    default_max_score: float = Field(default=100.0, ge=0)


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file: str | None = Field(default=None)

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        v = v.lower()
        if v not in {"json", "text"}:
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)
    app_name: str = Field(default="Candidate Screening Gateway")
    version: str = Field(default="0.1.0")
    session_file: Path = Field(default=Path.home() / ".screening" / "session.json")

    # Sub-configs
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    sheets: SheetSettings = Field(default_factory=SheetSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
