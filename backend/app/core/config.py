"""
Centralized configuration management.

Chart shaping limits, request limits and server/logging options are read
from the environment once and validated here.
"""
import os
import logging
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Application settings with validation."""

    # Chart shaping
    bar_limit: int = Field(default=10, ge=1, le=100, description="Top-N groups kept for bar charts")
    pie_limit: int = Field(default=8, ge=1, le=50, description="Top-N slices kept for pie charts")
    table_row_limit: int = Field(default=50, ge=20, le=50, description="Rows passed through for tables")
    round_digits: int = Field(default=2, ge=0, le=10, description="Decimal places for prepared metrics")

    # Request limits
    max_dataset_rows: int = Field(default=50000, ge=1, le=1000000, description="Maximum rows accepted per request")
    rate_limit_per_minute: int = Field(default=30, ge=1, le=1000, description="Rate limit per minute per IP")
    request_timeout_seconds: int = Field(default=60, ge=1, le=3600, description="Request timeout in seconds")

    # Server
    host: str = Field(default="0.0.0.0", description="Interface uvicorn binds to")
    port: int = Field(default=8000, ge=1, le=65535, description="Port uvicorn listens on")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:3001",
        description="Comma-separated list of allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", pattern="^(text|json)$", description="Log output: text or json")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v.upper()

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            bar_limit=int(os.getenv("BAR_LIMIT", "10")),
            pie_limit=int(os.getenv("PIE_LIMIT", "8")),
            table_row_limit=int(os.getenv("TABLE_ROW_LIMIT", "50")),
            round_digits=int(os.getenv("ROUND_DIGITS", "2")),
            max_dataset_rows=int(os.getenv("MAX_DATASET_ROWS", "50000")),
            rate_limit_per_minute=int(os.getenv("RATE_LIMIT_PER_MINUTE", "30")),
            request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT_SECONDS", "60")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:3001"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text").lower(),
        )


# Settings are immutable once loaded; nothing dataset-related is stored here
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info("Configuration loaded and validated successfully")
    return _settings


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()
