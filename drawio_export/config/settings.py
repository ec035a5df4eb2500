"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional, List, Union, Mapping
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import os
from pathlib import Path

CACHE_DIR_NAME = "drawio-export"

# Fallback cache location when neither XDG_CACHE_HOME nor HOME is available
PACKAGE_CACHE_DIR = Path(__file__).resolve().parent.parent / ".cache"


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Draw.io Export API", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed origins for CORS")

    # Security Configuration
    api_keys: List[str] = Field(default=["11223344zzz"], description="Valid API keys")
    skip_api_key_validation: bool = Field(
        default=False, description="Skip API key validation in debug mode"
    )

    # Rendering Configuration
    engine_url: str = Field(
        default="https://app.diagrams.net/export3.html",
        description="Page exposing the diagram engine render() entry point",
    )
    chromium_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DRAWIO_EXPORT_CHROMIUM_PATH", "CHROMIUM_PATH"),
        description="Chromium executable, defaults to the Playwright bundled browser",
    )
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(default=30000, description="Playwright timeout in milliseconds")

    # Cache Configuration
    cache_dir: Optional[Path] = Field(
        default=None, description="Engine asset cache directory override"
    )
    cache_fetch_timeout: int = Field(default=60, description="Asset fetch timeout in seconds")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("allowed_hosts", "api_keys", mode="before")
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse a list from a JSON array or a comma-separated string."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="DRAWIO_EXPORT_",
        populate_by_name=True,
        extra="ignore",
    )


def resolve_cache_dir(
    settings: Optional[Settings] = None, environ: Optional[Mapping[str, str]] = None
) -> Path:
    """
    Resolve the engine asset cache directory.

    Priority: explicit ``cache_dir`` setting, ``$XDG_CACHE_HOME/drawio-export``,
    ``$HOME/.cache/drawio-export``, then a ``.cache`` directory inside the
    installed package.

    Args:
        settings: Settings carrying an optional explicit override
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        Cache directory path (not created)
    """
    if environ is None:
        environ = os.environ

    if settings is not None and settings.cache_dir is not None:
        return Path(settings.cache_dir)
    if environ.get("XDG_CACHE_HOME"):
        return Path(environ["XDG_CACHE_HOME"]) / CACHE_DIR_NAME
    if environ.get("HOME"):
        return Path(environ["HOME"]) / ".cache" / CACHE_DIR_NAME
    return PACKAGE_CACHE_DIR


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
