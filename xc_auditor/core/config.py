"""
Application configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists (python-dotenv)
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App settings
    APP_NAME: str = "XC Security Auditor"
    APP_ENV: str = Field(default="local")
    DEBUG: bool = Field(default=False)

    # Config store (F5 Distributed Cloud tenant API)
    XC_TENANT: Optional[str] = Field(
        default=None,
        description="Tenant short name, used to build https://<tenant>.console.ves.volterra.io",
    )
    XC_API_TOKEN: Optional[str] = Field(
        default=None,
        description="API token sent as 'Authorization: APIToken <token>'",
    )
    XC_API_URL: Optional[str] = Field(
        default=None,
        description="Explicit API base URL (overrides the tenant-derived console URL)",
    )
    XC_SHARED_NAMESPACE: str = Field(
        default="shared",
        description="Namespace holding tenant-wide objects such as global log receivers",
    )
    XC_REQUEST_TIMEOUT: float = Field(
        default=30.0,
        description="Per-request timeout in seconds for config store calls",
    )

    # Snapshot fan-out
    FETCH_MAX_WORKERS: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Worker threads used to fetch configuration objects in parallel",
    )

    # CORS settings
    CORS_ORIGINS: Union[str, List[str]] = Field(
        default='["http://localhost:3000", "http://localhost:8000"]',
    )

    @field_validator("CORS_ORIGINS")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from string or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not JSON, treat as comma-separated
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_DIR: str = Field(default="logs", description="Directory for the rotating log file")

    @property
    def xc_api_base_url(self) -> Optional[str]:
        """
        Resolve the config store base URL with priority:
        1. XC_API_URL (explicit override, e.g. a staging console)
        2. Console URL derived from XC_TENANT
        """
        if self.XC_API_URL:
            return self.XC_API_URL.rstrip("/")
        if self.XC_TENANT:
            return f"https://{self.XC_TENANT}.console.ves.volterra.io"
        return None

    def is_xc_configured(self) -> bool:
        """Check if tenant credentials are configured and not empty."""
        return (
            self.xc_api_base_url is not None
            and isinstance(self.XC_API_TOKEN, str)
            and self.XC_API_TOKEN.strip() != ""
        )


# Create global settings instance
@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

# Module-level instance for import-time consumers
settings = get_settings()
