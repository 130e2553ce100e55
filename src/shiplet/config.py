"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation.
An optional config.yaml supplies defaults that environment variables override.
"""

import json
import os
from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            "../../config.yaml",  # Project root from src/shiplet
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


class SecuritySettings(BaseSettings):
    """API key and cross-origin configuration."""

    api_key: str = Field(default="", description="Shared secret expected in the API-Key header")
    allowed_origins: Annotated[List[str], NoDecode] = Field(
        default=["https://shiplet.com", "https://www.shiplet.com"],
        description="CORS allow-list applied in production",
    )

    @field_validator("allowed_origins", mode="before")
    def parse_allowed_origins(cls, v: Any) -> List[str]:
        """Accept a JSON list or a comma separated string."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",") if origin.strip()]
            if isinstance(parsed, list):
                return [str(origin) for origin in parsed]
            return [str(parsed)]
        return v

    class Config:
        env_prefix = ""
        env_file = ".env"
        extra = "ignore"


class StoreSettings(BaseSettings):
    """MongoDB connection configuration."""

    uri: str = Field(default="", description="MongoDB connection string")
    db_name: str = Field(default="shiplet", description="Database used when the URI names none")
    retry_delay_seconds: float = Field(default=5.0, description="Delay between connection attempts")
    heartbeat_seconds: float = Field(default=30.0, description="Interval of the live connection check")
    server_selection_timeout_ms: int = Field(default=5000, description="Driver server selection timeout")

    class Config:
        env_prefix = "MONGODB_"
        env_file = ".env"
        extra = "ignore"


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("NODE_ENV", "APP_ENV", "environment"),
        description="Deployment mode; 'production' enables strict CORS and hides error detail",
    )
    log_level: str = Field(default="INFO", description="Log level")
    max_body_bytes: int = Field(default=102400, description="Maximum request body size (100KB)")

    # Component settings
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    class Config:
        env_prefix = ""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""

    # Load config file data
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "HOST",
        ("server", "port"): "PORT",
        ("server", "environment"): "NODE_ENV",
        ("server", "log_level"): "LOG_LEVEL",
        ("server", "max_body_bytes"): "MAX_BODY_BYTES",
        ("security", "api_key"): "API_KEY",
        ("store", "uri"): "MONGODB_URI",
        ("store", "db_name"): "MONGODB_DB_NAME",
        ("store", "retry_delay_seconds"): "MONGODB_RETRY_DELAY_SECONDS",
        ("store", "heartbeat_seconds"): "MONGODB_HEARTBEAT_SECONDS",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = str(value)

    # Lists are passed through as JSON
    if "ALLOWED_ORIGINS" not in os.environ:
        origins = (config_data.get("security") or {}).get("allowed_origins")
        if origins:
            os.environ["ALLOWED_ORIGINS"] = json.dumps(origins)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
