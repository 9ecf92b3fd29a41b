"""
Configuration management for Device VIP Mapper.

Uses Pydantic Settings for environment variable validation and type safety.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class CloudflareConfig(BaseSettings):
    """Cloudflare API credentials and account."""

    account_id: str = Field(
        ...,
        description="Cloudflare account identifier"
    )
    user_email: str = Field(
        ...,
        description="Email of the account user (X-Auth-Email)"
    )
    api_key: str = Field(
        ...,
        description="Global API key of the account user (X-Auth-Key)"
    )
    api_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Cloudflare API base URL"
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="API request timeout in seconds"
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended."""
        return v.rstrip("/")

    class Config:
        env_prefix = "CLOUDFLARE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


class StorageConfig(BaseSettings):
    """Result persistence configuration."""

    store_results: bool = Field(
        default=False,
        description="Persist results of on-demand runs (scheduled runs always persist)"
    )
    object_name: Optional[str] = Field(
        default=None,
        description="Fixed object name for stored results (default: timestamped name)"
    )
    object_prefix: str = Field(
        default="warp_vips",
        description="Prefix of timestamped object names"
    )
    backend: str = Field(
        default="local",
        description="Storage backend (local, azure)"
    )
    local_dir: str = Field(
        default="/data/results",
        description="Directory used by the local backend"
    )
    azure_connection_string: Optional[str] = Field(
        default=None,
        description="Azure Storage connection string"
    )
    azure_container: str = Field(
        default="snapshots",
        description="Azure Blob container for stored results"
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend name."""
        valid_backends = ["local", "azure"]
        v = v.lower()
        if v not in valid_backends:
            raise ValueError(f"Storage backend must be one of: {valid_backends}")
        return v

    class Config:
        env_prefix = "STORAGE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


class ScheduleConfig(BaseSettings):
    """Scheduled run configuration."""

    interval_seconds: int = Field(
        default=3600,
        ge=1,
        description="Seconds between scheduled runs"
    )

    class Config:
        env_prefix = "SCHEDULE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


class AppConfig(BaseSettings):
    """Main application configuration."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="Bind address of the HTTP endpoint"
    )
    api_port: int = Field(
        default=8000,
        description="Port of the HTTP endpoint"
    )

    # Nested configurations
    cloudflare: CloudflareConfig = Field(default_factory=CloudflareConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global configuration instance.

    Lazily loads configuration on first access. Components receive the
    returned object explicitly; only entry points call this.

    Returns:
        AppConfig: The global configuration instance
    """
    global _config
    if _config is None:
        _config = AppConfig(
            cloudflare=CloudflareConfig(),
            storage=StorageConfig(),
            schedule=ScheduleConfig(),
        )
    return _config


def reload_config() -> AppConfig:
    """
    Reload configuration from environment variables.

    Useful for testing or when environment changes.

    Returns:
        AppConfig: The reloaded configuration instance
    """
    global _config
    _config = None
    return get_config()
