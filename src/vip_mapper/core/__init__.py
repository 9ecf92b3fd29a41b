"""
Core module for Device VIP Mapper.

Contains configuration shared by the HTTP endpoint, the scheduler and the CLI.
"""

from vip_mapper.core.config import (
    AppConfig,
    CloudflareConfig,
    ScheduleConfig,
    StorageConfig,
    get_config,
    reload_config,
)

__all__ = [
    "AppConfig",
    "CloudflareConfig",
    "ScheduleConfig",
    "StorageConfig",
    "get_config",
    "reload_config",
]
