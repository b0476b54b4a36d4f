"""sutkit configuration system.

Usage:
    from sutkit.core.config import ConfigManager
    from sutkit.core.config.domains import ServerConfig

    manager = ConfigManager(repo_root=Path("/path/to/project"))
    config = manager.load_config()

    # Domain-specific accessors (recommended)
    timeout = ServerConfig().startup_timeout_seconds
"""
from __future__ import annotations

from .manager import ConfigManager
from .cache import get_cached_config, clear_all_caches, is_cached
from .base import BaseDomainConfig

from .domains import (
    LoggingConfig,
    ProcessConfig,
    ServerConfig,
)

__all__ = [
    "ConfigManager",
    "BaseDomainConfig",
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
    "LoggingConfig",
    "ProcessConfig",
    "ServerConfig",
]
