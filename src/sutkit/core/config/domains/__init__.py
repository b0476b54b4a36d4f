"""Domain-specific configuration accessors."""
from __future__ import annotations

from .logging import LoggingConfig
from .process import ProcessConfig
from .server import ServerConfig

__all__ = [
    "LoggingConfig",
    "ProcessConfig",
    "ServerConfig",
]
