"""System-under-test lifecycle: start, wait for readiness, stop."""
from __future__ import annotations

from .lifecycle import running_server, start_server, stop_server
from .models import (
    ExitedCleanly,
    ServerProcess,
    StartedRunning,
    StartOutcome,
    StartServerOptions,
    normalize_startup_messages,
)
from .templates import render_config_file

__all__ = [
    "running_server",
    "start_server",
    "stop_server",
    "ExitedCleanly",
    "ServerProcess",
    "StartedRunning",
    "StartOutcome",
    "StartServerOptions",
    "normalize_startup_messages",
    "render_config_file",
]
