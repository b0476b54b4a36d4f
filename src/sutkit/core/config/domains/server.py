"""Domain-specific configuration for the server lifecycle controller."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig

DEFAULT_STARTUP_TIMEOUT_SECONDS = 5.0
DEFAULT_EXIT_DRAIN_SECONDS = 0.25
DEFAULT_STOP_SIGNAL = "SIGTERM"
DEFAULT_STOP_GRACE_SECONDS = 2.0


class ServerConfig(BaseDomainConfig):
    """Typed, cached access to the ``server`` section.

    Values:
    - startup_timeout_seconds: wait for startup messages (or an exit)
    - exit_drain_seconds: grace period to collect output after an exit
    - stop_signal: default signal of ``stop_server``
    - stop_grace_seconds: wait for a signalled server to exit before SIGKILL
    - timeout_kill_signal: signal sent to a server that never became ready
    """

    def _config_section(self) -> str:
        return "server"

    @cached_property
    def startup_timeout_seconds(self) -> float:
        return self._as_float("startup_timeout_seconds", DEFAULT_STARTUP_TIMEOUT_SECONDS)

    @cached_property
    def exit_drain_seconds(self) -> float:
        return max(0.0, self._as_float("exit_drain_seconds", DEFAULT_EXIT_DRAIN_SECONDS))

    @cached_property
    def stop_signal(self) -> str | int:
        return self.section.get("stop_signal") or DEFAULT_STOP_SIGNAL

    @cached_property
    def stop_grace_seconds(self) -> float:
        return max(0.0, self._as_float("stop_grace_seconds", DEFAULT_STOP_GRACE_SECONDS))

    @cached_property
    def timeout_kill_signal(self) -> str | int:
        return self.section.get("timeout_kill_signal") or DEFAULT_STOP_SIGNAL


__all__ = [
    "ServerConfig",
    "DEFAULT_STARTUP_TIMEOUT_SECONDS",
    "DEFAULT_EXIT_DRAIN_SECONDS",
    "DEFAULT_STOP_SIGNAL",
    "DEFAULT_STOP_GRACE_SECONDS",
]
