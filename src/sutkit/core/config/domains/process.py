"""Domain-specific configuration for process discovery and termination."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig

DEFAULT_SIGNAL = "SIGTERM"
DEFAULT_TOOL_TIMEOUT_SECONDS = 30.0


class ProcessConfig(BaseDomainConfig):
    """Typed, cached access to the ``process`` section."""

    def _config_section(self) -> str:
        return "process"

    @cached_property
    def default_signal(self) -> str | int:
        """Signal used by kill_by_ports / kill_by_pattern when none is given."""
        return self.section.get("default_signal") or DEFAULT_SIGNAL

    @cached_property
    def tool_timeout_seconds(self) -> float:
        """Upper bound for one external tool invocation."""
        return self._as_float("tool_timeout_seconds", DEFAULT_TOOL_TIMEOUT_SECONDS)


__all__ = [
    "ProcessConfig",
    "DEFAULT_SIGNAL",
    "DEFAULT_TOOL_TIMEOUT_SECONDS",
]
