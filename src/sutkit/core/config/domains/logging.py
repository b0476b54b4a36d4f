"""Domain-specific configuration for sutkit logging.

This config controls the level, format and optional file destination of the
handler installed by ``sutkit.core.stdlib_logging.configure_logging``.
"""

from __future__ import annotations

from functools import cached_property
from pathlib import Path

from ..base import BaseDomainConfig

DEFAULT_LEVEL = "WARNING"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> str:
        return str(self.section.get("level") or DEFAULT_LEVEL).upper()

    @cached_property
    def format(self) -> str:
        return str(self.section.get("format") or DEFAULT_FORMAT)

    @cached_property
    def file(self) -> Path | None:
        raw = self.section.get("file")
        if not raw or not str(raw).strip():
            return None
        path = Path(str(raw).strip()).expanduser()
        return path if path.is_absolute() else self.repo_root / path


__all__ = ["LoggingConfig", "DEFAULT_LEVEL", "DEFAULT_FORMAT"]
