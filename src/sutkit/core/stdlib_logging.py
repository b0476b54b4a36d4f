from __future__ import annotations

import logging
import sys
from pathlib import Path

_SUTKIT_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(
    *,
    level: str | None = None,
    log_path: Path | None = None,
    fmt: str | None = None,
    repo_root: Path | None = None,
) -> logging.Handler:
    """Install the sutkit handler on the ``sutkit`` logger.

    Unset arguments come from the ``logging`` config section. Idempotent: a
    previously installed sutkit handler is replaced, other handlers are left
    alone.
    """
    global _SUTKIT_HANDLER

    from sutkit.core.config.domains import LoggingConfig

    cfg = LoggingConfig(repo_root=repo_root)
    level = level or cfg.level
    log_path = log_path or cfg.file
    fmt = fmt or cfg.format

    logger = logging.getLogger("sutkit")
    logger.setLevel(_level_from_name(level))

    if _SUTKIT_HANDLER is not None:
        logger.removeHandler(_SUTKIT_HANDLER)
        _SUTKIT_HANDLER.close()
        _SUTKIT_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(str(log_path), encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)

    _SUTKIT_HANDLER = handler
    return handler


def reset_logging_for_tests() -> None:
    """Test-only: remove the installed sutkit handler."""
    global _SUTKIT_HANDLER
    logger = logging.getLogger("sutkit")
    if _SUTKIT_HANDLER is not None:
        logger.removeHandler(_SUTKIT_HANDLER)
        _SUTKIT_HANDLER.close()
    _SUTKIT_HANDLER = None
    logger.setLevel(logging.NOTSET)


__all__ = ["configure_logging", "reset_logging_for_tests"]
