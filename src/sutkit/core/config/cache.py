"""Centralized configuration caching.

Provides a single source of truth for loaded configuration across all domain
configs. Cache keys include the SUTKIT_* environment and the mtimes of project
config files so edits are picked up without an explicit reset.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional

from sutkit.core.utils.io import iter_yaml_files
from sutkit.core.utils.paths import get_project_config_dir, resolve_project_root

_config_cache: Dict[str, Dict[str, Any]] = {}


def _normalize_repo_root(repo_root: Optional[Path]) -> Path:
    if repo_root is None:
        return resolve_project_root()
    return Path(repo_root).expanduser().resolve()


def _cache_key(repo_root: Optional[Path]) -> str:
    base = str(_normalize_repo_root(repo_root))

    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith("SUTKIT_")
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]

    files: list[tuple[str, int, int]] = []
    for p in iter_yaml_files(get_project_config_dir(Path(base)) / "config"):
        try:
            st = p.stat()
            files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
        except OSError:
            files.append((p.name, 0, 0))
    cfg_fp = hashlib.sha256(repr(files).encode("utf-8")).hexdigest()[:12]

    return f"{base}:env={env_fp}:cfg={cfg_fp}"


def get_cached_config(repo_root: Optional[Path] = None, validate: bool = False) -> Dict[str, Any]:
    """Get configuration with caching.

    Returns the same config dict instance for the same repo_root (treat it as
    immutable).
    """
    normalized_root = _normalize_repo_root(repo_root)
    key = _cache_key(normalized_root)

    if key not in _config_cache:
        # Lazy import to avoid circular dependency
        from .manager import ConfigManager

        manager = ConfigManager(repo_root=normalized_root)
        _config_cache[key] = manager._load_config_uncached(validate=validate)

    return _config_cache[key]


def clear_all_caches() -> None:
    """Drop every cached configuration so the next load re-reads YAML files."""
    _config_cache.clear()


def is_cached(repo_root: Optional[Path] = None) -> bool:
    return _cache_key(repo_root) in _config_cache


__all__ = [
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
]
