"""Project root and project config directory resolution.

Precedence (highest to lowest):
1. Environment variable: SUTKIT_PROJECT_ROOT
2. Nearest ancestor of the working directory holding ``.sutkit/`` or ``.git``
3. The working directory itself
"""
from __future__ import annotations

import os
from pathlib import Path

PROJECT_CONFIG_DIR = ".sutkit"
PROJECT_ROOT_ENV = "SUTKIT_PROJECT_ROOT"

_ROOT_MARKERS = (PROJECT_CONFIG_DIR, ".git")


def resolve_project_root(start: Path | None = None) -> Path:
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root and env_root.strip():
        return Path(env_root.strip()).expanduser().resolve()

    current = Path(start or Path.cwd()).expanduser().resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return current


def get_project_config_dir(repo_root: Path | None = None, *, create: bool = False) -> Path:
    """Return ``<repo_root>/.sutkit``, optionally creating it."""
    root = Path(repo_root) if repo_root is not None else resolve_project_root()
    config_dir = root / PROJECT_CONFIG_DIR
    if create:
        config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


__all__ = [
    "PROJECT_CONFIG_DIR",
    "PROJECT_ROOT_ENV",
    "resolve_project_root",
    "get_project_config_dir",
]
