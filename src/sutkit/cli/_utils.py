"""Shared utilities for CLI commands."""
from __future__ import annotations

import argparse
from pathlib import Path

from sutkit.core.utils.paths import resolve_project_root


def get_repo_root(args: argparse.Namespace) -> Path:
    """Get project root from args or auto-detect.

    Args:
        args: Parsed arguments with optional repo_root attribute

    Returns:
        Path: Project root path
    """
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


__all__ = ["get_repo_root"]
