"""Shared helpers for sutkit core modules."""
from __future__ import annotations

from .io import iter_yaml_files, read_yaml
from .merge import deep_merge, merge_arrays
from .paths import PROJECT_CONFIG_DIR, get_project_config_dir, resolve_project_root

__all__ = [
    "iter_yaml_files",
    "read_yaml",
    "deep_merge",
    "merge_arrays",
    "PROJECT_CONFIG_DIR",
    "get_project_config_dir",
    "resolve_project_root",
]
