"""
sutkit configuration management (layered YAML).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import jsonschema
import yaml

from sutkit.core.exceptions import ConfigValidationError
from sutkit.core.utils.io import iter_yaml_files, read_yaml
from sutkit.core.utils.merge import deep_merge as _deep_merge
from sutkit.core.utils.paths import PROJECT_ROOT_ENV, get_project_config_dir, resolve_project_root
from sutkit.data import get_data_path, read_yaml as read_data_yaml

from .cache import get_cached_config

logger = logging.getLogger(__name__)

ENV_PREFIX = "SUTKIT_"

# Environment variables under the prefix that are not config overrides.
_RESERVED_ENV_KEYS = frozenset({PROJECT_ROOT_ENV})


class ConfigManager:
    """Load, merge, and validate sutkit configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: SUTKIT_<section>__<key>
    2. Project config: <project>/.sutkit/config/*.yaml (alphabetical order)
    3. Bundled defaults: sutkit.data/config/*.yaml (alphabetical order)
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else resolve_project_root()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = get_project_config_dir(self.repo_root) / "config"

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        return _deep_merge(base, override)

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str, *, strict: bool) -> List[str]:
        segs = raw.split("__")
        if any(seg == "" for seg in segs):
            if strict:
                raise ConfigValidationError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
            return []
        return [seg.lower() for seg in segs]

    def _iter_env_overrides(self, *, strict: bool) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX) or key in _RESERVED_ENV_KEYS:
                continue
            raw = key[len(ENV_PREFIX):]
            if not raw:
                if strict:
                    raise ConfigValidationError(f"Malformed {ENV_PREFIX}* key")
                continue
            path = self._parse_env_key(raw, strict=strict)
            if not path:
                continue
            yield path, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur: Any = root
        for part in path[:-1]:
            if not isinstance(cur, dict):
                raise ValueError("Path traverses non-dict container")
            key_candidates = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            key_to_use = key_candidates.get(part, part)
            if not isinstance(cur.get(key_to_use), dict):
                cur[key_to_use] = {}
            cur = cur[key_to_use]
        lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
        cur[lower_map.get(path[-1], path[-1])] = value

    def apply_env_overrides(self, cfg: Dict[str, Any], *, strict: bool) -> None:
        for path, typed_value in self._iter_env_overrides(strict=strict):
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            try:
                module_cfg = read_yaml(path, default={}, raise_on_error=True) or {}
            except yaml.YAMLError as exc:
                raise ConfigValidationError(
                    f"Invalid YAML in {path}: {exc}",
                    context={"path": str(path)},
                ) from exc
            if not isinstance(module_cfg, dict):
                raise ConfigValidationError(
                    f"Config file must contain a mapping: {path}",
                    context={"path": str(path)},
                )
            cfg = self.deep_merge(cfg, module_cfg)
        return cfg

    def _load_config_uncached(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from every source, bypassing the cache."""
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        self.apply_env_overrides(cfg, strict=validate)
        logger.debug("Loaded configuration for %s", self.repo_root)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration using the centralized cache.

        Returned dict should be treated as immutable.
        """
        cfg = get_cached_config(repo_root=self.repo_root, validate=False)
        if validate:
            _ = list(self._iter_env_overrides(strict=True))
            self.validate_schema(cfg)
        return cfg

    def validate_schema(self, config: Dict[str, Any], schema_name: str = "config.schema.yaml") -> None:
        schema = read_data_yaml("schemas", schema_name)
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(config), key=lambda e: list(e.path))
        if not errors:
            return
        first = errors[0]
        location = ".".join(str(p) for p in first.path) or "<root>"
        raise ConfigValidationError(
            f"Invalid configuration at {location}: {first.message}",
            context={"path": location, "errors": len(errors)},
        )

    # ========== Accessors ==========

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> manager.get('server.startup_timeout_seconds')
            5.0
            >>> manager.get('nonexistent.key', 'fallback')
            'fallback'
        """
        current: Union[Dict[str, Any], Any] = self.load_config(validate=False)
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "ENV_PREFIX"]
