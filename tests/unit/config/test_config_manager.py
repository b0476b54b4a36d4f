from __future__ import annotations

from pathlib import Path

import pytest

from sutkit.core.config import ConfigManager, clear_all_caches, get_cached_config, is_cached
from sutkit.core.exceptions import ConfigValidationError


def test_bundled_defaults_load_and_validate(isolated_project: Path) -> None:
    cfg = ConfigManager(isolated_project).load_config(validate=True)

    assert cfg["server"]["startup_timeout_seconds"] == 5.0
    assert cfg["server"]["stop_signal"] == "SIGTERM"
    assert cfg["process"]["default_signal"] == "SIGTERM"
    assert cfg["logging"]["level"] == "WARNING"


def test_project_config_overrides_defaults(isolated_project: Path, project_config) -> None:
    project_config("server", "server:\n  startup_timeout_seconds: 12\n")

    manager = ConfigManager(isolated_project)

    assert manager.get("server.startup_timeout_seconds") == 12
    assert manager.get("server.exit_drain_seconds") == 0.25


def test_env_overrides_beat_project_config(
    isolated_project: Path, project_config, monkeypatch: pytest.MonkeyPatch
) -> None:
    project_config("server", "server:\n  startup_timeout_seconds: 12\n")
    monkeypatch.setenv("SUTKIT_SERVER__STARTUP_TIMEOUT_SECONDS", "1.5")
    monkeypatch.setenv("SUTKIT_LOGGING__LEVEL", "debug")

    manager = ConfigManager(isolated_project)

    assert manager.get("server.startup_timeout_seconds") == 1.5
    assert manager.get("logging.level") == "debug"


def test_project_root_variable_is_not_an_override(isolated_project: Path) -> None:
    cfg = ConfigManager(isolated_project).load_config(validate=True)

    assert "project_root" not in cfg


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("true", True),
        ("False", False),
        ("42", 42),
        ("-3", -3),
        ("0.5", 0.5),
        ('["a", "b"]', ["a", "b"]),
        ('{"k": 1}', {"k": 1}),
        (" SIGINT ", "SIGINT"),
    ],
)
def test_env_values_are_type_coerced(isolated_project: Path, raw: str, expected) -> None:
    assert ConfigManager(isolated_project)._coerce_type(raw) == expected


def test_get_returns_default_for_unknown_keys(isolated_project: Path) -> None:
    manager = ConfigManager(isolated_project)

    assert manager.get("server.nope", "fallback") == "fallback"
    assert manager.get("nope.at.all") is None


def test_schema_rejects_invalid_values(isolated_project: Path, project_config) -> None:
    project_config("server", "server:\n  startup_timeout_seconds: -1\n")

    with pytest.raises(ConfigValidationError, match="server.startup_timeout_seconds"):
        ConfigManager(isolated_project).load_config(validate=True)


def test_invalid_yaml_is_a_config_error(isolated_project: Path, project_config) -> None:
    project_config("broken", "server: [unterminated\n")

    with pytest.raises(ConfigValidationError, match="Invalid YAML"):
        ConfigManager(isolated_project).load_config(validate=False)


def test_non_mapping_config_file_is_rejected(isolated_project: Path, project_config) -> None:
    project_config("list", "- a\n- b\n")

    with pytest.raises(ConfigValidationError, match="must contain a mapping"):
        ConfigManager(isolated_project).load_config(validate=False)


def test_malformed_env_key_fails_strict_validation(
    isolated_project: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SUTKIT_SERVER____TIMEOUT", "1")

    with pytest.raises(ConfigValidationError, match="Malformed"):
        ConfigManager(isolated_project).load_config(validate=True)


def test_cache_is_shared_and_invalidated_by_edits(isolated_project: Path, project_config) -> None:
    first = get_cached_config(isolated_project)
    assert is_cached(isolated_project)
    assert get_cached_config(isolated_project) is first

    project_config("process", "process:\n  default_signal: SIGINT\n")

    second = get_cached_config(isolated_project)
    assert second is not first
    assert second["process"]["default_signal"] == "SIGINT"

    clear_all_caches()
    assert not is_cached(isolated_project)
