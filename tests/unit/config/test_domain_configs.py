from __future__ import annotations

from pathlib import Path

import pytest

from sutkit.core.config.domains import LoggingConfig, ProcessConfig, ServerConfig


class TestServerConfig:
    def test_defaults(self, isolated_project: Path) -> None:
        cfg = ServerConfig(repo_root=isolated_project)

        assert cfg.startup_timeout_seconds == 5.0
        assert cfg.exit_drain_seconds == 0.25
        assert cfg.stop_signal == "SIGTERM"
        assert cfg.stop_grace_seconds == 2.0
        assert cfg.timeout_kill_signal == "SIGTERM"

    def test_project_overrides(self, isolated_project: Path, project_config) -> None:
        project_config(
            "server",
            "server:\n  startup_timeout_seconds: 2\n  stop_signal: SIGINT\n  timeout_kill_signal: 9\n",
        )

        cfg = ServerConfig(repo_root=isolated_project)

        assert cfg.startup_timeout_seconds == 2.0
        assert cfg.stop_signal == "SIGINT"
        assert cfg.timeout_kill_signal == 9

    def test_unparseable_number_falls_back_to_default(self, isolated_project: Path, project_config) -> None:
        project_config("server", "server:\n  startup_timeout_seconds: soon\n")

        assert ServerConfig(repo_root=isolated_project).startup_timeout_seconds == 5.0

    def test_values_are_cached(self, isolated_project: Path) -> None:
        cfg = ServerConfig(repo_root=isolated_project)
        assert cfg.section is cfg.section


class TestProcessConfig:
    def test_defaults(self, isolated_project: Path) -> None:
        cfg = ProcessConfig(repo_root=isolated_project)

        assert cfg.default_signal == "SIGTERM"
        assert cfg.tool_timeout_seconds == 30.0

    def test_env_override(self, isolated_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUTKIT_PROCESS__TOOL_TIMEOUT_SECONDS", "3")

        assert ProcessConfig(repo_root=isolated_project).tool_timeout_seconds == 3.0


class TestLoggingConfig:
    def test_defaults(self, isolated_project: Path) -> None:
        cfg = LoggingConfig(repo_root=isolated_project)

        assert cfg.level == "WARNING"
        assert "%(message)s" in cfg.format
        assert cfg.file is None

    def test_relative_file_resolves_against_project(self, isolated_project: Path, project_config) -> None:
        project_config("logging", "logging:\n  level: info\n  file: logs/sutkit.log\n")

        cfg = LoggingConfig(repo_root=isolated_project)

        assert cfg.level == "INFO"
        assert cfg.file == isolated_project / "logs" / "sutkit.log"
