import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'sutkit' and tests/helpers as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from sutkit.core.config.cache import clear_all_caches
from sutkit.core.platform.os_family import get_os_family
from sutkit.core.stdlib_logging import reset_logging_for_tests


@pytest.fixture(autouse=True)
def isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test against an empty project rooted at ``tmp_path``.

    SUTKIT_* variables from the developer's shell would otherwise leak into
    configuration loading.
    """
    for key in list(os.environ):
        if key.startswith("SUTKIT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SUTKIT_PROJECT_ROOT", str(tmp_path))

    clear_all_caches()
    get_os_family.cache_clear()
    reset_logging_for_tests()
    yield tmp_path
    clear_all_caches()
    get_os_family.cache_clear()
    reset_logging_for_tests()


@pytest.fixture
def project_config(isolated_project: Path):
    """Write ``<project>/.sutkit/config/<name>.yaml`` files."""

    def _write(name: str, content: str) -> Path:
        config_dir = isolated_project / ".sutkit" / "config"
        config_dir.mkdir(parents=True, exist_ok=True)
        path = config_dir / f"{name}.yaml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write
