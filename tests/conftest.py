"""
Pytest configuration and shared fixtures for PatchGate tests.
"""

from pathlib import Path
from typing import Any

import pytest

from patchgate.core.config import get_settings
from patchgate.core.constants import TEMP_SUFFIX


# =============================================================================
# Helpers
# =============================================================================


def _write_file(root: Path, rel_path: str, content: str) -> Path:
    full = root / rel_path
    full.parent.mkdir(parents=True, exist_ok=True)
    full.write_text(content, encoding="utf-8")
    return full


def _read_file(root: Path, rel_path: str) -> str:
    return (root / rel_path).read_text(encoding="utf-8")


def _temp_artifacts(root: Path) -> list[Path]:
    return list(root.rglob(f"*{TEMP_SUFFIX}"))


@pytest.fixture
def write_file():
    """write_file(root, rel_path, content) -> Path"""
    return _write_file


@pytest.fixture
def read_file():
    """read_file(root, rel_path) -> str"""
    return _read_file


@pytest.fixture
def temp_artifacts():
    """Leftover atomic-write temp files under a directory."""
    return _temp_artifacts


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep the host's CI / PATCHGATE_* variables out of tests."""
    for var in ("CI", "PATCHGATE_CI", "PATCHGATE_WORKDIR", "PATCHGATE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Working Directories
# =============================================================================


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Working directory with a small project and a secret."""
    root = tmp_path / "repo"
    root.mkdir()
    _write_file(root, "src.txt", "SAFE=1")
    _write_file(root, ".env", "SECRET=123")
    _write_file(root, "src/index.ts", "const original = true;\n")
    _write_file(root, "README.md", "# Demo\n")
    return root


@pytest.fixture
def empty_workdir(tmp_path: Path) -> Path:
    root = tmp_path / "empty"
    root.mkdir()
    return root


# =============================================================================
# Sample Patches
# =============================================================================


@pytest.fixture
def safe_update() -> dict[str, Any]:
    return {"op": "update", "path": "src/index.ts", "content": "const modified = true;\n", "reason": "flip flag"}


@pytest.fixture
def env_update() -> dict[str, Any]:
    return {"op": "update", "path": ".env", "content": "HACKED=YES"}


@pytest.fixture
def mixed_patch_set(safe_update: dict, env_update: dict) -> dict[str, Any]:
    """One allowed update, one blocked secret, one allowed create."""
    return {
        "source": "test-agent",
        "patches": [
            safe_update,
            env_update,
            {"op": "create", "path": "docs/new.md", "content": "new\nfile\n"},
        ],
    }
