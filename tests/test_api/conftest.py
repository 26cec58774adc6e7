"""Fixtures for API tests."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api.deps import clear_caches
from api.main import app

@pytest.fixture
def client(workdir: Path, monkeypatch: pytest.MonkeyPatch):
    """FastAPI TestClient bound to the test working directory."""
    monkeypatch.setenv("PATCHGATE_WORKDIR", str(workdir))
    clear_caches()
    yield TestClient(app)
    clear_caches()

@pytest.fixture
def apply_payload(mixed_patch_set):
    """Patch set with one blocked secret."""
    return {**mixed_patch_set, "id": "api-batch-1"}
