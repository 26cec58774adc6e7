"""
API Dependencies.

Dependency injection for FastAPI services.
"""

import logging
from functools import lru_cache
from pathlib import Path

from patchgate.audit import JsonlAuditLogger
from patchgate.core.config import Settings, get_settings
from patchgate.executor import SnapshotStore
from patchgate.policy import PolicyConfig, load_policy_config

logger = logging.getLogger(__name__)


# =============================================================================
# Settings
# =============================================================================


@lru_cache
def get_api_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


def get_workdir() -> Path:
    """Working directory the API mutates; server configuration only."""
    return get_api_settings().workdir.resolve()


# =============================================================================
# Core Services
# =============================================================================


def get_policy_config() -> PolicyConfig:
    """Policy defaults merged with the working directory's policy file."""
    settings = get_api_settings()
    return load_policy_config(get_workdir() / settings.config_file)


def get_snapshot_store() -> SnapshotStore:
    return SnapshotStore(get_workdir())


def get_audit_logger() -> JsonlAuditLogger:
    return JsonlAuditLogger(get_workdir())


# =============================================================================
# Cleanup
# =============================================================================


def clear_caches() -> None:
    """Clear all LRU caches (for testing)."""
    get_api_settings.cache_clear()
    get_settings.cache_clear()
