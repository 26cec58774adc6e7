# src/patchgate/core/__init__.py
from patchgate.core.config import Settings, get_settings
from patchgate.core.exceptions import PatchGateError

__all__ = ["Settings", "get_settings", "PatchGateError"]
