"""
Policy module for PatchGate.

Decides which proposed patches may reach the filesystem.
"""

from patchgate.policy.engine import (
    PathMatcher,
    PolicyEngine,
    enforce_policy,
    glob_match,
    has_traversal,
    is_absolute,
)
from patchgate.policy.loader import load_policy_config, load_policy_overrides
from patchgate.policy.models import PolicyConfig, PolicyResult, PolicyViolation

__all__ = [
    "PolicyConfig", "PolicyResult", "PolicyViolation",
    "PolicyEngine", "PathMatcher", "enforce_policy", "glob_match", "has_traversal", "is_absolute",
    "load_policy_config", "load_policy_overrides",
]
