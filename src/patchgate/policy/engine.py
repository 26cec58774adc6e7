"""Policy Engine for PatchGate.

Classifies every proposed patch as allowed or blocked before anything
touches disk. Pure: no I/O and no state between calls.
"""

import logging
import os
import posixpath
from collections.abc import Callable, Iterable, Sequence

from wcmatch import glob

from patchgate.core.constants import RESERVED_BLOCKLIST
from patchgate.patches.models import AnyPatch, patch_new_path
from patchgate.policy.models import PolicyConfig, PolicyResult, PolicyViolation

logger = logging.getLogger(__name__)

PathMatcher = Callable[[str, str], bool]

GLOB_FLAGS = glob.GLOBSTAR | glob.DOTGLOB


def glob_match(path: str, pattern: str) -> bool:
    """`*` stays inside one segment, `**` spans segments, dotfiles match."""
    return glob.globmatch(path, pattern, flags=GLOB_FLAGS)


def _as_posix(path: str) -> str:
    return path.replace("\\", "/")


def has_traversal(path: str) -> bool:
    """True if `..` survives lexical normalization."""
    normalized = posixpath.normpath(_as_posix(path))
    return ".." in normalized.split("/")


def is_absolute(path: str) -> bool:
    return os.path.isabs(path) or posixpath.isabs(_as_posix(path))


class PolicyEngine:
    """Applies the structural checks and the blocklist to each patch.

    Rule order matters: traversal, then absolute path, then blocklist.
    The first rule that fires is the reported reason.
    """

    def __init__(self, config: PolicyConfig | None = None, *, matcher: PathMatcher = glob_match):
        self.config = config or PolicyConfig()
        self.matcher = matcher

    def check(self, patches: Iterable[AnyPatch], extra_blocklist: Sequence[str] = ()) -> PolicyResult:
        blocklist = self.effective_blocklist(extra_blocklist)
        allowed: list[AnyPatch] = []
        blocked: list[PolicyViolation] = []

        for patch in patches:
            if reason := self.check_patch(patch, blocklist):
                logger.warning("Blocked %s %r: %s", patch.op, patch.path, reason)
                blocked.append(PolicyViolation(patch=patch, reason=reason))
            else:
                allowed.append(patch)

        logger.info("Policy check: %d allowed, %d blocked", len(allowed), len(blocked))
        return PolicyResult(allowed=tuple(allowed), blocked=tuple(blocked))

    def effective_blocklist(self, extra_blocklist: Sequence[str] = ()) -> list[str]:
        """Configured patterns, per-batch patterns, then the state directory."""
        return [*self.config.blocklist, *extra_blocklist, *RESERVED_BLOCKLIST]

    def check_patch(self, patch: AnyPatch, blocklist: Sequence[str]) -> str | None:
        if reason := self._check_path(patch.path, blocklist):
            return reason

        # Rename destination gets the same three checks
        new_path = patch_new_path(patch)
        if patch.op == "rename" and new_path:
            if reason := self._check_path(new_path, blocklist, label="rename destination"):
                return reason
        return None

    def _check_path(self, path: str, blocklist: Sequence[str], label: str | None = None) -> str | None:
        where = f" in {label}" if label else ""
        if has_traversal(path):
            return f'Path traversal detected{where}: "{path}"'
        if is_absolute(path):
            return f'Absolute path not allowed{where}: "{path}"'
        if pattern := self.match_blocklist(path, blocklist):
            return f'Blocked by policy pattern "{pattern}"{where}: "{path}"'
        return None

    def match_blocklist(self, path: str, blocklist: Sequence[str]) -> str | None:
        """First pattern matching the full path or its final component."""
        posix = posixpath.normpath(_as_posix(path))
        name = posixpath.basename(posix)
        return next(
            (p for p in blocklist if self.matcher(posix, p) or self.matcher(name, p)),
            None,
        )


def enforce_policy(
    patches: Iterable[AnyPatch],
    config: PolicyConfig | None = None,
    extra_blocklist: Sequence[str] = (),
    *,
    matcher: PathMatcher = glob_match,
) -> PolicyResult:
    return PolicyEngine(config, matcher=matcher).check(patches, extra_blocklist)
