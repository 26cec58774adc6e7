"""
PatchGate pipeline.

policy check → preview → snapshot → apply → audit log, as a single call.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from patchgate.audit.logger import AuditLogger, JsonlAuditLogger, build_log_entry
from patchgate.core.constants import CANCELLED_REASON, POLICY_ERROR_PATH
from patchgate.executor.applier import PatchApplier
from patchgate.executor.diff import generate_diff
from patchgate.patches.models import (
    BlockedPatch,
    PatchError,
    PatchSet,
    RunResult,
    SkippedPatch,
    UpdatePatch,
)
from patchgate.policy.engine import PathMatcher, PolicyEngine, glob_match
from patchgate.policy.models import PolicyConfig

logger = logging.getLogger(__name__)

PreviewCallback = Callable[[list[str]], bool | Awaitable[bool]]


@dataclass(slots=True)
class RunOptions:
    """Everything a run needs besides the patches.

    `workdir` is required: the pipeline never falls back to the process
    current directory.
    """

    workdir: Path
    config: PolicyConfig | Mapping[str, Any] | None = None
    on_preview: PreviewCallback | None = None
    audit_logger: AuditLogger | None = None
    matcher: PathMatcher = glob_match


async def _ask(callback: PreviewCallback, diffs: list[str]) -> bool:
    answer = callback(diffs)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


async def run(patch_set: PatchSet | Mapping[str, Any], options: RunOptions) -> RunResult:
    """Gate a batch of agent patches and apply what policy allows.

    Args:
        patch_set: PatchSet or its JSON-shaped dict; id/createdAt are filled in.
        options: working directory, policy overrides, preview callback.

    Returns:
        RunResult: applied/skipped/errors, snapshot path and blocked patches.
    """
    start = time.monotonic()
    workdir = Path(options.workdir)
    config = PolicyConfig.merged(options.config)
    patch_set = PatchSet.from_input(patch_set)
    logger.info("Run %s: %d patch(es) from %s", patch_set.id, len(patch_set.patches), patch_set.source or "unknown")

    policy = PolicyEngine(config, matcher=options.matcher).check(patch_set.patches, patch_set.blocklist)
    blocked = [BlockedPatch(path=v.patch.path, reason=v.reason) for v in policy.blocked]

    if config.fail_on_blocked and blocked:
        # Nothing previewed, snapshotted, applied or logged
        logger.warning("Run %s aborted: %d patch(es) blocked with failOnBlocked", patch_set.id, len(blocked))
        return RunResult(
            success=False,
            errors=[PatchError(
                path=POLICY_ERROR_PATH,
                message=f"{len(blocked)} patch(es) blocked by policy (failOnBlocked)",
            )],
            blocked=blocked,
        )

    allowed = list(policy.allowed)
    if options.on_preview is not None and allowed:
        diffs = [generate_diff(p, workdir) for p in allowed]
        if not await _ask(options.on_preview, diffs):
            logger.warning("Run %s cancelled at preview", patch_set.id)
            return RunResult(
                success=False,
                skipped=[SkippedPatch(path=p.path, reason=CANCELLED_REASON) for p in allowed],
                blocked=blocked,
            )

    result = PatchApplier(workdir).apply(allowed, enable_snapshot=config.enable_snapshot)

    audit_logger = options.audit_logger or JsonlAuditLogger(workdir)
    try:
        audit_logger.write(build_log_entry(patch_set, result, blocked, start))
    except OSError as e:
        logger.error("Failed to write audit log for %s: %s", patch_set.id, e)

    return RunResult(**result.model_dump(), blocked=blocked)


def run_sync(patch_set: PatchSet | Mapping[str, Any], options: RunOptions) -> RunResult:
    """Blocking wrapper around run() for callers without an event loop."""
    return asyncio.run(run(patch_set, options))


def create_patch_set(files: Sequence[Mapping[str, Any]], source: str | None = None) -> PatchSet:
    """Build an update-only PatchSet from {path, content, reason?} items."""
    return PatchSet(
        source=source,
        patches=tuple(
            UpdatePatch(path=f["path"], content=f["content"], reason=f.get("reason")) for f in files
        ),
    )
