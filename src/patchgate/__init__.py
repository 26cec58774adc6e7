"""
PatchGate: policy enforcement, snapshots and rollback for AI agent file edits.

    from pathlib import Path
    from patchgate import RunOptions, run_sync

    result = run_sync(
        {"source": "my-agent", "patches": [{"op": "update", "path": "src/app.py", "content": "..."}]},
        RunOptions(workdir=Path("."), config={"failOnBlocked": True}),
    )
"""

from patchgate.audit import AuditLogEntry, JsonlAuditLogger, format_history, read_log
from patchgate.core.exceptions import (
    ConfigurationError,
    PatchApplyError,
    PatchConfigurationError,
    PatchGateError,
    RollbackError,
    SnapshotError,
)
from patchgate.executor import (
    SnapshotStore,
    apply_patches,
    generate_diff,
    rollback,
    save_snapshot,
)
from patchgate.patches import (
    ApplyResult,
    CreatePatch,
    DeletePatch,
    FilePatch,
    InvalidPatch,
    PatchSet,
    RenamePatch,
    RunResult,
    UpdatePatch,
    parse_patch,
)
from patchgate.pipeline import RunOptions, create_patch_set, run, run_sync
from patchgate.policy import PolicyConfig, PolicyEngine, PolicyViolation, enforce_policy

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "run", "run_sync", "RunOptions", "create_patch_set",
    # Patches
    "PatchSet", "FilePatch", "CreatePatch", "UpdatePatch", "DeletePatch", "RenamePatch", "InvalidPatch",
    "parse_patch", "ApplyResult", "RunResult",
    # Policy
    "PolicyConfig", "PolicyEngine", "PolicyViolation", "enforce_policy",
    # Executor
    "apply_patches", "generate_diff", "save_snapshot", "rollback", "SnapshotStore",
    # Audit
    "AuditLogEntry", "JsonlAuditLogger", "read_log", "format_history",
    # Errors
    "PatchGateError", "ConfigurationError", "PatchApplyError", "PatchConfigurationError",
    "SnapshotError", "RollbackError",
]
