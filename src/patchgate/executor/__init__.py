"""
Executor module for PatchGate.

Snapshots, atomic application and rollback of approved patches.
"""

from patchgate.executor.applier import PatchApplier, apply_patches, atomic_write
from patchgate.executor.diff import generate_diff
from patchgate.executor.snapshot import (
    ManifestEntry,
    RollbackReport,
    SnapshotManifest,
    SnapshotStore,
    load_manifest,
    rollback,
    save_snapshot,
)

__all__ = [
    "PatchApplier", "apply_patches", "atomic_write",
    "generate_diff",
    "SnapshotStore", "SnapshotManifest", "ManifestEntry", "RollbackReport",
    "save_snapshot", "rollback", "load_manifest",
]
