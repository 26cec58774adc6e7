"""Patch Applier for PatchGate."""

import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from patchgate.core.constants import SNAPSHOT_ERROR_PATH, TEMP_SUFFIX
from patchgate.core.exceptions import PatchApplyError, PatchConfigurationError, SnapshotError
from patchgate.executor.snapshot import SnapshotStore
from patchgate.patches.models import (
    AnyPatch,
    ApplyResult,
    CreatePatch,
    DeletePatch,
    InvalidPatch,
    RenamePatch,
    UpdatePatch,
    parse_patch,
)

logger = logging.getLogger(__name__)


def atomic_write(target: Path, content: str) -> None:
    """Write via a temp file in the target's directory, then rename over it.

    The target holds either the old or the new content, never a partial
    write. The temp file is removed on any failure.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=TEMP_SUFFIX)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class PatchApplier:
    """Applies policy-approved patches to one working directory, in order."""

    def __init__(self, workdir: Path, *, snapshot_store: SnapshotStore | None = None):
        self.workdir = Path(workdir)
        self.snapshot_store = snapshot_store or SnapshotStore(self.workdir)

    def apply(self, patches: Sequence[AnyPatch | dict[str, Any]], enable_snapshot: bool = True) -> ApplyResult:
        patches = [parse_patch(p) for p in patches]
        result = ApplyResult()

        if enable_snapshot and patches:
            try:
                result.snapshot_path = str(self.snapshot_store.save(patches))
            except SnapshotError as e:
                # No snapshot, no mutation
                logger.error("Snapshot failed, batch aborted: %s", e)
                result.add_error(SNAPSHOT_ERROR_PATH, str(e))
                return result

        for patch in patches:
            try:
                self.apply_one(patch)
                result.applied.append(patch.path)
            except PatchApplyError as e:
                logger.error("Patch %s %r failed: %s", patch.op, patch.path, e.message)
                result.add_error(patch.path, e.message)
            except Exception as e:
                logger.error("Patch %s %r failed: %s", patch.op, patch.path, e)
                result.add_error(patch.path, str(e))

        result.success = not result.errors
        logger.info(
            "Applied %d/%d patches (%d errors)", len(result.applied), len(patches), len(result.errors)
        )
        return result

    def apply_one(self, patch: AnyPatch) -> None:
        target = self.workdir / patch.path

        if isinstance(patch, InvalidPatch):
            raise PatchConfigurationError(patch.path, patch.error)
        if not patch.path:
            raise PatchConfigurationError(patch.path, "Missing path")

        if isinstance(patch, (CreatePatch, UpdatePatch)):
            atomic_write(target, patch.content)
        elif isinstance(patch, DeletePatch):
            if not target.is_file():
                raise PatchApplyError(patch.path, "Cannot delete missing file")
            target.unlink()
        elif isinstance(patch, RenamePatch):
            # Only regular files are snapshotted
            if target.is_dir():
                raise PatchApplyError(patch.path, "Cannot rename a directory")
            if not target.is_file():
                raise PatchApplyError(patch.path, "Cannot rename missing file")
            destination = self.workdir / patch.new_path
            destination.parent.mkdir(parents=True, exist_ok=True)
            os.replace(target, destination)
        else:
            raise PatchConfigurationError(getattr(patch, "path", ""), "Unknown patch operation")

        logger.debug("Applied %s %s", patch.op, patch.path)


def apply_patches(
    patches: Sequence[AnyPatch | dict[str, Any]],
    workdir: Path,
    enable_snapshot: bool = True,
) -> ApplyResult:
    return PatchApplier(workdir).apply(patches, enable_snapshot)
