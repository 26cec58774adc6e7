"""Snapshot Store for PatchGate.

A snapshot is a directory holding byte-for-byte copies of every file a
batch is about to replace, delete or rename away, plus a manifest. Rollback
reads only the manifest; it never relies on what the snapshot taker
remembers.
"""

import json
import logging
import shutil
import time
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from patchgate.core.constants import MANIFEST_NAME, SNAPSHOT_ID_PREFIX, SNAPSHOTS_DIR, STATE_DIR
from patchgate.core.exceptions import RollbackError, SnapshotError
from patchgate.patches.models import AnyPatch, InvalidPatch, patch_new_path
from patchgate.policy.engine import has_traversal, is_absolute

logger = logging.getLogger(__name__)

# Ops whose target already exists and is about to be replaced or removed
STATEFUL_OPS = frozenset({"update", "delete", "rename"})


class ManifestEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
    op: str
    path: str
    new_path: str | None = None


class SnapshotManifest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
    id: str
    created_at: datetime
    files: list[ManifestEntry] = Field(default_factory=list)


class RollbackReport(BaseModel):
    snapshot_id: str
    restored: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)


def snapshots_root(workdir: Path) -> Path:
    return Path(workdir) / STATE_DIR / SNAPSHOTS_DIR


def new_snapshot_id() -> str:
    return f"{SNAPSHOT_ID_PREFIX}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class SnapshotStore:
    """Writes and restores snapshots under <workdir>/.patchgate/snapshots."""

    def __init__(self, workdir: Path):
        self.workdir = Path(workdir)
        self.root = snapshots_root(self.workdir)

    def save(self, patches: Sequence[AnyPatch]) -> Path:
        """Copy pre-change state of every target and write the manifest.

        Raises:
            SnapshotError: if anything could not be written. Nothing in the
                working tree has been touched at that point.
        """
        snapshot_id = new_snapshot_id()
        snapshot_dir = self.root / snapshot_id
        entries: list[ManifestEntry] = []

        try:
            snapshot_dir.mkdir(parents=True, exist_ok=False)
            for patch in patches:
                # Malformed patches never mutate, so there is nothing to undo
                if isinstance(patch, InvalidPatch):
                    continue
                if patch.op in STATEFUL_OPS:
                    self._copy_original(patch.path, snapshot_dir)
                entries.append(ManifestEntry(
                    op=patch.op,
                    path=patch.path,
                    new_path=patch_new_path(patch) if patch.op == "rename" else None,
                ))

            manifest = SnapshotManifest(id=snapshot_id, created_at=datetime.now(timezone.utc), files=entries)
            (snapshot_dir / MANIFEST_NAME).write_text(
                manifest.model_dump_json(by_alias=True, exclude_none=True, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise SnapshotError(f"Failed to write snapshot {snapshot_dir}: {e}") from e

        logger.info("Saved snapshot %s (%d entries)", snapshot_id, len(entries))
        return snapshot_dir

    def _copy_original(self, rel_path: str, snapshot_dir: Path) -> None:
        source = self.workdir / rel_path
        if not source.is_file():
            return
        dest = snapshot_dir / rel_path
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest)
        logger.debug("Snapshotted %s", rel_path)

    def list_snapshots(self) -> list[Path]:
        """Snapshot directories, oldest first."""
        if not self.root.is_dir():
            return []
        dirs = [p for p in self.root.iterdir() if p.is_dir() and (p / MANIFEST_NAME).is_file()]
        return sorted(dirs, key=lambda p: (p.stat().st_mtime, p.name))

    def latest(self) -> Path | None:
        snapshots = self.list_snapshots()
        return snapshots[-1] if snapshots else None

    def resolve(self, snapshot_id: str) -> Path:
        """Snapshot directory for an id, refusing anything outside the root."""
        candidate = (self.root / snapshot_id).resolve()
        if candidate.parent != self.root.resolve():
            raise RollbackError(f"Invalid snapshot id: {snapshot_id!r}")
        return candidate

    def rollback(self, snapshot_dir: Path) -> RollbackReport:
        return rollback(snapshot_dir, self.workdir)


def load_manifest(snapshot_dir: Path) -> SnapshotManifest:
    manifest_path = Path(snapshot_dir) / MANIFEST_NAME
    if not manifest_path.is_file():
        raise RollbackError(f"Missing manifest: no {MANIFEST_NAME} in {snapshot_dir}, cannot rollback")
    try:
        return SnapshotManifest.model_validate(json.loads(manifest_path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise RollbackError(f"Missing manifest: {manifest_path} is unreadable or invalid: {e}") from e


def _check_entry(entry: ManifestEntry, workdir: Path) -> None:
    if has_traversal(entry.path) or is_absolute(entry.path) or not entry.path:
        raise RollbackError(f"Manifest entry escapes the working directory: {entry.path!r}")
    target = (workdir / entry.path).resolve()
    if not target.is_relative_to(workdir.resolve()):
        raise RollbackError(f"Manifest entry escapes the working directory: {entry.path!r}")


def rollback(snapshot_dir: Path, workdir: Path) -> RollbackReport:
    """Restore the working tree from a snapshot.

    Entries are replayed in manifest order. `create` entries remove the
    created file, every other entry restores the stored copy if there is
    one. Running twice has the same effect as running once. The destination
    of a rename is left in place.

    Raises:
        RollbackError: missing or invalid manifest. Nothing is restored.
    """
    snapshot_dir, workdir = Path(snapshot_dir), Path(workdir)
    manifest = load_manifest(snapshot_dir)

    # Validate everything before touching the filesystem
    for entry in manifest.files:
        _check_entry(entry, workdir)

    report = RollbackReport(snapshot_id=manifest.id)
    for entry in manifest.files:
        target = workdir / entry.path
        if entry.op == "create":
            if target.is_file():
                target.unlink()
                report.removed.append(entry.path)
            else:
                report.unchanged.append(entry.path)
            continue

        stored = snapshot_dir / entry.path
        if stored.is_file():
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(stored, target)
            report.restored.append(entry.path)
        else:
            report.unchanged.append(entry.path)

    logger.info(
        "Rolled back %s: %d restored, %d removed",
        manifest.id, len(report.restored), len(report.removed),
    )
    return report


def save_snapshot(patches: Sequence[AnyPatch], workdir: Path) -> Path:
    return SnapshotStore(workdir).save(patches)
