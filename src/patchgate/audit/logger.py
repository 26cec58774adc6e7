"""Audit Log for PatchGate.

One JSON object per line in <workdir>/.patchgate/audit.log, appended once
per completed run.
"""

import logging
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from patchgate.core.constants import AUDIT_LOG_NAME, DEFAULT_HISTORY_LIMIT, STATE_DIR
from patchgate.patches.models import ApplyResult, BlockedPatch, PatchError, PatchSet

logger = logging.getLogger(__name__)


class AuditLogEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    patch_set_id: str
    source: str | None = None
    total_patches: int = 0
    success: bool = False
    applied: list[str] = Field(default_factory=list)
    blocked: list[BlockedPatch] = Field(default_factory=list)
    errors: list[PatchError] = Field(default_factory=list)
    snapshot_path: str | None = None
    duration_ms: int = 0

    @property
    def status(self) -> str:
        if self.errors:
            return "❌"
        return "⚠️ " if self.blocked else "✅"


class AuditLogger(Protocol):
    def write(self, entry: AuditLogEntry) -> None: ...
    def read(self) -> list[AuditLogEntry]: ...


def build_log_entry(
    patch_set: PatchSet,
    result: ApplyResult,
    blocked: Sequence[BlockedPatch],
    start_time: float,
) -> AuditLogEntry:
    """`start_time` is a time.monotonic() reading taken when the run began."""
    return AuditLogEntry(
        patch_set_id=patch_set.id,
        source=patch_set.source,
        total_patches=len(patch_set.patches),
        success=result.success,
        applied=list(result.applied),
        blocked=list(blocked),
        errors=list(result.errors),
        snapshot_path=result.snapshot_path,
        duration_ms=int((time.monotonic() - start_time) * 1000),
    )


class JsonlAuditLogger:
    """Append-only JSONL audit log."""

    def __init__(self, workdir: Path):
        self.log_path = Path(workdir) / STATE_DIR / AUDIT_LOG_NAME

    def write(self, entry: AuditLogEntry) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(entry.model_dump_json(by_alias=True) + "\n")
        logger.debug("Audit entry written for %s", entry.patch_set_id)

    def read(self) -> list[AuditLogEntry]:
        """All parseable entries, oldest first. Broken lines are skipped."""
        if not self.log_path.is_file():
            return []

        entries = []
        # Decoded per line; a bad line is skipped on its own
        for lineno, raw in enumerate(self.log_path.read_bytes().splitlines(), 1):
            if not raw.strip():
                continue
            try:
                entries.append(AuditLogEntry.model_validate_json(raw.decode("utf-8")))
            except (UnicodeDecodeError, ValidationError):
                logger.debug("Skipping unparsable audit line %d", lineno)
        return entries


def read_log(workdir: Path) -> list[AuditLogEntry]:
    return JsonlAuditLogger(workdir).read()


def format_history(entries: Sequence[AuditLogEntry], limit: int = DEFAULT_HISTORY_LIMIT) -> list[str]:
    """Most recent `limit` runs, newest first, one line each."""
    recent = list(entries)[-limit:][::-1] if limit > 0 else []
    lines = [f"📋 PatchGate Audit History (last {len(recent)} runs)"]
    for e in recent:
        lines.append(
            f"{e.status} [{e.timestamp.isoformat()}] id:{e.patch_set_id[:8]} "
            f"applied:{len(e.applied)} blocked:{len(e.blocked)} "
            f"errors:{len(e.errors)} ({e.duration_ms}ms)"
        )
    return lines
