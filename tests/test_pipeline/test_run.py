"""Tests for the end-to-end pipeline."""

import asyncio
import json
from pathlib import Path

from patchgate.audit.logger import AuditLogEntry, read_log
from patchgate.core.constants import CANCELLED_REASON, POLICY_ERROR_PATH
from patchgate.patches.models import PatchSet, UpdatePatch
from patchgate.pipeline import RunOptions, create_patch_set, run, run_sync
from patchgate.policy.models import PolicyConfig


class RecordingAuditLogger:
    def __init__(self):
        self.entries: list[AuditLogEntry] = []

    def write(self, entry: AuditLogEntry) -> None:
        self.entries.append(entry)

    def read(self) -> list[AuditLogEntry]:
        return list(self.entries)


class TestRun:
    """Tests for a full policy → apply → audit run."""

    def test_blocks_env_and_applies_the_rest(self, workdir: Path, mixed_patch_set: dict, read_file):
        """Test the .env update is blocked while siblings are applied."""
        result = run_sync(mixed_patch_set, RunOptions(workdir=workdir))

        assert result.success is True
        assert result.applied == ["src/index.ts", "docs/new.md"]
        assert [b.path for b in result.blocked] == [".env"]
        assert read_file(workdir, ".env") == "SECRET=123"
        assert read_file(workdir, "src/index.ts") == "const modified = true;\n"
        assert result.snapshot_path is not None

    def test_blocked_patches_never_touch_disk(self, workdir: Path, env_update: dict, read_file):
        result = run_sync({"patches": [env_update]}, RunOptions(workdir=workdir))

        assert result.applied == []
        assert read_file(workdir, ".env") == "SECRET=123"

    def test_writes_audit_entry(self, workdir: Path, mixed_patch_set: dict):
        result = run_sync(mixed_patch_set, RunOptions(workdir=workdir))

        entries = read_log(workdir)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.source == "test-agent"
        assert entry.total_patches == 3
        assert entry.applied == result.applied
        assert [b.path for b in entry.blocked] == [".env"]
        assert entry.snapshot_path == result.snapshot_path
        assert entry.duration_ms >= 0

    def test_injected_audit_logger(self, workdir: Path, safe_update: dict):
        audit = RecordingAuditLogger()
        run_sync({"id": "batch-7", "patches": [safe_update]}, RunOptions(workdir=workdir, audit_logger=audit))

        assert [e.patch_set_id for e in audit.entries] == ["batch-7"]
        assert not (workdir / ".patchgate" / "audit.log").exists()

    def test_per_patch_errors_reported(self, workdir: Path):
        result = run_sync(
            {"patches": [{"op": "delete", "path": "ghost.txt"}, {"op": "create", "path": "ok.txt", "content": "1"}]},
            RunOptions(workdir=workdir),
        )

        assert result.success is False
        assert [e.path for e in result.errors] == ["ghost.txt"]
        assert result.applied == ["ok.txt"]

    def test_unwritable_content_is_audited_not_raised(self, empty_workdir: Path, read_file):
        """Test an encoding failure becomes a per-patch error and the run is still logged."""
        bad = json.loads('"\\ud800"')
        result = run_sync(
            {
                "patches": [
                    {"op": "create", "path": "a.txt", "content": "A"},
                    {"op": "create", "path": "b.txt", "content": bad},
                    {"op": "create", "path": "c.txt", "content": "C"},
                ]
            },
            RunOptions(workdir=empty_workdir),
        )

        assert result.success is False
        assert [e.path for e in result.errors] == ["b.txt"]
        assert result.applied == ["a.txt", "c.txt"]
        assert read_file(empty_workdir, "c.txt") == "C"

        entries = read_log(empty_workdir)
        assert len(entries) == 1
        assert [e.path for e in entries[0].errors] == ["b.txt"]

    def test_snapshot_disabled_by_config(self, workdir: Path, safe_update: dict):
        result = run_sync({"patches": [safe_update]}, RunOptions(workdir=workdir, config={"enableSnapshot": False}))

        assert result.snapshot_path is None
        assert not (workdir / ".patchgate" / "snapshots").exists()

    def test_patch_set_blocklist_is_honored(self, workdir: Path, safe_update: dict):
        result = run_sync({"patches": [safe_update], "blocklist": ["src/**"]}, RunOptions(workdir=workdir))

        assert result.applied == []
        assert [b.path for b in result.blocked] == ["src/index.ts"]

    def test_accepts_patch_set_instance(self, workdir: Path):
        patch_set = PatchSet(patches=(UpdatePatch(path="src.txt", content="SAFE=2"),))

        result = asyncio.run(run(patch_set, RunOptions(workdir=workdir)))

        assert result.applied == ["src.txt"]


class TestFailOnBlocked:
    """Tests for the all-or-nothing policy mode."""

    def test_short_circuits_without_mutation(self, workdir: Path, mixed_patch_set: dict, read_file):
        """Test nothing is applied, snapshotted or logged when anything is blocked."""
        result = run_sync(mixed_patch_set, RunOptions(workdir=workdir, config=PolicyConfig(fail_on_blocked=True)))

        assert result.success is False
        assert result.applied == []
        assert result.snapshot_path is None
        assert [e.path for e in result.errors] == [POLICY_ERROR_PATH]
        assert "1 patch(es) blocked" in result.errors[0].message
        assert [b.path for b in result.blocked] == [".env"]
        assert read_file(workdir, "src/index.ts") == "const original = true;\n"
        assert not (workdir / "docs/new.md").exists()
        assert not (workdir / ".patchgate").exists()

    def test_no_effect_when_nothing_blocked(self, workdir: Path, safe_update: dict):
        result = run_sync({"patches": [safe_update]}, RunOptions(workdir=workdir, config={"failOnBlocked": True}))

        assert result.success is True
        assert result.applied == ["src/index.ts"]


class TestPreview:
    """Tests for the preview callback."""

    def test_rejection_skips_everything(self, workdir: Path, mixed_patch_set: dict, read_file):
        """Test a rejected preview applies and snapshots nothing."""
        seen = []

        def reject(diffs: list[str]) -> bool:
            seen.extend(diffs)
            return False

        result = run_sync(mixed_patch_set, RunOptions(workdir=workdir, on_preview=reject))

        assert result.success is False
        assert result.applied == []
        assert [s.path for s in result.skipped] == ["src/index.ts", "docs/new.md"]
        assert all(s.reason == CANCELLED_REASON for s in result.skipped)
        assert [b.path for b in result.blocked] == [".env"]
        assert len(seen) == 2
        assert read_file(workdir, "src/index.ts") == "const original = true;\n"
        assert not (workdir / ".patchgate").exists()

    def test_async_callback_approves(self, workdir: Path, safe_update: dict):
        async def approve(diffs: list[str]) -> bool:
            await asyncio.sleep(0)
            return True

        result = run_sync({"patches": [safe_update]}, RunOptions(workdir=workdir, on_preview=approve))

        assert result.success is True
        assert result.applied == ["src/index.ts"]

    def test_preview_receives_only_allowed_diffs(self, workdir: Path, mixed_patch_set: dict):
        seen: list[str] = []

        def approve(diffs: list[str]) -> bool:
            seen.extend(diffs)
            return True

        run_sync(mixed_patch_set, RunOptions(workdir=workdir, on_preview=approve))

        assert not any(".env" in d for d in seen)
        assert seen[1] == "[+] CREATE  docs/new.md (2 lines)"

    def test_callback_not_called_when_everything_blocked(self, workdir: Path, env_update: dict):
        calls = []
        run_sync({"patches": [env_update]}, RunOptions(workdir=workdir, on_preview=lambda d: calls.append(d)))

        assert calls == []


class TestCreatePatchSet:
    """Tests for the update-only convenience builder."""

    def test_builds_update_patches(self):
        patch_set = create_patch_set(
            [{"path": "a.txt", "content": "A"}, {"path": "b.txt", "content": "B", "reason": "fix"}],
            source="helper",
        )

        assert patch_set.source == "helper"
        assert [p.op for p in patch_set.patches] == ["update", "update"]
        assert patch_set.patches[1].reason == "fix"
        assert patch_set.id

    def test_result_can_be_run(self, workdir: Path, read_file):
        patch_set = create_patch_set([{"path": "notes/todo.md", "content": "- ship\n"}])

        run_sync(patch_set, RunOptions(workdir=workdir))

        assert read_file(workdir, "notes/todo.md") == "- ship\n"
