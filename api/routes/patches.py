"""
Patches Router.

Endpoints for gating, previewing and rolling back agent patches.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.deps import get_audit_logger, get_policy_config, get_snapshot_store, get_workdir
from patchgate.audit import JsonlAuditLogger
from patchgate.core.exceptions import RollbackError
from patchgate.executor import RollbackReport, SnapshotStore, generate_diff
from patchgate.patches import BlockedPatch, PatchSet, RunResult
from patchgate.pipeline import RunOptions, run
from patchgate.policy import PolicyConfig, PolicyEngine

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================


class PatchSetRequest(BaseModel):
    """Patch set as produced by an agent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    source: str | None = None
    patches: list[dict[str, Any]] = Field(..., min_length=1)
    blocklist: list[str] | None = None


class ApplyRequest(PatchSetRequest):
    """Patch set plus per-request policy switches."""

    fail_on_blocked: bool | None = None
    enable_snapshot: bool | None = None

    def to_patch_set(self) -> dict[str, Any]:
        return self.model_dump(include={"id", "source", "patches", "blocklist"})


class DiffDTO(BaseModel):
    op: str | None
    path: str
    diff: str


class PreviewResponse(BaseModel):
    diffs: list[DiffDTO]
    blocked: list[BlockedPatch]


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/patches/apply", response_model=RunResult)
async def apply_patch_set(
    request: ApplyRequest,
    policy: PolicyConfig = Depends(get_policy_config),
    audit_logger: JsonlAuditLogger = Depends(get_audit_logger),
) -> RunResult:
    """
    Policy-check and apply a patch set.

    There is no interactive preview over HTTP; call /patches/preview first.
    """
    overrides = {
        **policy.model_dump(),
        "fail_on_blocked": request.fail_on_blocked,
        "enable_snapshot": request.enable_snapshot,
    }
    options = RunOptions(workdir=get_workdir(), config=overrides, audit_logger=audit_logger)
    result = await run(request.to_patch_set(), options)
    logger.info("API apply: %d applied, %d blocked, %d errors", len(result.applied), len(result.blocked), len(result.errors))
    return result


@router.post("/patches/preview", response_model=PreviewResponse)
async def preview_patch_set(
    request: PatchSetRequest,
    policy: PolicyConfig = Depends(get_policy_config),
) -> PreviewResponse:
    """Policy check and diffs only; nothing is written."""
    patch_set = PatchSet.from_input(request.model_dump())
    result = PolicyEngine(policy).check(patch_set.patches, patch_set.blocklist)
    workdir = get_workdir()
    return PreviewResponse(
        diffs=[DiffDTO(op=p.op, path=p.path, diff=generate_diff(p, workdir)) for p in result.allowed],
        blocked=[BlockedPatch(path=v.patch.path, reason=v.reason) for v in result.blocked],
    )


@router.get("/snapshots")
async def list_snapshots(store: SnapshotStore = Depends(get_snapshot_store)) -> list[str]:
    """Snapshot ids, oldest first."""
    return [p.name for p in store.list_snapshots()]


@router.post("/snapshots/{snapshot_id}/rollback", response_model=RollbackReport)
async def rollback_snapshot(
    snapshot_id: str,
    store: SnapshotStore = Depends(get_snapshot_store),
) -> RollbackReport:
    """Restore the working directory from one snapshot."""
    try:
        snapshot_dir = store.resolve(snapshot_id)
    except RollbackError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    if not snapshot_dir.is_dir():
        raise HTTPException(status_code=404, detail=f"Snapshot not found: {snapshot_id}")

    try:
        return store.rollback(snapshot_dir)
    except RollbackError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
