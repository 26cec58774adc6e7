"""Patch Models for PatchGate."""

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from patchgate.core.constants import PATCH_OPERATIONS

logger = logging.getLogger(__name__)

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CreatePatch(BaseModel):
    model_config = _MODEL_CONFIG
    op: Literal["create"] = "create"
    path: str
    content: str
    reason: str | None = None


class UpdatePatch(BaseModel):
    model_config = _MODEL_CONFIG
    op: Literal["update"] = "update"
    path: str
    content: str
    reason: str | None = None


class DeletePatch(BaseModel):
    model_config = _MODEL_CONFIG
    op: Literal["delete"] = "delete"
    path: str
    reason: str | None = None


class RenamePatch(BaseModel):
    model_config = _MODEL_CONFIG
    op: Literal["rename"] = "rename"
    path: str
    new_path: str = Field(..., min_length=1)
    reason: str | None = None


class InvalidPatch(BaseModel):
    """Raw input that could not form a valid patch.

    Kept in the batch so policy still sees its path and the executor can
    report the error against it without failing sibling patches.
    """

    model_config = _MODEL_CONFIG
    op: str | None = None
    path: str = ""
    new_path: str | None = None
    reason: str | None = None
    error: str


FilePatch = Annotated[
    Union[CreatePatch, UpdatePatch, DeletePatch, RenamePatch],
    Field(discriminator="op"),
]
AnyPatch = Union[CreatePatch, UpdatePatch, DeletePatch, RenamePatch, InvalidPatch]

_FILE_PATCH_ADAPTER: TypeAdapter = TypeAdapter(FilePatch)


def _construction_error(raw: Mapping[str, Any], exc: ValidationError | None) -> str:
    op = raw.get("op")
    if op not in PATCH_OPERATIONS:
        return f"Unknown patch operation: {op!r}"
    if op in ("create", "update") and raw.get("content") is None:
        return "Missing content for write patch"
    if op == "rename" and not (raw.get("newPath") or raw.get("new_path")):
        return "Missing newPath for rename"
    if exc is not None:
        return "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
    return "Invalid patch"


def parse_patch(raw: Any) -> AnyPatch:
    """Build a typed patch from raw input; never raises for bad patch data."""
    if isinstance(raw, (CreatePatch, UpdatePatch, DeletePatch, RenamePatch, InvalidPatch)):
        return raw
    if not isinstance(raw, Mapping):
        return InvalidPatch(error=f"Patch must be an object, got {type(raw).__name__}")
    try:
        return _FILE_PATCH_ADAPTER.validate_python(dict(raw))
    except ValidationError as e:
        message = _construction_error(raw, e)
        logger.debug("Malformed patch for %r: %s", raw.get("path"), message)
        path = raw.get("path")
        new_path = raw.get("newPath", raw.get("new_path"))
        return InvalidPatch(
            op=raw.get("op") if isinstance(raw.get("op"), str) else None,
            path=path if isinstance(path, str) else "",
            new_path=new_path if isinstance(new_path, str) else None,
            reason=raw.get("reason") if isinstance(raw.get("reason"), str) else None,
            error=message,
        )


def patch_new_path(patch: AnyPatch) -> str | None:
    return getattr(patch, "new_path", None)


class PatchSet(BaseModel):
    """Ordered, identified, immutable batch of patches from one producer."""

    model_config = _MODEL_CONFIG
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=_utcnow)
    source: str | None = None
    patches: tuple[AnyPatch, ...] = ()
    blocklist: tuple[str, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _fill_id(cls, v):
        return v or str(uuid.uuid4())

    @field_validator("created_at", mode="before")
    @classmethod
    def _fill_created_at(cls, v):
        return v or _utcnow()

    @field_validator("patches", mode="before")
    @classmethod
    def _parse_patches(cls, v):
        if v is None:
            return ()
        return tuple(parse_patch(p) for p in v)

    @field_validator("blocklist", mode="before")
    @classmethod
    def _none_blocklist(cls, v):
        return () if v is None else v

    @classmethod
    def from_input(cls, data: "PatchSet | Mapping[str, Any]") -> "PatchSet":
        return data if isinstance(data, PatchSet) else cls.model_validate(dict(data))


class SkippedPatch(BaseModel):
    path: str
    reason: str


class PatchError(BaseModel):
    path: str
    message: str


class BlockedPatch(BaseModel):
    path: str
    reason: str


class ApplyResult(BaseModel):
    """Outcome of the executor for one batch."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = False
    applied: list[str] = Field(default_factory=list)
    skipped: list[SkippedPatch] = Field(default_factory=list)
    errors: list[PatchError] = Field(default_factory=list)
    snapshot_path: str | None = None

    def add_error(self, path: str, message: str) -> None:
        self.errors.append(PatchError(path=path, message=message))


class RunResult(ApplyResult):
    """ApplyResult plus everything policy refused."""

    blocked: list[BlockedPatch] = Field(default_factory=list)
