"""
Patch module for PatchGate.

Typed representation of the file mutations an agent proposes.
"""

from patchgate.patches.models import (
    AnyPatch,
    ApplyResult,
    BlockedPatch,
    CreatePatch,
    DeletePatch,
    FilePatch,
    InvalidPatch,
    PatchError,
    PatchSet,
    RenamePatch,
    RunResult,
    SkippedPatch,
    UpdatePatch,
    parse_patch,
)

__all__ = [
    "AnyPatch", "FilePatch", "CreatePatch", "UpdatePatch", "DeletePatch", "RenamePatch", "InvalidPatch",
    "PatchSet", "parse_patch",
    "ApplyResult", "RunResult", "SkippedPatch", "PatchError", "BlockedPatch",
]
