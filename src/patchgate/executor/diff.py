"""Read-only diff previews for proposed patches."""

import difflib
import logging
from pathlib import Path

from patchgate.patches.models import AnyPatch, InvalidPatch

logger = logging.getLogger(__name__)


def _line_count(content: str) -> int:
    return len(content.splitlines())


def generate_diff(patch: AnyPatch, workdir: Path) -> str:
    """Render a patch for human review. Never writes to disk."""
    if isinstance(patch, InvalidPatch):
        return f"[!] INVALID  {patch.path}: {patch.error}"
    if patch.op == "delete":
        return f"[-] DELETE  {patch.path}"
    if patch.op == "rename":
        return f"[~] RENAME  {patch.path} → {patch.new_path}"
    if patch.op == "create":
        return f"[+] CREATE  {patch.path} ({_line_count(patch.content)} lines)"

    target = Path(workdir) / patch.path
    before = target.read_text(encoding="utf-8", errors="replace") if target.is_file() else ""
    lines = difflib.unified_diff(
        before.splitlines(),
        patch.content.splitlines(),
        fromfile=f"a/{patch.path}",
        tofile=f"b/{patch.path}",
        lineterm="",
    )
    diff = "\n".join(lines)
    return diff or f"[=] UNCHANGED  {patch.path}"
