"""OpenAI function-tool adapter.

Each tool call becomes a one-patch PatchSet that goes through the same
`run` entry point as everything else. No policy logic lives here.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from patchgate.patches.models import BlockedPatch, PatchError
from patchgate.pipeline import RunOptions, run

logger = logging.getLogger(__name__)


class ToolResult(BaseModel):
    ok: bool
    applied: list[str] = Field(default_factory=list)
    blocked: list[BlockedPatch] = Field(default_factory=list)
    errors: list[PatchError] = Field(default_factory=list)
    snapshot_path: str | None = None
    message: str


@dataclass(slots=True, frozen=True)
class FileTool:
    name: str
    description: str
    parameters: dict[str, Any]
    execute: Callable[[dict[str, Any]], Awaitable[ToolResult]]

    @property
    def definition(self) -> dict[str, Any]:
        """Chat Completions `tools` entry."""
        return {
            "type": "function",
            "function": {"name": self.name, "description": self.description, "parameters": self.parameters},
        }


def _string_params(*names: str) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {n: {"type": "string"} for n in names},
        "required": list(names),
    }


def create_file_tools(
    workdir: Path,
    *,
    source: str = "openai-agent",
    require_approval: bool = False,
) -> list[FileTool]:
    options = RunOptions(workdir=Path(workdir), config={"require_approval": require_approval, "enable_snapshot": True})

    async def _run_one(patch: dict[str, Any], done: str) -> ToolResult:
        result = await run({"source": source, "patches": [patch]}, options)
        if result.blocked:
            return ToolResult(ok=False, blocked=result.blocked, message="Blocked by policy")
        if result.errors:
            return ToolResult(
                ok=False, errors=result.errors, snapshot_path=result.snapshot_path,
                message=result.errors[0].message,
            )
        return ToolResult(ok=True, applied=result.applied, snapshot_path=result.snapshot_path, message=done)

    async def write_file(args: dict[str, Any]) -> ToolResult:
        return await _run_one(
            {"op": "update", "path": args.get("path"), "content": args.get("content")},
            f"Wrote {args.get('path')}",
        )

    async def delete_file(args: dict[str, Any]) -> ToolResult:
        return await _run_one({"op": "delete", "path": args.get("path")}, f"Deleted {args.get('path')}")

    async def rename_file(args: dict[str, Any]) -> ToolResult:
        return await _run_one(
            {"op": "rename", "path": args.get("path"), "newPath": args.get("newPath")},
            f"Renamed {args.get('path')} → {args.get('newPath')}",
        )

    return [
        FileTool(
            name="patchgate_write_file",
            description="Safely write/update a file with PatchGate enforcement.",
            parameters=_string_params("path", "content"),
            execute=write_file,
        ),
        FileTool(
            name="patchgate_delete_file",
            description="Safely delete a file with PatchGate enforcement.",
            parameters=_string_params("path"),
            execute=delete_file,
        ),
        FileTool(
            name="patchgate_rename_file",
            description="Safely rename/move a file with PatchGate enforcement.",
            parameters=_string_params("path", "newPath"),
            execute=rename_file,
        ),
    ]


async def dispatch_tool_call(tools: list[FileTool], name: str, args: dict[str, Any]) -> ToolResult:
    """Route one model tool call to its PatchGate tool."""
    tool = next((t for t in tools if t.name == name), None)
    if tool is None:
        logger.warning("Unknown tool call %r", name)
        return ToolResult(ok=False, message=f"Unknown tool: {name}")
    return await tool.execute(args)
