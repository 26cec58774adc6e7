"""Agent framework adapters for PatchGate."""

from patchgate.adapters.openai_tools import FileTool, ToolResult, create_file_tools, dispatch_tool_call

__all__ = ["FileTool", "ToolResult", "create_file_tools", "dispatch_tool_call"]
