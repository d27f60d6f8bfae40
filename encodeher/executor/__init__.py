"""Process execution and management."""

from encodeher.executor.subprocess import AsyncToolProcess, ToolResult, run_tool

__all__ = [
    "AsyncToolProcess",
    "ToolResult",
    "run_tool",
]
