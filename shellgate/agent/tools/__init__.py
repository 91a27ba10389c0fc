"""Agent tools."""

from shellgate.agent.tools.base import Tool, ToolDisplay, ToolDisplayPreview, ToolResult
from shellgate.agent.tools.preview import create_output_preview
from shellgate.agent.tools.registry import ToolRegistry, create_default_registry
from shellgate.agent.tools.shell import ShellTool

__all__ = [
    "Tool",
    "ToolDisplay",
    "ToolDisplayPreview",
    "ToolResult",
    "create_output_preview",
    "ToolRegistry",
    "create_default_registry",
    "ShellTool",
]
