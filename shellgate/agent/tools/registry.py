"""Tool registry for dynamic tool management."""

from typing import Any

from loguru import logger

from shellgate.agent.tools.base import Tool, ToolDisplay, ToolResult
from shellgate.config.schema import ShellToolConfig
from shellgate.exec.types import ApprovalProvider


class ToolRegistry:
    """
    Registry for agent tools.

    Allows dynamic registration and execution of tools.
    """

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool. Names must be unique."""
        if tool.name in self._tools:
            raise ValueError(f'Tool "{tool.name}" is already registered.')
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """Unregister a tool by name."""
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def list_tools(self) -> list[Tool]:
        """All registered tools, in registration order."""
        return list(self._tools.values())

    def get_definitions(self) -> list[dict[str, Any]]:
        """Get all tool definitions in OpenAI format."""
        return [tool.to_schema() for tool in self._tools.values()]

    def validate_tool_call(self, name: str, params: dict[str, Any]) -> str | None:
        """Validate required params against the tool schema before execution."""
        tool = self._tools.get(name)
        if not tool:
            return f"Error: Tool '{name}' not found"

        if not isinstance(params, dict):
            return f"Error: Invalid parameters for tool '{name}'"

        required = tool.parameters.get("required")
        if not isinstance(required, list):
            return None

        missing: list[str] = []
        for key in required:
            if not isinstance(key, str):
                continue
            value = params.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(key)

        if missing:
            joined = ", ".join(sorted(set(missing)))
            return f"Error: Missing required parameter(s) for '{name}': {joined}"
        return None

    async def execute(self, name: str, params: dict[str, Any]) -> ToolResult:
        """
        Execute a tool by name with given parameters.

        Args:
            name: Tool name.
            params: Tool parameters.

        Returns:
            Tool result; lookup, validation and unexpected tool errors are
            reported as error results rather than raised.
        """
        validation_error = self.validate_tool_call(name, params)
        if validation_error:
            return ToolResult.failure(
                validation_error,
                ToolDisplay(message=f"Invalid call to {name}", tone="error", details=validation_error),
            )

        tool = self._tools[name]
        try:
            return await tool.execute(**params)
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            error = f"Error executing {name}: {str(e)}"
            return ToolResult.failure(error, ToolDisplay(message=error, tone="error"))

    @property
    def tool_names(self) -> list[str]:
        """Get list of registered tool names."""
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


def create_default_registry(
    config: ShellToolConfig | None = None,
    approval_provider: ApprovalProvider | None = None,
    include_shell: bool = True,
) -> ToolRegistry:
    """Registry with the built-in tools."""
    from shellgate.agent.tools.shell import ShellTool

    registry = ToolRegistry()
    if include_shell:
        registry.register(ShellTool(config=config, approval_provider=approval_provider))
    return registry
