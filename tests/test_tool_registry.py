"""Tests for ToolRegistry."""

from typing import Any

import pytest

from shellgate.agent.tools.base import Tool, ToolResult
from shellgate.agent.tools.registry import ToolRegistry, create_default_registry
from shellgate.agent.tools.shell import ShellTool
from shellgate.config.schema import ShellToolConfig


# ── Helpers ─────────────────────────────────────────────────────────


class DummyTool(Tool):
    """Minimal tool for testing."""

    def __init__(self, name: str = "dummy", fail: bool = False):
        self._name = name
        self._fail = fail

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "A dummy tool for testing"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "action": {"type": "string", "enum": ["go", "stop"]},
            },
            "required": ["action"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        if self._fail:
            raise RuntimeError("kaboom")
        return ToolResult(output=f"executed:{kwargs}")


# ── ToolRegistry ────────────────────────────────────────────────────


class TestToolRegistry:
    def test_register_and_get(self):
        reg = ToolRegistry()
        tool = DummyTool("test_tool")
        reg.register(tool)

        assert reg.has("test_tool")
        assert reg.get("test_tool") is tool
        assert "test_tool" in reg
        assert len(reg) == 1
        assert reg.list_tools() == [tool]

    def test_register_duplicate_raises(self):
        reg = ToolRegistry()
        reg.register(DummyTool("x"))
        with pytest.raises(ValueError, match="already registered"):
            reg.register(DummyTool("x"))

    def test_unregister(self):
        reg = ToolRegistry()
        reg.register(DummyTool("x"))
        reg.unregister("x")
        assert not reg.has("x")
        assert len(reg) == 0

    def test_unregister_nonexistent(self):
        reg = ToolRegistry()
        reg.unregister("nope")  # should not raise

    def test_tool_names(self):
        reg = ToolRegistry()
        reg.register(DummyTool("alpha"))
        reg.register(DummyTool("beta"))
        assert sorted(reg.tool_names) == ["alpha", "beta"]

    def test_get_definitions(self):
        reg = ToolRegistry()
        reg.register(DummyTool("my_tool"))
        defs = reg.get_definitions()
        assert len(defs) == 1
        assert defs[0]["type"] == "function"
        assert defs[0]["function"]["name"] == "my_tool"

    def test_validate_missing_required(self):
        reg = ToolRegistry()
        reg.register(DummyTool("t"))
        error = reg.validate_tool_call("t", {})
        assert error is not None
        assert "action" in error

    def test_validate_empty_string_required(self):
        reg = ToolRegistry()
        reg.register(DummyTool("t"))
        error = reg.validate_tool_call("t", {"action": "  "})
        assert error is not None

    def test_validate_valid(self):
        reg = ToolRegistry()
        reg.register(DummyTool("t"))
        assert reg.validate_tool_call("t", {"action": "go"}) is None

    def test_validate_unknown_tool(self):
        reg = ToolRegistry()
        error = reg.validate_tool_call("nope", {"a": 1})
        assert "not found" in error

    def test_validate_invalid_params_type(self):
        reg = ToolRegistry()
        reg.register(DummyTool("t"))
        error = reg.validate_tool_call("t", "not a dict")
        assert "Invalid parameters" in error

    @pytest.mark.asyncio
    async def test_execute_success(self):
        reg = ToolRegistry()
        reg.register(DummyTool("t"))
        result = await reg.execute("t", {"action": "go"})
        assert "executed" in result.output
        assert result.ok

    @pytest.mark.asyncio
    async def test_execute_unknown_tool(self):
        reg = ToolRegistry()
        result = await reg.execute("missing", {})
        assert "not found" in result.error

    @pytest.mark.asyncio
    async def test_execute_validation_error(self):
        reg = ToolRegistry()
        reg.register(DummyTool("t"))
        result = await reg.execute("t", {})
        assert "Missing required" in result.error
        assert result.display.tone == "error"

    @pytest.mark.asyncio
    async def test_execute_tool_exception(self):
        reg = ToolRegistry()
        reg.register(DummyTool("t", fail=True))
        result = await reg.execute("t", {"action": "go"})
        assert result.error == "Error executing t: kaboom"


# ── create_default_registry ─────────────────────────────────────────


class TestDefaultRegistry:
    def test_includes_shell(self):
        config = ShellToolConfig(timeout_ms=42)
        reg = create_default_registry(config=config)

        tool = reg.get("shell")
        assert isinstance(tool, ShellTool)
        assert tool.config.timeout_ms == 42
        assert tool.approval_provider is None

    def test_without_shell(self):
        assert len(create_default_registry(include_shell=False)) == 0

    @pytest.mark.asyncio
    async def test_empty_shell_command_rejected_by_validation(self):
        reg = create_default_registry()
        result = await reg.execute("shell", {"command": "   "})
        assert "Missing required" in result.error


# ── ToolResult ──────────────────────────────────────────────────────


class TestToolResult:
    def test_to_dict_minimal(self):
        assert ToolResult(output="hi").to_dict() == {"output": "hi"}

    def test_failure(self):
        result = ToolResult.failure("bad")
        assert result.output == ""
        assert result.to_dict() == {"output": "", "error": "bad"}
        assert not result.ok
