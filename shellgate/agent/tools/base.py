"""Base class for agent tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

ToolDisplayTone = Literal["info", "success", "warning", "error"]


@dataclass
class ToolDisplayPreview:
    """Bounded excerpt of tool output."""
    lines: list[str] = field(default_factory=list)
    truncated: bool = False


@dataclass
class ToolDisplay:
    """How a tool result should be presented to a human."""
    message: str
    tone: ToolDisplayTone = "info"
    details: str | None = None
    metadata: dict[str, Any] | None = None
    preview: ToolDisplayPreview | None = None


@dataclass
class ToolResult:
    """Result of a tool invocation."""
    output: str
    error: str | None = None
    display: ToolDisplay | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping for the tool invocation boundary."""
        data: dict[str, Any] = {"output": self.output}
        if self.error is not None:
            data["error"] = self.error
        if self.display is not None:
            display: dict[str, Any] = {
                "message": self.display.message,
                "tone": self.display.tone,
            }
            if self.display.details is not None:
                display["details"] = self.display.details
            if self.display.metadata is not None:
                display["metadata"] = dict(self.display.metadata)
            if self.display.preview is not None:
                display["preview"] = {
                    "lines": list(self.display.preview.lines),
                    "truncated": self.display.preview.truncated,
                }
            data["display"] = display
        return data

    @classmethod
    def failure(cls, error: str, display: ToolDisplay | None = None) -> "ToolResult":
        return cls(output="", error=error, display=display)


class Tool(ABC):
    """
    Abstract base class for agent tools.

    Subclasses describe themselves with a JSON schema and implement
    ``execute``, which always returns a ToolResult.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in function calls."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Description shown to the model."""

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON schema of the tool parameters."""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Run the tool."""

    def to_schema(self) -> dict[str, Any]:
        """Tool definition in OpenAI function format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
