"""Configuration schema using Pydantic."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shellgate.exec.types import SandboxOptions


class ShellToolConfig(BaseModel):
    """Shell tool configuration."""
    timeout_ms: int = Field(default=5000, gt=0)  # wall-clock limit per command
    max_buffer_bytes: int = Field(default=1024 * 1024, gt=0)  # per stream
    working_dir: str | None = None  # defaults to the current directory
    shell_path: str | None = None  # defaults to $SHELL, then bash
    env: dict[str, str] = Field(default_factory=dict)  # layered over the sandbox env
    preview_head_lines: int = Field(default=5, ge=0)
    preview_tail_lines: int = Field(default=2, ge=0)
    preview_max_line_length: int = Field(default=160, gt=1)

    def to_sandbox_options(self) -> SandboxOptions:
        """Sandbox options derived from this config."""
        return SandboxOptions(
            cwd=self.working_dir,
            timeout_ms=self.timeout_ms,
            env=dict(self.env) or None,
            max_buffer=self.max_buffer_bytes,
            shell_path=self.shell_path,
        )


class ToolsConfig(BaseModel):
    """Tools configuration."""
    shell: ShellToolConfig = Field(default_factory=ShellToolConfig)


class Config(BaseSettings):
    """Root configuration for shellgate."""
    tools: ToolsConfig = Field(default_factory=ToolsConfig)

    model_config = SettingsConfigDict(
        env_prefix="SHELLGATE_",
        env_nested_delimiter="__",
    )
