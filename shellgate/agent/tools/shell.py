"""Guarded shell execution tool with approval workflow."""

from typing import Any

from loguru import logger

from shellgate.agent.tools.base import Tool, ToolDisplay, ToolDisplayPreview, ToolResult
from shellgate.agent.tools.preview import create_output_preview
from shellgate.config.schema import ShellToolConfig
from shellgate.exec import executor
from shellgate.exec.executor import SandboxError
from shellgate.exec.safety import analyze_command, describe_reasons
from shellgate.exec.types import (
    ApprovalProvider,
    ApprovalRequest,
    ApprovalResult,
    CommandAnalysis,
    SandboxResult,
)

EMPTY_COMMAND_ERROR = 'Shell tool requires a non-empty string "command" property.'


class ShellTool(Tool):
    """
    Shell command execution tool.

    Features:
    - Risk classification of every command (low / external)
    - External commands wait for a human decision via an approval provider
    - Execution in a scratch HOME with a minimal environment
    - Timeout and per-stream output caps
    - Bounded head/tail previews for display
    """

    def __init__(
        self,
        config: ShellToolConfig | None = None,
        approval_provider: ApprovalProvider | None = None,
    ):
        self.config = config or ShellToolConfig()
        self._approval_provider = approval_provider

    @property
    def name(self) -> str:
        return "shell"

    @property
    def description(self) -> str:
        return (
            "Execute a shell command and return stdout/stderr. "
            "Commands run in a scratch home directory with a minimal environment "
            f"and a {self.config.timeout_ms}ms timeout. Commands that use the network, "
            "install packages, contact source-control remotes or run containers "
            "require user approval."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "Command string to execute",
                },
            },
            "required": ["command"],
        }

    @property
    def approval_provider(self) -> ApprovalProvider | None:
        return self._approval_provider

    def set_approval_provider(self, provider: ApprovalProvider | None) -> None:
        """Set the approval provider (the UI layer's broker)."""
        self._approval_provider = provider

    async def execute(self, command: Any = None, **kwargs: Any) -> ToolResult:
        """Classify, gate and run a command."""
        if not isinstance(command, str) or not command.strip():
            return ToolResult.failure(
                EMPTY_COMMAND_ERROR,
                ToolDisplay(message="Invalid shell command", tone="error", details=EMPTY_COMMAND_ERROR),
            )

        analysis = analyze_command(command)
        sandbox_options = self.config.to_sandbox_options()
        logger.info(
            f"Shell request: {analysis.sanitized_command[:80]} "
            f"(risk={analysis.risk.level}, reasons={sorted(analysis.risk.reasons)})"
        )

        approval: ApprovalResult | None = None
        if analysis.risk.level == "external":
            if self._approval_provider is None:
                error = (
                    f'Command "{analysis.sanitized_command}" requires approval '
                    f"({describe_reasons(analysis.risk.reasons)}), "
                    "but no approval provider is configured."
                )
                logger.warning(error)
                return ToolResult.failure(
                    error,
                    ToolDisplay(
                        message="Shell command requires approval",
                        tone="error",
                        details=error,
                        metadata=self._metadata(analysis),
                    ),
                )

            try:
                approval = await self._approval_provider.request_approval(
                    ApprovalRequest(command=command, analysis=analysis, sandbox=sandbox_options)
                )
            except Exception as e:
                logger.exception(f"Approval request failed: {analysis.sanitized_command[:80]}")
                error = f"Approval failed: {e}"
                return ToolResult.failure(
                    error,
                    ToolDisplay(
                        message="Shell command approval failed",
                        tone="error",
                        details=error,
                        metadata=self._metadata(analysis),
                    ),
                )
            if not approval.allowed:
                return self._denied(analysis, approval)

        try:
            result = await executor.execute_sandboxed(command, sandbox_options)
        except SandboxError as e:
            return self._sandbox_failure(analysis, e, approval)

        return self._success(analysis, result, approval)

    # ── Result shaping ──────────────────────────────────────────────

    def _preview(self, content: str) -> ToolDisplayPreview | None:
        return create_output_preview(
            content,
            head_lines=self.config.preview_head_lines,
            tail_lines=self.config.preview_tail_lines,
            max_line_length=self.config.preview_max_line_length,
        )

    @staticmethod
    def _metadata(
        analysis: CommandAnalysis,
        result: SandboxResult | None = None,
        approval: ApprovalResult | None = None,
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "command": analysis.sanitized_command,
            "risk_level": analysis.risk.level,
            "reasons": sorted(analysis.risk.reasons),
        }
        if result is not None:
            metadata["exit_code"] = result.exit_code
            metadata["signal"] = result.signal
        if approval is not None:
            metadata["approval_scope"] = approval.scope
        return metadata

    def _denied(self, analysis: CommandAnalysis, approval: ApprovalResult) -> ToolResult:
        reason = approval.reason or f'Command "{analysis.sanitized_command}" was denied by the user.'
        logger.warning(f"Shell command denied: {reason}")
        return ToolResult.failure(
            reason,
            ToolDisplay(
                message="Shell command denied",
                tone="warning",
                details=reason,
                metadata=self._metadata(analysis),
                preview=self._preview(f"$ {analysis.sanitized_command}\n{reason}"),
            ),
        )

    def _sandbox_failure(
        self,
        analysis: CommandAnalysis,
        error: SandboxError,
        approval: ApprovalResult | None,
    ) -> ToolResult:
        partial = error.result
        preview = None
        if partial is not None:
            preview = self._preview(partial.stderr) or self._preview(partial.stdout)

        return ToolResult.failure(
            error.message,
            ToolDisplay(
                message="Shell command failed",
                tone="error",
                details=error.message,
                metadata=self._metadata(analysis, partial, approval),
                preview=preview,
            ),
        )

    def _success(
        self,
        analysis: CommandAnalysis,
        result: SandboxResult,
        approval: ApprovalResult | None,
    ) -> ToolResult:
        combined = "\n".join(part for part in (result.stdout, result.stderr) if part).strip()

        output = combined
        if result.exit_code not in (None, 0):
            output = f"{combined}\nExit code: {result.exit_code}".lstrip("\n")
        elif result.signal:
            output = f"{combined}\nTerminated by {result.signal}".lstrip("\n")

        if result.exit_code == 0:
            message, tone = "Shell command completed", "success"
        elif result.signal:
            message, tone = f"Shell command terminated by {result.signal}", "warning"
        else:
            message, tone = f"Shell command exited with code {result.exit_code}", "warning"

        return ToolResult(
            output=output,
            display=ToolDisplay(
                message=message,
                tone=tone,
                details=analysis.sanitized_command,
                metadata=self._metadata(analysis, result, approval),
                preview=self._preview(combined),
            ),
        )
