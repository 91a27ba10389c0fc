"""Guarded command execution system."""

from shellgate.exec.types import (
    RiskLevel,
    ReasonTag,
    ApprovalScope,
    RiskAssessment,
    CommandAnalysis,
    SandboxOptions,
    SandboxResult,
    ApprovalRequest,
    ApprovalDecision,
    ApprovalResult,
    ApprovalRequestEvent,
    ApprovalResolvedEvent,
    ApprovalProvider,
)
from shellgate.exec.safety import (
    tokenize,
    analyze_command,
    describe_reasons,
)
from shellgate.exec.approvals import ApprovalBroker
from shellgate.exec.executor import (
    SandboxError,
    execute_sandboxed,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_MAX_BUFFER,
)

__all__ = [
    "RiskLevel",
    "ReasonTag",
    "ApprovalScope",
    "RiskAssessment",
    "CommandAnalysis",
    "SandboxOptions",
    "SandboxResult",
    "ApprovalRequest",
    "ApprovalDecision",
    "ApprovalResult",
    "ApprovalRequestEvent",
    "ApprovalResolvedEvent",
    "ApprovalProvider",
    "tokenize",
    "analyze_command",
    "describe_reasons",
    "ApprovalBroker",
    "SandboxError",
    "execute_sandboxed",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_MAX_BUFFER",
]
