"""Type definitions for guarded command execution."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Literal, Protocol

# Risk levels
RiskLevel = Literal["low", "external"]

# Reasons a command reaches beyond the local sandbox
ReasonTag = Literal[
    "network",
    "package-manager",
    "remote-source-control",
    "container-runtime",
    "url-detected",
    "remote-filesystem",
]

# Approval scopes
ApprovalScope = Literal["once", "session"]

# Approval outcomes
ApprovalOutcome = Literal["allow", "deny"]


@dataclass(frozen=True)
class RiskAssessment:
    """Risk level of a command and the reasons behind it."""
    level: RiskLevel
    reasons: frozenset[ReasonTag] = frozenset()


@dataclass(frozen=True)
class CommandAnalysis:
    """Analysis of a shell command, derived only from the command string."""
    command: str
    sanitized_command: str
    tokens: tuple[str, ...]
    risk: RiskAssessment


@dataclass
class SandboxOptions:
    """Options for sandboxed execution. Unset fields use executor defaults."""
    cwd: str | None = None
    timeout_ms: int | None = None
    env: dict[str, str] | None = None
    max_buffer: int | None = None
    shell_path: str | None = None


@dataclass
class SandboxResult:
    """Captured output of a sandboxed command.

    ``exit_code`` and ``signal`` are both None only for aborted runs
    (buffer overflow).
    """
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    signal: str | None = None


@dataclass
class ApprovalRequest:
    """A request for a human decision on a risky command."""
    command: str
    analysis: CommandAnalysis
    sandbox: SandboxOptions = field(default_factory=SandboxOptions)


@dataclass
class ApprovalDecision:
    """A decision made by the approval surface (never by shellgate itself)."""
    allow: bool
    scope: ApprovalScope | None = None
    reason: str | None = None


@dataclass
class ApprovalResult:
    """What a suspended approval request resolves to."""
    decision: ApprovalOutcome
    scope: ApprovalScope | None = None
    reason: str | None = None

    @property
    def allowed(self) -> bool:
        return self.decision == "allow"


@dataclass
class PendingApproval:
    """A pending approval request."""
    id: str
    request: ApprovalRequest
    future: asyncio.Future
    cache_key: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class ApprovalRequestEvent:
    """Emitted when a request starts waiting for a decision."""
    id: str
    request: ApprovalRequest
    created_at: datetime


@dataclass
class ApprovalResolvedEvent:
    """Emitted when a pending request is answered or cancelled."""
    id: str
    decision: ApprovalDecision
    result: ApprovalResult
    resolved_at: datetime


class ApprovalProvider(Protocol):
    """Anything that can turn an approval request into a result."""

    def request_approval(self, request: ApprovalRequest) -> Awaitable[ApprovalResult]:
        ...
