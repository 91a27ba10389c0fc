"""Command tokenization and risk classification."""

import re

from shellgate.exec.types import CommandAnalysis, ReasonTag, RiskAssessment

# Tools that talk to the network on their own
NETWORK_COMMANDS = frozenset([
    "curl", "wget", "http", "https", "ftp", "scp", "ssh", "sftp", "rsync",
    "ping", "nc", "ncat", "netcat", "telnet", "dig", "nslookup",
])

PACKAGE_COMMANDS = frozenset([
    "npm", "pnpm", "yarn", "pip", "pip3", "poetry", "cargo", "brew",
    "apt", "apt-get", "yum", "dnf", "apk", "pacman", "conda", "gem",
    "bundle", "bundler", "composer",
])

SOURCE_CONTROL_COMMANDS = frozenset([
    "git", "hg", "mercurial", "svn", "bzr", "p4",
])

CONTAINER_COMMANDS = frozenset([
    "docker", "podman", "kubectl", "helm", "minikube", "nerdctl",
])

# Subcommands that make the tools above reach outside the machine
PACKAGE_MUTATIONS = frozenset(["install", "add", "upgrade", "update"])
SOURCE_CONTROL_REMOTES = frozenset(["clone", "fetch", "pull", "push", "remote"])
CONTAINER_OPERATIONS = frozenset(["pull", "run", "push", "login", "build"])

URL_PATTERN = re.compile(r"https?://", re.IGNORECASE)
REMOTE_FS_PATTERN = re.compile(r"scp://|sftp://", re.IGNORECASE)

_REASON_LABELS: dict[str, str] = {
    "network": "uses a network tool",
    "package-manager": "installs or updates packages",
    "remote-source-control": "talks to a source-control remote",
    "container-runtime": "runs a container operation",
    "url-detected": "contains a URL",
    "remote-filesystem": "references a remote filesystem",
}


def tokenize(command: str) -> list[str]:
    """
    Split a command into shell-like tokens.

    This is a heuristic lexer for risk checks only. Quotes group text
    literally, a backslash takes the next character as-is (inside quotes too),
    and unterminated quotes are flushed at end of input.
    """
    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None
    escaping = False

    def flush() -> None:
        if current:
            tokens.append("".join(current))
            current.clear()

    for char in command:
        if escaping:
            current.append(char)
            escaping = False
            continue

        if char == "\\":
            escaping = True
            continue

        if quote:
            if char == quote:
                quote = None
            else:
                current.append(char)
            continue

        if char in ('"', "'"):
            quote = char
            flush()
            continue

        if char.isspace():
            flush()
            continue

        current.append(char)

    flush()
    return [token.strip() for token in tokens if token.strip()]


def _followed_by(tokens: list[str], commands: frozenset[str], subcommands: frozenset[str]) -> bool:
    """Check whether a command token is immediately followed by one of the subcommands."""
    for index, token in enumerate(tokens[:-1]):
        if token in commands and tokens[index + 1] in subcommands:
            return True
    return False


def assess_risk(tokens: list[str], sanitized_command: str) -> RiskAssessment:
    """Derive the risk level from tokens and the sanitized command."""
    reasons: set[ReasonTag] = set()

    if any(token in NETWORK_COMMANDS for token in tokens):
        reasons.add("network")

    if _followed_by(tokens, PACKAGE_COMMANDS, PACKAGE_MUTATIONS):
        reasons.add("package-manager")

    if _followed_by(tokens, SOURCE_CONTROL_COMMANDS, SOURCE_CONTROL_REMOTES):
        reasons.add("remote-source-control")

    if _followed_by(tokens, CONTAINER_COMMANDS, CONTAINER_OPERATIONS):
        reasons.add("container-runtime")

    if URL_PATTERN.search(sanitized_command):
        reasons.add("url-detected")

    if REMOTE_FS_PATTERN.search(sanitized_command):
        reasons.add("remote-filesystem")

    return RiskAssessment(
        level="external" if reasons else "low",
        reasons=frozenset(reasons),
    )


def analyze_command(command: str) -> CommandAnalysis:
    """
    Analyze a shell command for risk.

    Pure function of the input: nothing is executed and the filesystem
    is never touched.
    """
    sanitized = command.strip()
    tokens = tokenize(sanitized)

    return CommandAnalysis(
        command=command,
        sanitized_command=sanitized,
        tokens=tuple(tokens),
        risk=assess_risk(tokens, sanitized),
    )


def describe_reasons(reasons: frozenset[str] | set[str]) -> str:
    """Human-readable summary of risk reasons, in a stable order."""
    if not reasons:
        return "no external access detected"
    return ", ".join(_REASON_LABELS.get(reason, reason) for reason in sorted(reasons))
