"""CLI commands for shellgate."""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from shellgate import __logo__, __version__
from shellgate.agent.tools.base import ToolResult
from shellgate.agent.tools.shell import ShellTool
from shellgate.config.loader import load_config
from shellgate.config.schema import ShellToolConfig
from shellgate.exec.approvals import ApprovalBroker
from shellgate.exec.safety import analyze_command, describe_reasons
from shellgate.exec.types import ApprovalDecision, ApprovalRequestEvent

app = typer.Typer(
    name="shellgate",
    help=f"{__logo__} shellgate - guarded shell execution for AI agents",
    no_args_is_help=True,
)

console = Console()

TONE_STYLES = {
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}

RESET_COMMANDS = {"/reset"}
EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit"}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} shellgate v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route loguru output to stderr at the requested verbosity."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
):
    """shellgate - guarded shell execution for AI agents."""
    configure_logging(verbose)


# ============================================================================
# Helpers
# ============================================================================


def _build_tool(
    config_path: Path | None,
    timeout_ms: int | None,
    cwd: str | None,
) -> ShellTool:
    config = load_config(config_path).tools.shell
    updates = {}
    if timeout_ms is not None:
        updates["timeout_ms"] = timeout_ms
    if cwd is not None:
        updates["working_dir"] = cwd
    if updates:
        config = ShellToolConfig.model_validate({**config.model_dump(), **updates})
    return ShellTool(config=config, approval_provider=ApprovalBroker())


def _print_request(event: ApprovalRequestEvent) -> None:
    risk = event.request.analysis.risk
    console.print(f"\n[bold yellow]Approval required[/bold yellow] ({event.id})")
    console.print(f"  Command: [bold]{escape(event.request.analysis.sanitized_command)}[/bold]")
    console.print(f"  Reason:  {describe_reasons(risk.reasons)}")


async def _prompt_decision(broker: ApprovalBroker, event: ApprovalRequestEvent) -> None:
    _print_request(event)
    choice = await asyncio.to_thread(
        Prompt.ask,
        "Allow this command?",
        choices=["once", "session", "deny"],
        default="deny",
        console=console,
    )
    if choice == "deny":
        broker.respond(event.id, ApprovalDecision(allow=False))
    else:
        broker.respond(event.id, ApprovalDecision(allow=True, scope=choice))


def attach_prompt(broker: ApprovalBroker, auto_approve: bool = False):
    """Answer approval requests from the terminal. Returns an unsubscribe callable."""
    loop = asyncio.get_running_loop()
    prompts: set[asyncio.Task] = set()

    def on_request(event: ApprovalRequestEvent) -> None:
        if auto_approve:
            broker.respond(event.id, ApprovalDecision(allow=True, scope="once"))
            return
        task = loop.create_task(_prompt_decision(broker, event))
        prompts.add(task)
        task.add_done_callback(prompts.discard)

    return broker.on_request(on_request)


def print_result(result: ToolResult) -> None:
    display = result.display
    if result.output:
        console.print(result.output, markup=False, highlight=False)
    if display is not None:
        style = TONE_STYLES.get(display.tone, "white")
        console.print(f"[{style}]{escape(display.message)}[/{style}]")
    if result.error:
        console.print(f"[red]{escape(result.error)}[/red]", highlight=False)


async def _run_once(tool: ShellTool, command: str, auto_approve: bool) -> ToolResult:
    unsubscribe = attach_prompt(tool.approval_provider, auto_approve)
    try:
        return await tool.execute(command=command)
    finally:
        unsubscribe()


# ============================================================================
# Commands
# ============================================================================


@app.command()
def analyze(command: str = typer.Argument(..., help="Command to classify")):
    """Classify the risk of a command without running it."""
    analysis = analyze_command(command)

    table = Table(title="Command analysis")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    level_style = "green" if analysis.risk.level == "low" else "yellow"
    table.add_row("Command", analysis.sanitized_command)
    table.add_row("Tokens", ", ".join(analysis.tokens) or "-")
    table.add_row("Risk", f"[{level_style}]{analysis.risk.level}[/{level_style}]")
    table.add_row("Reasons", ", ".join(sorted(analysis.risk.reasons)) or "-")

    console.print(table)


@app.command()
def run(
    command: str = typer.Argument(..., help="Command to execute"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Approve external commands once without asking"),
    timeout_ms: int = typer.Option(None, "--timeout-ms", min=1, help="Timeout in milliseconds"),
    cwd: str = typer.Option(None, "--cwd", help="Working directory"),
    config: Path = typer.Option(None, "--config", help="Path to config file"),
):
    """Run a single command through the guarded shell tool."""
    tool = _build_tool(config, timeout_ms, cwd)
    result = asyncio.run(_run_once(tool, command, yes))
    print_result(result)
    if not result.ok:
        raise typer.Exit(1)


@app.command()
def repl(
    config: Path = typer.Option(None, "--config", help="Path to config file"),
):
    """Interactive session. Type /reset to cancel approvals and forget session approvals."""
    tool = _build_tool(config, None, None)
    broker = tool.approval_provider

    async def session() -> None:
        unsubscribe = attach_prompt(broker)
        try:
            while True:
                try:
                    line = await asyncio.to_thread(console.input, "[bold cyan]$ [/bold cyan]")
                except EOFError:
                    break

                command = line.strip()
                if not command:
                    continue
                if command in EXIT_COMMANDS:
                    break
                if command in RESET_COMMANDS:
                    cancelled = broker.reset("Conversation reset")
                    console.print(f"[dim]Session reset ({cancelled} pending cancelled)[/dim]")
                    continue

                print_result(await tool.execute(command=command))
        finally:
            broker.reset("Session closed")
            unsubscribe()

    console.print(f"{__logo__} shellgate v{__version__} - type 'exit' to quit")
    asyncio.run(session())


if __name__ == "__main__":
    app()
