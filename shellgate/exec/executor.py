"""Sandboxed command executor."""

import asyncio
import os
import platform
import shutil
import signal
import subprocess
import tempfile

from loguru import logger

from shellgate.exec.types import SandboxOptions, SandboxResult

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_MAX_BUFFER = 1024 * 1024  # 1 MiB per stream
UNIX_SANDBOX_PATH = "/usr/bin:/bin:/usr/local/bin"
SCRATCH_PREFIX = "shellgate-home-"

_READ_CHUNK = 64 * 1024
_REAP_TIMEOUT = 2.0
_IS_WINDOWS = platform.system() == "Windows"


class SandboxError(Exception):
    """Raised when a sandboxed command is aborted or cannot be started."""

    def __init__(self, message: str, result: SandboxResult | None = None):
        super().__init__(message)
        self.message = message
        self.result = result


class _StreamOverflow(Exception):
    def __init__(self, stream: str):
        super().__init__(stream)
        self.stream = stream


class _StreamBuffer:
    """Byte buffer for one output stream, bounded by a cap."""

    def __init__(self, name: str, limit: int):
        self.name = name
        self.limit = limit
        self._chunks: list[bytes] = []
        self._size = 0

    def append(self, chunk: bytes) -> None:
        if self._size + len(chunk) > self.limit:
            raise _StreamOverflow(self.name)
        self._chunks.append(chunk)
        self._size += len(chunk)

    def text(self) -> str:
        return b"".join(self._chunks).decode("utf-8", errors="replace")


def create_scratch_home() -> str:
    """Create a uniquely named scratch directory to act as HOME."""
    return tempfile.mkdtemp(prefix=SCRATCH_PREFIX)


def cleanup_scratch_home(path: str) -> None:
    """Remove a scratch home. Failures are logged, never raised."""
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.debug(f"Could not remove sandbox home {path}: {e}")


def build_sandbox_env(home: str, overrides: dict[str, str] | None = None) -> dict[str, str]:
    """Build the minimal environment handed to sandboxed commands."""
    env = {
        "PATH": os.environ.get("PATH", "") if _IS_WINDOWS else UNIX_SANDBOX_PATH,
        "HOME": home,
        "USER": "sandbox",
        "LOGNAME": "sandbox",
        "LANG": os.environ.get("LANG") or "C.UTF-8",
        "TERM": os.environ.get("TERM") or "xterm-256color",
    }

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, str):
                env[key] = value

    return env


def resolve_shell(shell_path: str | None = None) -> str | None:
    """Pick the interpreter for commands. None means the platform shell."""
    if shell_path:
        return shell_path
    if _IS_WINDOWS:
        return None
    return os.environ.get("SHELL") or shutil.which("bash") or "/bin/sh"


async def _spawn(command: str, cwd: str, env: dict[str, str], shell: str | None):
    if shell is None:
        return await asyncio.create_subprocess_shell(
            command,
            stdin=subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
        )

    return await asyncio.create_subprocess_exec(
        shell, "-c", command,
        stdin=subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        env=env,
        start_new_session=not _IS_WINDOWS,
    )


def _kill(process: asyncio.subprocess.Process) -> None:
    """Forcibly terminate the child and, on POSIX, its process group."""
    try:
        if _IS_WINDOWS:
            if process.returncode is None:
                process.kill()
        else:
            os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        if process.returncode is None:
            process.kill()


async def _pump(stream: asyncio.StreamReader, buffer: _StreamBuffer) -> None:
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        buffer.append(chunk)


async def _drain(stream: asyncio.StreamReader) -> None:
    while await stream.read(_READ_CHUNK):
        pass


async def _reap(process: asyncio.subprocess.Process) -> None:
    """Wait for a killed child, discarding whatever output is still buffered."""
    try:
        await asyncio.wait_for(
            asyncio.gather(_drain(process.stdout), _drain(process.stderr), process.wait()),
            timeout=_REAP_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.debug(f"Sandbox child {process.pid} still holds its pipes after kill")


def _signal_name(returncode: int) -> str:
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"SIG{-returncode}"


async def _run(
    command: str,
    cwd: str,
    env: dict[str, str],
    shell: str | None,
    timeout_ms: int,
    max_buffer: int,
) -> SandboxResult:
    try:
        process = await _spawn(command, cwd, env, shell)
    except OSError as e:
        raise SandboxError(str(e)) from e

    stdout = _StreamBuffer("stdout", max_buffer)
    stderr = _StreamBuffer("stderr", max_buffer)
    tasks = [
        asyncio.create_task(_pump(process.stdout, stdout)),
        asyncio.create_task(_pump(process.stderr, stderr)),
        asyncio.create_task(process.wait()),
    ]

    try:
        done, pending = await asyncio.wait(
            tasks,
            timeout=timeout_ms / 1000,
            return_when=asyncio.FIRST_EXCEPTION,
        )
    except asyncio.CancelledError:
        _kill(process)
        for task in tasks:
            task.cancel()
        raise

    overflow: _StreamOverflow | None = None
    for task in done:
        if task.cancelled():
            continue
        error = task.exception()
        if isinstance(error, _StreamOverflow):
            overflow = error
        elif error is not None:
            raise SandboxError(str(error)) from error

    if overflow is None and not pending:
        returncode = process.returncode
        return SandboxResult(
            stdout=stdout.text(),
            stderr=stderr.text(),
            exit_code=returncode if returncode >= 0 else None,
            signal=_signal_name(returncode) if returncode < 0 else None,
        )

    # Aborted: whichever check fired first decides, the rest are discarded
    _kill(process)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    await _reap(process)

    if overflow is not None:
        logger.warning(f"Sandbox {overflow.stream} exceeded {max_buffer} bytes: {command[:80]}")
        raise SandboxError(
            f"Sandbox {overflow.stream} exceeded {max_buffer} bytes",
            SandboxResult(stdout=stdout.text(), stderr=stderr.text()),
        )

    logger.warning(f"Sandbox timed out after {timeout_ms}ms: {command[:80]}")
    raise SandboxError(f"Command timed out after {timeout_ms}ms")


async def execute_sandboxed(command: str, options: SandboxOptions | None = None) -> SandboxResult:
    """
    Run a command in a scratch environment with a timeout and output caps.

    Steps:
    1. Create a scratch HOME directory
    2. Build a minimal environment (plus caller overrides)
    3. Spawn the command under a shell with stdin closed
    4. Capture stdout/stderr, aborting if either exceeds the byte cap
    5. Kill the command if the wall-clock timeout expires
    6. Always remove the scratch directory

    Raises:
        SandboxError: On timeout (no result), overflow (partial result)
            or spawn failure.
        ValueError: On a negative timeout or buffer cap.
    """
    options = options or SandboxOptions()
    timeout_ms = DEFAULT_TIMEOUT_MS if options.timeout_ms is None else options.timeout_ms
    max_buffer = DEFAULT_MAX_BUFFER if options.max_buffer is None else options.max_buffer
    if timeout_ms < 0:
        raise ValueError(f"timeout_ms must be >= 0, got {timeout_ms}")
    if max_buffer < 0:
        raise ValueError(f"max_buffer must be >= 0, got {max_buffer}")
    cwd = options.cwd or os.getcwd()
    shell = resolve_shell(options.shell_path)

    home = create_scratch_home()
    try:
        env = build_sandbox_env(home, options.env)
        logger.debug(f"Sandbox spawn: shell={shell or 'platform default'}, cwd={cwd}, home={home}")
        return await _run(command, cwd, env, shell, timeout_ms, max_buffer)
    finally:
        cleanup_scratch_home(home)
