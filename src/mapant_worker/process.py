"""External command execution."""

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .errors import SpawnError, ToolError, ToolTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of one external command invocation."""

    exit_code: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")

    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


def run(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: str | Path | None = None,
    timeout: float | None = None,
) -> ExecutionResult:
    """
    Run a command and wait for it to exit.

    Arguments are passed as an argv list, never through a shell. A non-zero
    exit code is returned, not raised; callers decide what counts as failure.

    Args:
        command: Executable name or path
        args: Arguments passed as discrete tokens
        cwd: Working directory for the child process
        timeout: Seconds before the child is killed, None to wait indefinitely

    Returns:
        Exit code and fully captured output streams

    Raises:
        SpawnError: If the command cannot be started
        ToolTimeoutError: If ``timeout`` is set and exceeded
    """
    argv = [command, *args]
    logger.debug(f"Running {argv}")

    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise SpawnError(f"Command not found: {command}", command) from e
    except PermissionError as e:
        raise SpawnError(f"Permission denied running {command}", command) from e
    except subprocess.TimeoutExpired as e:
        raise ToolTimeoutError(command, timeout or 0.0) from e
    except OSError as e:
        raise SpawnError(f"Failed to start {command}: {e}", command) from e

    result = ExecutionResult(
        exit_code=completed.returncode,
        stdout=completed.stdout or b"",
        stderr=completed.stderr or b"",
    )

    if result.ok:
        if result.stdout:
            logger.info(f"{command} output:\n{result.stdout_text().rstrip()}")
    else:
        logger.error(
            f"{command} exited with code {result.exit_code}:\n"
            f"{result.stderr_text().rstrip()}"
        )

    return result


def require_success(result: ExecutionResult, operation: str) -> ExecutionResult:
    """Raise ToolError unless the command exited with code 0."""
    if not result.ok:
        raise ToolError(operation, result.exit_code, result.stderr_text().strip())
    return result
