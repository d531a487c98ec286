"""Allow-listed shell command execution.

Hidden design decisions:
- Only the first token of a command is checked against the allowlist
- Commands run through the platform shell (sh on POSIX, cmd.exe on Windows)
- stdout and stderr are combined, in the order the process wrote them
"""

import subprocess
from collections.abc import Collection
from pathlib import Path

from ..errors import CommandFailedError, CommandNotAllowedError


def base_command(command: str) -> str:
    """Lower-cased first token of a command line ('' for an empty command)."""
    parts = command.strip().split()
    return parts[0].lower() if parts else ""


def is_allowed(command: str, allowed_commands: Collection[str]) -> bool:
    base = base_command(command)
    return bool(base) and base in allowed_commands


def run_command(
    command: str,
    allowed_commands: Collection[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
) -> str:
    """Run a command after checking it against the allowlist.

    Args:
        command: Command line, passed to the shell as-is
        allowed_commands: Permitted first tokens (lower case)
        cwd: Working directory (None uses the current directory)
        timeout: Seconds before the process is killed (None waits forever)

    Returns:
        Combined stdout and stderr

    Raises:
        CommandNotAllowedError: Empty command or first token not allowed
        CommandFailedError: Non-zero exit or timeout; carries the output
    """
    command = command.strip()
    if not command:
        raise CommandNotAllowedError("empty command")

    base = base_command(command)
    if base not in allowed_commands:
        raise CommandNotAllowedError(f"command '{base}' is not allowed")

    try:
        completed = subprocess.run(
            command,
            shell=True,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        output = e.output or ""
        if isinstance(output, bytes):
            output = output.decode(errors="replace")
        raise CommandFailedError(
            f"command timed out after {timeout}s", output=output
        ) from e

    if completed.returncode != 0:
        raise CommandFailedError(
            f"command execution failed: exit status {completed.returncode}",
            output=completed.stdout,
            returncode=completed.returncode,
        )
    return completed.stdout
