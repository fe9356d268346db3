"""Subprocess execution with timeout support."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

from layervuln.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Result of a command execution."""

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def run_command(
    cmd: list[str],
    timeout: int | None = None,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run *cmd* (never through a shell) and capture its output.

    A missing executable is reported as return code 127 and a timeout as
    ``timed_out=True``; neither raises.
    """
    logger.debug("Running command", cmd=cmd[0], args=len(cmd) - 1, timeout=timeout)

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=env,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out", cmd=cmd[0], timeout=timeout)
        return CommandResult(
            returncode=-1,
            stdout="",
            stderr=f"Command timed out after {timeout} seconds",
            timed_out=True,
        )
    except (FileNotFoundError, PermissionError) as exc:
        logger.error("Command could not be started", cmd=cmd[0], error=str(exc))
        return CommandResult(returncode=127, stdout="", stderr=str(exc))

    return CommandResult(
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
    )
