"""Subprocess-backed process executor.

Every container engine call goes through `SubprocessExecutor.run`, which
captures stdout, stderr, exit code and duration and never raises for a
failing command. Tests substitute a fake executor with the same `run`
signature.
"""

import logging
import subprocess
import time
from pathlib import Path
from typing import Optional

from droidpack.executor.types import CommandResult

logger = logging.getLogger(__name__)

EXIT_TIMEOUT = -1
EXIT_LAUNCH_FAILED = -2
EXIT_NOT_FOUND = 127


class SubprocessExecutor:
    """Runs commands with `subprocess.run` (argument list, no shell)."""

    def run(
        self,
        command: list[str],
        cwd: Optional[Path] = None,
        timeout: Optional[int] = None,
    ) -> CommandResult:
        logger.debug("Running %s (cwd=%s, timeout=%s)", " ".join(command), cwd, timeout)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
            command_result = CommandResult(
                command=list(command),
                exit_code=result.returncode,
                duration_seconds=time.monotonic() - start,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
            )

        except subprocess.TimeoutExpired:
            command_result = CommandResult(
                command=list(command),
                exit_code=EXIT_TIMEOUT,
                duration_seconds=time.monotonic() - start,
                stderr=f"Timed out after {timeout} seconds",
            )

        except FileNotFoundError as exc:
            command_result = CommandResult(
                command=list(command),
                exit_code=EXIT_NOT_FOUND,
                duration_seconds=time.monotonic() - start,
                stderr=str(exc),
            )

        except OSError as exc:
            command_result = CommandResult(
                command=list(command),
                exit_code=EXIT_LAUNCH_FAILED,
                duration_seconds=time.monotonic() - start,
                stderr=str(exc),
            )

        logger.debug(
            "%s exited %d (%.1fs)",
            command[0], command_result.exit_code, command_result.duration_seconds,
        )
        return command_result


def truncate_output(text: str, max_lines: int = 60, max_chars: int = 4000) -> str:
    """Return a concise tail of command output for logs."""
    if not text:
        return ""
    lines = text.splitlines()
    tail = lines[-max_lines:]
    joined = "\n".join(tail)
    if len(joined) > max_chars:
        joined = joined[-max_chars:]
    return joined
