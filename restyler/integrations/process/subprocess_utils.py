"""Running external commands (git, docker).

Command lines may carry credentials, so errors only ever show a display form
supplied by the caller.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

_OUTPUT_TAIL_CHARS = 2000


@dataclass(frozen=True)
class CommandResult:
    """Result of running a command."""

    exit_code: int
    stdout: str
    stderr: str

    def output_tail(self) -> str:
        """Last part of combined stdout and stderr, for error messages."""

        text = (self.stdout + "\n" + self.stderr).strip()
        return text[-_OUTPUT_TAIL_CHARS:]


class CommandError(RuntimeError):
    """Raised when a command exits non-zero."""

    def __init__(self, *, command_display: str, result: CommandResult) -> None:
        message = f"{command_display} exited {result.exit_code}"
        tail = result.output_tail()
        if tail:
            message = f"{message}:\n{tail}"
        super().__init__(message)
        self.command_display = command_display
        self.result = result


class CommandRunner:
    """Runs OS commands with controlled environment and output capturing."""

    _logger = logging.getLogger(__name__)

    def run(
        self,
        *,
        args: Sequence[str],
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        timeout_seconds: int | None = None,
    ) -> CommandResult:
        """Runs a command and captures stdout/stderr.

        Raises:
            subprocess.TimeoutExpired: If timeout is exceeded.
            OSError: If process cannot be started.
        """

        merged_env = os.environ.copy()
        if env is not None:
            merged_env.update(env)

        completed = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            env=merged_env,
            check=False,
            text=True,
            capture_output=True,
            timeout=timeout_seconds,
        )
        return CommandResult(
            exit_code=int(completed.returncode),
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    def run_checked(
        self,
        *,
        args: Sequence[str],
        command_display: str | None = None,
        cwd: str | Path | None = None,
        timeout_seconds: int | None = None,
    ) -> CommandResult:
        """Runs a command, raising ``CommandError`` on a non-zero exit."""

        display = command_display if command_display is not None else " ".join(args)
        self._logger.debug("running: %s", display)
        result = self.run(args=args, cwd=cwd, timeout_seconds=timeout_seconds)
        if result.exit_code != 0:
            raise CommandError(command_display=display, result=result)
        return result
