"""Process execution boundary.

CommandExecutor is the only seam through which p4-mediator starts external
processes. SubprocessExecutor is the production implementation; tests and
host integrations can substitute their own.
"""

import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from p4_mediator.exceptions import CommandFailedError
from p4_mediator.utils.output import redact_argv


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one process run."""

    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")

    @property
    def output(self) -> str:
        """Decoded stdout followed by stderr."""
        return self.stdout_text + self.stderr_text

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandExecutor(ABC):
    """Runs an argument vector and captures its output."""

    @abstractmethod
    def execute(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Run argv to completion.

        Args:
            argv: Program and arguments (never interpreted by a shell)
            cwd: Working directory for the process
            timeout: Seconds before the process is killed (None = no limit)

        Returns:
            CommandResult with exit code and captured output

        Raises:
            CommandFailedError: If the process cannot be started or times out
        """
        pass


class SubprocessExecutor(CommandExecutor):
    """CommandExecutor backed by subprocess.run()."""

    def execute(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        try:
            result = subprocess.run(
                list(argv),
                cwd=cwd,
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandFailedError(
                redact_argv(argv),
                exit_code=None,
                stderr=(e.stderr or b"").decode("utf-8", errors="replace"),
                timed_out=True,
            ) from e
        except OSError as e:
            raise CommandFailedError(
                redact_argv(argv),
                exit_code=None,
                stderr=str(e),
            ) from e

        return CommandResult(
            exit_code=result.returncode,
            stdout=result.stdout or b"",
            stderr=result.stderr or b"",
        )
