"""Console sink for p4 command echo, with password redaction."""

import re
from datetime import datetime
from typing import Callable, Optional, Sequence

from rich.console import Console

from p4_mediator.models.connection import PASSWORD_MASK

# A -P flag at the start of a line or after whitespace, followed by its value
_PASSWORD_PATTERN = re.compile(r"(?:(?<=\s)|^)(-P\s+)\S+", re.MULTILINE)


def redact(message: str) -> str:
    """Replace every `-P <password>` value in message with the mask.

    Only the value is replaced; the flag itself is kept so the echoed command
    still reads as the command that was run.
    """
    return _PASSWORD_PATTERN.sub(lambda m: m.group(1) + PASSWORD_MASK, message)


def redact_argv(argv: Sequence[str]) -> list[str]:
    """Return a copy of argv with the argument after each `-P` masked."""
    redacted = list(argv)
    for i in range(len(redacted) - 1):
        if redacted[i] == "-P":
            redacted[i + 1] = PASSWORD_MASK
    return redacted


def timestamp(now: Optional[datetime] = None) -> str:
    """Format a wall clock time as HH:MM:SS.mmm."""
    now = now or datetime.now()
    return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"


class OutputConsole:
    """Timestamped echo of p4 commands and their output.

    Output is gated by the `print_output` preference, read through a callable
    on every call so a preference change takes effect immediately.
    """

    def __init__(
        self,
        enabled: Callable[[], bool] = lambda: True,
        out: Optional[Console] = None,
        err: Optional[Console] = None,
    ):
        self._enabled = enabled
        # Markup and highlighting are off: p4 output is printed verbatim
        self.out = out or Console(markup=False, highlight=False, soft_wrap=True)
        self.err = err or Console(stderr=True, markup=False, highlight=False, soft_wrap=True)

    def print(self, message: str, error: bool = False) -> None:
        """Emit one line as `[HH:MM:SS.mmm] message`, with passwords redacted."""
        if not self._enabled():
            return
        target = self.err if error else self.out
        target.print(f"[{timestamp()}] {redact(message)}", markup=False, highlight=False)
