"""Diagnostic console logging shared by the engine and the CLI."""

import sys
from typing import Any

from rich.console import Console

# ASCII fallbacks for legacy Windows code pages
_ASCII_ONLY = bool(
    sys.stderr.encoding and sys.stderr.encoding.lower() in ("cp1252", "cp850", "ascii")
)

SYMBOLS = {
    "info": "i" if _ASCII_ONLY else "ℹ",
    "warning": "!" if _ASCII_ONLY else "⚠",
    "error": "X" if _ASCII_ONLY else "✗",
    "success": "v" if _ASCII_ONLY else "✓",
}

# Diagnostics go to stderr so p4 output echoed on stdout stays clean
console = Console(stderr=True, legacy_windows=False)
error_console = Console(stderr=True, legacy_windows=False)


def log_info(message: str, **kwargs: Any) -> None:
    """Log an info message.

    Args:
        message: Message to log
        **kwargs: Additional arguments passed to rich console
    """
    console.print(f"[blue]{SYMBOLS['info']}[/blue] {message}", **kwargs)


def log_warning(message: str, **kwargs: Any) -> None:
    """Log a warning message.

    Args:
        message: Warning message to log
        **kwargs: Additional arguments passed to rich console
    """
    console.print(f"[yellow]{SYMBOLS['warning']}[/yellow] {message}", **kwargs)


def log_error(message: str, **kwargs: Any) -> None:
    """Log an error message.

    Args:
        message: Error message to log
        **kwargs: Additional arguments passed to rich console
    """
    error_console.print(f"[red]{SYMBOLS['error']}[/red] {message}", **kwargs)


def log_success(message: str, **kwargs: Any) -> None:
    console.print(f"[green]{SYMBOLS['success']}[/green] {message}", **kwargs)
