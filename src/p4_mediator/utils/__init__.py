"""Utility modules for p4-mediator."""

from p4_mediator.utils.debug import DebugLogger
from p4_mediator.utils.log import (
    log_error,
    log_info,
    log_success,
    log_warning,
)
from p4_mediator.utils.output import (
    OutputConsole,
    redact,
    redact_argv,
    timestamp,
)

__all__ = [
    "DebugLogger",
    "log_info",
    "log_warning",
    "log_error",
    "log_success",
    "OutputConsole",
    "redact",
    "redact_argv",
    "timestamp",
]
