"""p4 command-line wrapper.

Builds the argument vector for a p4 command against one local file, adds the
owning connection's credentials, runs it through a CommandExecutor, and echoes
the (redacted) command line and its output to the OutputConsole.
"""

import os
import shlex
from typing import Optional, Sequence, Union

from p4_mediator.config.settings import DEFAULT_COMMAND_TIMEOUT, DEFAULT_P4_BINARY
from p4_mediator.core.executor import CommandExecutor, CommandResult, SubprocessExecutor
from p4_mediator.core.routing import PathLike, RoutingEngine, canonical_path
from p4_mediator.exceptions import CommandFailedError
from p4_mediator.models.connection import Connection
from p4_mediator.utils.debug import DebugLogger
from p4_mediator.utils.output import OutputConsole, redact_argv

Command = Union[str, Sequence[str]]

# File actions offered to hosts, as (command, label) pairs
FILE_ACTIONS: list[tuple[str, str]] = [
    ("edit", "Edit"),
    ("sync", "Sync"),
    ("sync -f", "Sync Force"),
    ("revert", "Revert"),
    ("add", "Add"),
    ("delete", "Delete"),
]

# Commands that change the opened/revisioned state of a file
STATE_CHANGING_VERBS = frozenset({"edit", "add", "delete", "revert", "sync"})


def command_args(command: Command) -> list[str]:
    """Split a command template ("sync -f") or copy an argument sequence."""
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


def connection_args(connection: Connection) -> list[str]:
    """Global p4 flags selecting the server, user, client and password."""
    args = [
        "-p", connection.server,
        "-u", connection.user,
        "-c", connection.client,
    ]
    if connection.password:
        args.extend(["-P", connection.password])
    return args


class CliWrapper:
    """Runs p4 commands scoped to the connection that owns a file."""

    def __init__(
        self,
        routing: RoutingEngine,
        executor: Optional[CommandExecutor] = None,
        console: Optional[OutputConsole] = None,
        p4_binary: str = DEFAULT_P4_BINARY,
        timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT,
    ):
        self.routing = routing
        self.executor = executor or SubprocessExecutor()
        self.console = console or OutputConsole()
        self.p4_binary = p4_binary
        self.timeout = timeout

    def build_argv(self, command: Command, target_file: PathLike, connection: Connection) -> list[str]:
        """Assemble the full argument vector for command against target_file."""
        return [
            self.p4_binary,
            *connection_args(connection),
            *command_args(command),
            canonical_path(target_file),
        ]

    def execute(self, command: Command, target_file: PathLike, check: bool = True) -> CommandResult:
        """Run a p4 command against target_file.

        Args:
            command: Verb with options, e.g. "edit", "sync -f", or
                     ["print", "-o", "/tmp/out", "-q"]
            target_file: Local file the command applies to
            check: Raise CommandFailedError on a nonzero exit

        Returns:
            CommandResult of the p4 process

        Raises:
            ConnectionNotFoundError: If target_file is not under any workspace
            CommandFailedError: On spawn failure, timeout, or (when check) nonzero exit
        """
        connection = self.routing.require_connection(target_file)
        argv = self.build_argv(command, target_file, connection)
        safe_argv = redact_argv(argv)
        cwd = os.path.dirname(canonical_path(target_file)) or None
        if cwd is not None and not os.path.isdir(cwd):
            cwd = None

        operation = "p4_" + "_".join(command_args(command)[:1])
        request_id = DebugLogger.log_request(
            operation,
            {"argv": safe_argv, "cwd": cwd, "timeout": self.timeout},
        )

        self.console.print(" ".join(safe_argv))
        try:
            result = self.executor.execute(argv, cwd=cwd, timeout=self.timeout)
        except CommandFailedError as e:
            self.console.print(str(e), error=True)
            DebugLogger.log_response(
                operation,
                {"exit_code": e.exit_code, "timed_out": e.timed_out, "stderr": e.stderr},
                request_id,
            )
            raise

        DebugLogger.log_response(
            operation,
            {"exit_code": result.exit_code, "stdout": result.stdout_text, "stderr": result.stderr_text},
            request_id,
        )

        if result.stdout_text.strip():
            self.console.print(result.stdout_text.rstrip())
        if result.stderr_text.strip():
            self.console.print(result.stderr_text.rstrip(), error=True)

        if check and not result.ok:
            raise CommandFailedError(
                safe_argv,
                exit_code=result.exit_code,
                stderr=result.stderr_text,
            )
        return result
