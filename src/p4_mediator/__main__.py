"""CLI entry point for p4-mediator."""

import os
import sys
from functools import wraps
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from p4_mediator import __version__
from p4_mediator.config.settings import Settings
from p4_mediator.core.cli import FILE_ACTIONS
from p4_mediator.core.confirm import ClickConfirmationProvider, StaticConfirmationProvider
from p4_mediator.core.engine import PerforceEngine, open_engine
from p4_mediator.exceptions import P4MediatorError
from p4_mediator.models.connection import Connection
from p4_mediator.utils.debug import DebugLogger
from p4_mediator.utils.log import log_error, log_info, log_success, log_warning

console = Console()

# Mapping of --flag names to Preferences fields
PREFERENCE_OPTIONS = {
    "intercept_add": "Run 'p4 add' after files are created",
    "intercept_delete": "Delete revisioned files through 'p4 delete'",
    "intercept_edit": "Run 'p4 edit' before read-only files are modified",
    "confirm_edit": "Ask before running 'p4 edit'",
    "case_sensitive_workspaces": "Match workspace roots case-sensitively",
    "print_output": "Echo p4 commands and output",
}


def _engine(ctx) -> PerforceEngine:
    engine = ctx.obj.get("engine")
    if engine is None:
        settings = ctx.obj["settings"]
        if ctx.obj.get("assume_yes"):
            confirmer = StaticConfirmationProvider(True)
        else:
            confirmer = ClickConfirmationProvider()
        engine = open_engine(settings, confirmer=confirmer)
        ctx.obj["engine"] = engine
        ctx.call_on_close(engine.close)
    return engine


def handle_errors(func):
    """Report p4-mediator errors with log_error and exit with status 1."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (P4MediatorError, ValueError) as e:
            log_error(str(e))
            sys.exit(1)

    return wrapper


@click.group()
@click.option("--debug", is_flag=True, help="Write JSON records of every p4 invocation to the log directory")
@click.option("--data-dir", type=click.Path(path_type=Path), help="Directory for stored configuration (default: ~/.p4-mediator)")
@click.option("--p4", "p4_binary", type=str, help="Path to the p4 executable")
@click.option("--timeout", type=float, help="Seconds before a p4 command is abandoned")
@click.option("--yes", "assume_yes", is_flag=True, help="Answer yes to every confirmation")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx, debug: bool, data_dir: Optional[Path], p4_binary: Optional[str], timeout: Optional[float], assume_yes: bool) -> None:
    """p4-mediator - route files to Perforce workspaces and mediate edits, adds and deletes.

    Connections bind a Perforce server, user and client to a workspace root.
    Every file under a root is handled with that connection's credentials.
    """
    overrides = {}
    if data_dir:
        overrides["data_dir"] = data_dir.expanduser().resolve()
    if p4_binary:
        overrides["p4_binary"] = p4_binary
    if timeout is not None:
        overrides["command_timeout"] = timeout
    if debug:
        overrides["debug"] = True
    settings = Settings(**overrides)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["assume_yes"] = assume_yes

    if settings.debug:
        DebugLogger.configure(enabled=True, log_dir=settings.debug_log_dir)


# Connections

@main.group()
def connections() -> None:
    """Manage configured workspace connections."""


@connections.command("list")
@click.pass_context
def connections_list(ctx) -> None:
    """List connections in routing order."""
    engine = _engine(ctx)
    conns = engine.connections
    if not conns:
        log_info("No connections configured")
        return

    table = Table(title="Perforce Connections")
    table.add_column("#", justify="right")
    table.add_column("Server")
    table.add_column("User")
    table.add_column("Client")
    table.add_column("Password")
    table.add_column("Workspace")
    for i, conn in enumerate(conns):
        shown = conn.redacted()
        table.add_row(
            str(i), shown["server"], shown["user"], shown["client"],
            shown["password"], shown["workspace_path"],
        )
    console.print(table)


@connections.command("add")
@click.argument("server")
@click.argument("user")
@click.argument("client")
@click.argument("workspace", type=click.Path(file_okay=False, path_type=Path))
@click.option("--password", default="", help="Password passed to p4 with -P")
@click.option("--position", type=int, help="Insert at this index instead of appending")
@click.pass_context
@handle_errors
def connections_add(ctx, server: str, user: str, client: str, workspace: Path, password: str, position: Optional[int]) -> None:
    """Add a connection for WORKSPACE.

    Roots are matched as plain string prefixes in list order, so a root
    listed earlier wins over an overlapping root listed later.
    """
    engine = _engine(ctx)
    workspace_path = str(workspace.expanduser().resolve())
    try:
        conn = Connection(
            server=server, user=user, client=client,
            password=password, workspace_path=workspace_path,
        )
    except ValueError as e:
        raise ValueError(f"Invalid connection: {e}") from e

    conns = engine.connections
    for existing in conns:
        if existing.workspace_path != workspace_path and (
            workspace_path.startswith(existing.workspace_path)
            or existing.workspace_path.startswith(workspace_path)
        ):
            log_warning(
                f"Workspace root overlaps '{existing.workspace_path}'; the earlier connection wins"
            )
    if position is None:
        conns.append(conn)
    else:
        conns.insert(position, conn)
    engine.set_connections(conns)
    log_success(f"Added connection {user}@{client} for {workspace_path}")


@connections.command("remove")
@click.argument("index", type=int)
@click.pass_context
@handle_errors
def connections_remove(ctx, index: int) -> None:
    """Remove the connection at INDEX (see 'connections list')."""
    engine = _engine(ctx)
    conns = engine.connections
    if index < 0 or index >= len(conns):
        raise ValueError(f"No connection at index {index}")
    removed = conns.pop(index)
    engine.set_connections(conns)
    log_success(f"Removed connection for {removed.workspace_path}")


@connections.command("clear")
@click.pass_context
def connections_clear(ctx) -> None:
    """Remove every connection."""
    engine = _engine(ctx)
    engine.set_connections([])
    log_success("All connections removed")


# Preferences

@main.group()
def prefs() -> None:
    """Show or change interception preferences."""


@prefs.command("show")
@click.pass_context
def prefs_show(ctx) -> None:
    engine = _engine(ctx)
    table = Table(title="Preferences")
    table.add_column("Preference")
    table.add_column("Value")
    table.add_column("Description")
    values = engine.preferences.model_dump()
    for name, description in PREFERENCE_OPTIONS.items():
        table.add_row(name.replace("_", "-"), "yes" if values[name] else "no", description)
    console.print(table)


def _preference_options(func):
    for name, description in reversed(list(PREFERENCE_OPTIONS.items())):
        flag = name.replace("_", "-")
        func = click.option(f"--{flag}/--no-{flag}", name, default=None, help=description)(func)
    return func


@prefs.command("set")
@_preference_options
@click.pass_context
def prefs_set(ctx, **flags) -> None:
    """Change one or more preferences; unspecified ones keep their value."""
    engine = _engine(ctx)
    changes = {name: value for name, value in flags.items() if value is not None}
    if not changes:
        log_info("No preferences changed")
        return
    engine.set_preferences(engine.preferences.model_copy(update=changes))
    log_success("Preferences saved")


# Queries

@main.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_context
def route(ctx, path: Path) -> None:
    """Show which connection owns PATH."""
    engine = _engine(ctx)
    conn = engine.find_connection(path)
    if conn is None:
        log_warning(f"{path} is not under any configured workspace")
        sys.exit(1)
    shown = conn.redacted()
    console.print(f"[bold]Workspace:[/bold] {shown['workspace_path']}")
    console.print(f"[bold]Server:[/bold] {shown['server']}")
    console.print(f"[bold]User:[/bold] {shown['user']}")
    console.print(f"[bold]Client:[/bold] {shown['client']}")


@main.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def status(ctx, path: Path) -> None:
    """Show the Perforce status of PATH."""
    engine = _engine(ctx)
    file_status = engine.get_status_now(path)
    if file_status is None:
        log_info(f"{path} is not revisioned")
        return
    console.print(f"[bold]Depot file:[/bold] {file_status.depot_file}")
    console.print(f"[bold]Action:[/bold] {file_status.action.value}")
    if file_status.head_rev is not None:
        console.print(f"[bold]Revision:[/bold] #{file_status.have_rev or 0}/#{file_status.head_rev}")
    if file_status.change:
        console.print(f"[bold]Change:[/bold] {file_status.change}")


# Commands

@main.command()
@click.argument("action", type=click.Choice([cmd for cmd, _ in FILE_ACTIONS]))
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def run(ctx, action: str, files: tuple[Path, ...]) -> None:
    """Run a p4 file ACTION on FILES (edit, sync, "sync -f", revert, add, delete)."""
    engine = _engine(ctx)
    engine.run_file_action(action, list(files))


@main.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.argument("dest", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
@handle_errors
def original(ctx, file: Path, dest: Path) -> None:
    """Write the depot revision of FILE to DEST."""
    engine = _engine(ctx)
    engine.get_original_file(file, dest)
    log_success(f"Wrote depot revision of {file.name} to {dest}")


# Host hooks

@main.group()
def hook() -> None:
    """Filesystem event hooks for editor integrations."""


@hook.command("create")
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def hook_create(ctx, file: Path) -> None:
    """Call after FILE has been created."""
    _engine(ctx).interceptor.after_create(file)


@hook.command("edit")
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def hook_edit(ctx, file: Path) -> None:
    """Call before FILE is modified; exits 1 if it stays read-only."""
    engine = _engine(ctx)
    opened = engine.interceptor.before_edit(file)
    if not opened and file.exists() and not os.access(file, os.W_OK):
        log_warning(f"{file.name} is still read-only")
        sys.exit(1)


@hook.command("delete")
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def hook_delete(ctx, file: Path) -> None:
    """Delete FILE, through Perforce if it is revisioned."""
    engine = _engine(ctx)
    interceptor = engine.interceptor
    if interceptor.before_delete(file):
        if not interceptor.do_delete(file):
            log_warning(f"Delete of {file.name} cancelled")
            sys.exit(1)
        log_success(f"Deleted {file.name} through Perforce")
        return
    if file.exists():
        file.unlink()
    log_info(f"Deleted {file.name}")


@hook.command("mutable")
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
def hook_mutable(ctx, file: Path) -> None:
    """Exit 0 if FILE may be written, 1 otherwise."""
    if not _engine(ctx).interceptor.is_mutable(file):
        sys.exit(1)


if __name__ == "__main__":
    main()
