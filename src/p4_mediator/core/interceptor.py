"""Interception policy for filesystem operations on Perforce-managed files.

Each method decides one filesystem event from the operation, the file's
current status, the preferences, and (where required) the user's answer.
The policy holds no per-file state; when it decides to intercept it runs the
p4 command synchronously and invalidates the file's cached status.

Events and decisions:
- after_create: `p4 add` when intercept_add is set
- before_edit: `p4 edit` on a read-only file, after confirmation if confirm_edit
- before_delete: claim the delete iff the file is revisioned
- do_delete: confirm, then `p4 revert` (if opened) and `p4 delete`
- moves: pass-through
- is_mutable: always writable when intercept_edit is set
"""

import os
import shutil
from typing import Callable, Optional

from p4_mediator.core.cli import CliWrapper, Command
from p4_mediator.core.confirm import ConfirmationProvider, StaticConfirmationProvider
from p4_mediator.core.routing import PathLike, RoutingEngine
from p4_mediator.core.status import FileStatusProvider
from p4_mediator.exceptions import StatusUnavailableError
from p4_mediator.models.preferences import Preferences
from p4_mediator.utils.log import log_warning

EDIT_CONFIRMATION_TITLE = "Edit Confirmation"
DELETE_CONFIRMATION_TITLE = "Delete Confirmation"


class InterceptionPolicy:
    """Gates create/edit/delete/move events against preferences and file status."""

    def __init__(
        self,
        routing: RoutingEngine,
        wrapper: CliWrapper,
        status_provider: FileStatusProvider,
        preferences: Callable[[], Preferences],
        confirmer: Optional[ConfirmationProvider] = None,
    ):
        self.routing = routing
        self.wrapper = wrapper
        self.status_provider = status_provider
        self._preferences = preferences
        self.confirmer = confirmer or StaticConfirmationProvider(False)

    @property
    def preferences(self) -> Preferences:
        return self._preferences()

    def _run(self, command: Command, file: PathLike) -> None:
        """Run a state-changing command, then invalidate the file's status."""
        try:
            self.wrapper.execute(command, file)
        finally:
            # Even a failed command may have changed the file's state
            self.status_provider.invalidate(file)

    def is_mutable(self, file: PathLike) -> bool:
        """Report whether the host may write to file.

        With intercept_edit on, p4 edit makes the file writable on demand, so
        the read-only bit is not authoritative.
        """
        if self.preferences.intercept_edit:
            return True
        return os.access(os.fspath(file), os.W_OK)

    def after_create(self, file: PathLike) -> bool:
        """Open a newly created file for add.

        Returns:
            True if `p4 add` was issued
        """
        if not self.preferences.intercept_add:
            return False
        if not self.routing.is_managed(file):
            return False
        self._run("add", file)
        return True

    def before_edit(self, file: PathLike) -> bool:
        """Open a read-only file for edit before the host modifies it.

        Returns:
            True if `p4 edit` was issued; False if the file was already
            writable, unmanaged, or the user declined (file stays read-only)
        """
        path = os.fspath(file)
        if os.access(path, os.W_OK):
            return False
        if not self.routing.is_managed(path):
            return False
        if self.preferences.confirm_edit:
            name = os.path.basename(path)
            if not self.confirmer.confirm(
                EDIT_CONFIRMATION_TITLE,
                f'Are you sure you want to "p4 edit" file {name}',
            ):
                return False
        self._run("edit", path)
        return True

    def before_delete(self, file: PathLike) -> bool:
        """Decide whether the delete of file should go through do_delete().

        Returns:
            True iff delete interception is enabled and the file is revisioned;
            unrevisioned files are left to the normal filesystem delete
        """
        if not self.preferences.intercept_delete:
            return False
        return self.status_provider.get_status_now(file) is not None

    def do_delete(self, file: PathLike) -> bool:
        """Delete a revisioned file through Perforce.

        Returns:
            True if the file was deleted; False if the user declined, in
            which case nothing is deleted

        Raises:
            StatusUnavailableError: If the file's status cannot be determined
                after confirmation; nothing is deleted
            CommandFailedError: If revert or delete fails
        """
        path = os.fspath(file)
        name = os.path.basename(path)
        if not self.confirmer.confirm(
            DELETE_CONFIRMATION_TITLE,
            f"Are you sure you want to delete {name}",
        ):
            return False

        status = self.status_provider.get_status_now(path, refresh=True)
        if status is None:
            log_warning(f"{name} is not revisioned. Should not be deleted through Perforce")
            raise StatusUnavailableError(path)

        # A file opened for add/edit must be reverted before p4 delete accepts it
        if status.is_opened:
            self._run("revert", path)
        self._run("delete", path)
        return True

    def before_move(self, source: PathLike, target: PathLike) -> bool:
        """Moves are not intercepted."""
        return False

    def do_move(self, source: PathLike, target: PathLike) -> None:
        shutil.move(os.fspath(source), os.fspath(target))

    def after_move(self, source: PathLike, target: PathLike) -> None:
        pass
