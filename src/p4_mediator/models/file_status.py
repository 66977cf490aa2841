"""FileStatus data model representing the Perforce state of a single local file."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FileAction(str, Enum):
    """Pending action a file is opened for in the client workspace."""

    NONE = "none"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    BRANCH = "branch"
    INTEGRATE = "integrate"
    MOVE_ADD = "move/add"
    MOVE_DELETE = "move/delete"
    IMPORT = "import"
    ARCHIVE = "archive"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN

    @classmethod
    def from_p4(cls, value: Optional[str]) -> "FileAction":
        """Map a p4 `action` tag value to a FileAction (absent means NONE)."""
        if not value:
            return cls.NONE
        return cls(value.strip().lower())


@dataclass(frozen=True)
class FileStatus:
    """Revisioned status of a file known to Perforce.

    Attributes:
        path: Canonical local path the status was queried for
        depot_file: Depot path of the file (e.g. "//depot/src/main.c")
        action: Pending action in the current client (NONE if not opened)
        head_action: Action of the head revision, if the file is submitted
        head_rev: Head revision number, if the file is submitted
        have_rev: Revision synced to the workspace, if any
        change: Changelist the file is opened in, if opened
    """

    path: str
    depot_file: str
    action: FileAction = FileAction.NONE
    head_action: Optional[str] = None
    head_rev: Optional[int] = None
    have_rev: Optional[int] = None
    change: Optional[str] = None

    @property
    def is_opened(self) -> bool:
        """True if the file is opened for any pending action."""
        return self.action != FileAction.NONE
