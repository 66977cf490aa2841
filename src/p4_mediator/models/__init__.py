from .connection import CONNECTION_DELIMITER, PASSWORD_MASK, Connection
from .file_status import FileAction, FileStatus
from .preferences import Preferences
