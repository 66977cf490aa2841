from .base import KeyValueStore
from .memory import MemoryKeyValueStore
from .preferences import PreferenceStore
from .sqlite import SQLiteKeyValueStore
