from .codec import (
    PREFERENCE_FIELDS,
    decode_connection,
    decode_preferences,
    encode_connection,
    encode_preferences,
)
from .settings import KEY_CONNECTIONS, KEY_PREFERENCES, Settings
