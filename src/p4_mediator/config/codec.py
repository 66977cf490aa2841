"""String encoding of connections and preferences for persistence.

The formats are compatible with settings written by the original IDE plugin:

- A connection is `server~=~user~=~client~=~password~=~workspacePath`.
- Preferences are six `t`/`f` characters in the fixed order interceptAdd,
  interceptDelete, interceptEdit, confirmEdit, caseSensitiveWorkspaces,
  printOutput.
"""

from pydantic import ValidationError

from p4_mediator.exceptions import ConfigDecodeError
from p4_mediator.models.connection import CONNECTION_DELIMITER, Connection
from p4_mediator.models.preferences import Preferences

# Field order of the preference string; must never change
PREFERENCE_FIELDS = (
    "intercept_add",
    "intercept_delete",
    "intercept_edit",
    "confirm_edit",
    "case_sensitive_workspaces",
    "print_output",
)

_CONNECTION_FIELDS = ("server", "user", "client", "password", "workspace_path")


def encode_connection(connection: Connection) -> str:
    """Encode a connection as a delimited string.

    Args:
        connection: Connection to encode

    Returns:
        Encoded connection string
    """
    return CONNECTION_DELIMITER.join(
        getattr(connection, name) for name in _CONNECTION_FIELDS
    )


def decode_connection(value: str) -> Connection:
    """Decode a connection string produced by encode_connection().

    Args:
        value: Encoded connection string

    Returns:
        Decoded Connection

    Raises:
        ConfigDecodeError: If the string does not hold exactly five valid fields
    """
    if value is None:
        raise ConfigDecodeError(value, "connection value is missing")

    parts = value.split(CONNECTION_DELIMITER)
    if len(parts) != len(_CONNECTION_FIELDS):
        raise ConfigDecodeError(
            value,
            f"expected {len(_CONNECTION_FIELDS)} connection fields, got {len(parts)}",
        )

    try:
        return Connection(**dict(zip(_CONNECTION_FIELDS, parts)))
    except ValidationError as e:
        raise ConfigDecodeError(value, f"invalid connection: {e}") from e


def encode_preferences(preferences: Preferences) -> str:
    return "".join(
        "t" if getattr(preferences, name) else "f" for name in PREFERENCE_FIELDS
    )


def decode_preferences(value: str) -> Preferences:
    """Decode a preference string by fixed character position.

    Any character other than 't' reads as false. Extra trailing characters
    are ignored.

    Raises:
        ConfigDecodeError: If the string is shorter than six characters
    """
    if value is None or len(value) < len(PREFERENCE_FIELDS):
        raise ConfigDecodeError(
            value,
            f"preference string must have {len(PREFERENCE_FIELDS)} characters",
        )
    return Preferences(
        **{name: value[i] == "t" for i, name in enumerate(PREFERENCE_FIELDS)}
    )
