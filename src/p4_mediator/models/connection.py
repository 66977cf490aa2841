"""Connection data model describing one Perforce server/client/workspace binding."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Separator used by the persisted connection format
CONNECTION_DELIMITER = "~=~"

PASSWORD_MASK = "********"


class Connection(BaseModel):
    """Represents a configured Perforce connection.

    A connection is an immutable value: two connections with the same fields
    are the same connection. The password is stored in plaintext because the
    p4 client needs it verbatim on every invocation.

    Attributes:
        server: P4PORT of the server (e.g. "perforce:1666")
        user: P4USER
        client: P4CLIENT (workspace name)
        password: P4PASSWD, may be empty when a ticket is used
        workspace_path: Absolute root directory of the client workspace
    """

    server: str = Field(..., description="Server address (host:port)")
    user: str = Field(..., description="Perforce user name")
    client: str = Field(..., description="Client workspace name")
    password: str = Field("", description="Plaintext password (may be empty)")
    workspace_path: str = Field(..., description="Absolute workspace root directory")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "server": "perforce:1666",
                "user": "jsmith",
                "client": "jsmith-main",
                "password": "",
                "workspace_path": "/home/jsmith/p4/main",
            }
        },
    )

    @field_validator("server", "user", "client", "password", "workspace_path")
    @classmethod
    def validate_no_delimiter(cls, v: str, info) -> str:
        """Reject values that would break the persisted connection format."""
        if CONNECTION_DELIMITER in v:
            raise ValueError(
                f"Field '{info.field_name}' cannot contain '{CONNECTION_DELIMITER}'"
            )
        return v

    @field_validator("workspace_path")
    @classmethod
    def validate_workspace_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Workspace path cannot be empty")
        return v

    def redacted(self) -> Dict[str, Any]:
        """Return the connection fields for display, with the password masked."""
        data = self.model_dump()
        if data["password"]:
            data["password"] = PASSWORD_MASK
        return data
