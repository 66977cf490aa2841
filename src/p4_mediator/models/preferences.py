"""Interception preferences."""

from pydantic import BaseModel, ConfigDict, Field


class Preferences(BaseModel):
    """User preferences controlling which file operations are intercepted.

    Preferences are replaced wholesale on save; policy code only reads them.

    Attributes:
        intercept_edit: Run `p4 edit` before a read-only file is modified
        intercept_delete: Route deletes of revisioned files through `p4 delete`
        intercept_add: Run `p4 add` after a file is created
        confirm_edit: Ask before running `p4 edit`
        case_sensitive_workspaces: Compare workspace roots case-sensitively
        print_output: Echo p4 commands and their output to the console
    """

    intercept_edit: bool = Field(True, description="Intercept edits of read-only files")
    intercept_delete: bool = Field(True, description="Intercept deletes of revisioned files")
    intercept_add: bool = Field(True, description="Intercept file creation")
    confirm_edit: bool = Field(False, description="Confirm before p4 edit")
    case_sensitive_workspaces: bool = Field(True, description="Case-sensitive workspace matching")
    print_output: bool = Field(True, description="Echo p4 output to the console")

    model_config = ConfigDict(frozen=True)
