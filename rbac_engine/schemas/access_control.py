"""
Access-control intent schema.

An intent declares that a tuple should be granted (active) or revoked
(inactive). Applying it twice has the same effect as applying it once.

Accepted input:
    {"role": "admin", "permission": "read", "resource": "user",
     "scope": "global", "action": "Grant"}

The action is case-insensitive and may also be given as "grantOrRevoke".
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AccessAction(str, Enum):
    """Grant or revoke."""
    GRANT = "grant"
    REVOKE = "revoke"


class AccessControl(BaseModel):
    """One grant/revoke intent, addressed by dimension names."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    role: str = Field(min_length=1, max_length=100)
    permission: str = Field(min_length=1, max_length=100)
    resource: str = Field(min_length=1, max_length=100)
    scope: str = Field(min_length=1, max_length=100)
    action: AccessAction = Field(
        validation_alias=AliasChoices("action", "grantOrRevoke", "grant_or_revoke"),
    )

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def describe(self) -> dict[str, str]:
        """Log-friendly view."""
        return {
            "role": self.role,
            "permission": self.permission,
            "resource": self.resource,
            "scope": self.scope,
            "action": self.action.value,
        }
