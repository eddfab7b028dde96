"""
Account Models

Accounts carry a fixed set of boolean capabilities. Permissions are a
model with one field per capability rather than a free-form dict, so
a misspelled permission name is a validation error, not a silent False.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# Admins that always hold every capability and can never be edited or
# deleted. Fixed in code so no environment can change who they are.
PROTECTED_USERNAMES: tuple[str, ...] = ("hamdamjon", "habibjon")


class Permission(str, Enum):
    """Capabilities an account can be granted."""
    CREDITS_MANAGE = "credits_manage"
    WHOLESALE_ALLOWED = "wholesale_allowed"
    ADD_PRODUCTS = "add_products"
    MANAGE_ACCOUNTS = "manage_accounts"


class Permissions(BaseModel):
    """Capability flags. Anything not granted is False."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    credits_manage: bool = False
    wholesale_allowed: bool = False
    add_products: bool = False
    manage_accounts: bool = False

    @classmethod
    def all_granted(cls) -> "Permissions":
        return cls(**{perm.value: True for perm in Permission})

    def allows(self, permission: Permission) -> bool:
        return bool(getattr(self, permission.value))


class Account(BaseModel):
    """
    A shop account.

    Usernames are unique case-insensitively. The reducer does not
    enforce that; callers check before dispatching ADD_ACCOUNT.
    """
    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        str_strip_whitespace=True,
    )

    username: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Login name"
    )
    label: str = Field(
        default="",
        description="Display name"
    )
    permissions: Permissions = Field(default_factory=Permissions)

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return self.username.lower()

    def merged(self, updates: dict[str, Any]) -> "Account":
        """
        Shallow-merge updates.

        A 'permissions' update replaces only the flags it names.
        """
        data = self.to_document()
        for field, value in updates.items():
            if field == "permissions" and isinstance(value, dict):
                data["permissions"] = {**data.get("permissions", {}), **value}
            elif field == "permissions" and isinstance(value, Permissions):
                data["permissions"] = value.model_dump()
            else:
                data[field] = value
        return Account.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
