"""Account and permission rules."""

from shop_ledger.accounts.permissions import (
    can_modify_account,
    editable_accounts,
    find_account,
    has_permission,
    is_protected,
    permissions_for,
    protected_usernames,
    username_taken,
)
from shop_ledger.models.state import default_accounts

__all__ = [
    "can_modify_account",
    "default_accounts",
    "editable_accounts",
    "find_account",
    "has_permission",
    "is_protected",
    "permissions_for",
    "protected_usernames",
    "username_taken",
]
