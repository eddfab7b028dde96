"""
Account and Permission Rules

Two usernames are protected admins. They always have every
capability, can never be edited or deleted, and are left out of any
permission-toggle list. Everyone else has exactly the flags stored on
their account, and an unknown username has none.

Usernames are compared case-insensitively everywhere.
"""

from typing import Iterable, Optional

from shop_ledger.models.accounts import PROTECTED_USERNAMES, Account, Permission, Permissions


def protected_usernames() -> list[str]:
    """Lower-cased protected usernames."""
    return list(PROTECTED_USERNAMES)


def is_protected(username: Optional[str]) -> bool:
    return (username or "").strip().lower() in protected_usernames()


def find_account(accounts: Iterable[Account], username: Optional[str]) -> Optional[Account]:
    key = (username or "").strip().lower()
    if not key:
        return None
    for account in accounts:
        if account.key == key:
            return account
    return None


def permissions_for(accounts: Iterable[Account], username: Optional[str]) -> Permissions:
    """
    Capabilities of a user.

    Protected admins get everything regardless of what is stored.
    Unknown users get nothing.
    """
    if is_protected(username):
        return Permissions.all_granted()
    account = find_account(accounts, username)
    if account is None:
        return Permissions()
    return account.permissions


def has_permission(
    accounts: Iterable[Account],
    username: Optional[str],
    permission: Permission,
) -> bool:
    return permissions_for(accounts, username).allows(permission)


def can_modify_account(
    accounts: Iterable[Account],
    actor: Optional[str],
    target: Optional[str],
) -> bool:
    """
    Can `actor` edit or delete the account `target`?

    Requires manage_accounts, and protected targets are never modifiable.
    """
    if is_protected(target):
        return False
    return has_permission(accounts, actor, Permission.MANAGE_ACCOUNTS)


def editable_accounts(accounts: Iterable[Account]) -> list[Account]:
    """Accounts whose permissions may be toggled (protected ones excluded)."""
    return [account for account in accounts if not is_protected(account.username)]


def username_taken(accounts: Iterable[Account], username: Optional[str]) -> bool:
    """Case-insensitive uniqueness check to run before ADD_ACCOUNT."""
    return find_account(accounts, username) is not None
