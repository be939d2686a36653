"""Two-tier access control: one immutable owner above revocable administrators.

The owner is not implicitly an administrator; it must grant itself the flag
like anyone else before it may register tokens.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from tokenfactory.auth.models import Principal
from tokenfactory.errors import RegistryError

if TYPE_CHECKING:
    from tokenfactory.auth.store import Authority


def is_owner(authority: Authority, caller: Principal) -> bool:
    return caller == authority.owner()


def check_owner(authority: Authority, caller: Principal) -> Optional[RegistryError]:
    """Return ``UNAUTHORIZED`` unless *caller* is the owner.

    Usage::

        denied = check_owner(authority, caller)
        if denied is not None:
            return Result.err(denied)
    """
    if not is_owner(authority, caller):
        return RegistryError.UNAUTHORIZED
    return None


def check_admin(authority: Authority, caller: Principal) -> Optional[RegistryError]:
    """Return ``UNAUTHORIZED`` unless *caller* currently holds the admin flag."""
    if not authority.is_admin(caller):
        return RegistryError.UNAUTHORIZED
    return None
