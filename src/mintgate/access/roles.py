"""Role registry — an explicit capability map from role to principals.

Two roles:
- SUPER_ADMIN: fixed at construction. Manages the admin set.
- ADMIN: gates root updates, phase starts, admin mints and the
  permanent end. Mutated only by super-admins.

Every super-admin is granted ADMIN when the registry is created. After
that the two sets are stored and checked independently: dropping a
super-admin from the admin set does not touch its super-admin status.
"""

from __future__ import annotations

import enum
from typing import Iterable

from mintgate.crypto.address import AddressLike, normalize_address
from mintgate.errors import AuthorizationError


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"


class RoleRegistry:
    """Role membership with super-admin managed admin set.

    Usage:
        roles = RoleRegistry(super_admins=["0xf39F..."])
        roles.add_admin(caller="0xf39F...", account="0x7099...")
        roles.require(Role.ADMIN, "0x7099...")
    """

    def __init__(self, super_admins: Iterable[AddressLike] = ()) -> None:
        supers = {normalize_address(a) for a in super_admins}
        self._members: dict[Role, set[str]] = {
            Role.SUPER_ADMIN: set(supers),
            Role.ADMIN: set(supers),
        }

    @classmethod
    def restore(
        cls, super_admins: Iterable[str], admins: Iterable[str]
    ) -> RoleRegistry:
        """Rebuild a registry from persisted sets without re-granting admin."""
        registry = cls()
        registry._members[Role.SUPER_ADMIN] = {normalize_address(a) for a in super_admins}
        registry._members[Role.ADMIN] = {normalize_address(a) for a in admins}
        return registry

    def has_role(self, role: Role, principal: AddressLike) -> bool:
        return normalize_address(principal) in self._members[role]

    def require(self, role: Role, principal: AddressLike) -> None:
        """Raise AuthorizationError unless principal holds role."""
        if not self.has_role(role, principal):
            raise AuthorizationError(
                f"Caller lacks {role.value} role", details=normalize_address(principal),
            )

    def is_admin(self, account: AddressLike) -> bool:
        return self.has_role(Role.ADMIN, account)

    def is_super_admin(self, account: AddressLike) -> bool:
        return self.has_role(Role.SUPER_ADMIN, account)

    def add_admin(self, caller: AddressLike, account: AddressLike) -> bool:
        """Grant ADMIN. Returns False if the account already held it."""
        self.require(Role.SUPER_ADMIN, caller)
        addr = normalize_address(account)
        if addr in self._members[Role.ADMIN]:
            return False
        self._members[Role.ADMIN].add(addr)
        return True

    def remove_admin(self, caller: AddressLike, account: AddressLike) -> bool:
        """Revoke ADMIN. Returns False if the account did not hold it."""
        self.require(Role.SUPER_ADMIN, caller)
        addr = normalize_address(account)
        if addr not in self._members[Role.ADMIN]:
            return False
        self._members[Role.ADMIN].discard(addr)
        return True

    def members(self, role: Role) -> list[str]:
        return sorted(self._members[role])
