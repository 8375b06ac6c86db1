"""Tests for the role registry — proves only super-admins manage admins."""

import pytest

from mintgate.access.roles import Role, RoleRegistry
from mintgate.errors import AuthorizationError, InputValidationError


OWNER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"


@pytest.fixture
def roles() -> RoleRegistry:
    return RoleRegistry(super_admins=[OWNER])


class TestConstruction:
    def test_super_admin_is_admin(self, roles: RoleRegistry) -> None:
        assert roles.is_super_admin(OWNER)
        assert roles.is_admin(OWNER)

    def test_lookup_is_case_insensitive(self, roles: RoleRegistry) -> None:
        assert roles.is_admin(OWNER.lower())

    def test_outsider_has_no_role(self, roles: RoleRegistry) -> None:
        assert not roles.is_admin(ALICE)
        assert not roles.is_super_admin(ALICE)

    def test_invalid_address_rejected(self) -> None:
        with pytest.raises(InputValidationError):
            RoleRegistry(super_admins=["not-an-address"])


class TestAdminManagement:
    def test_super_admin_adds_admin(self, roles: RoleRegistry) -> None:
        assert roles.add_admin(OWNER, ALICE) is True
        assert roles.is_admin(ALICE)
        assert not roles.is_super_admin(ALICE)

    def test_add_existing_is_noop(self, roles: RoleRegistry) -> None:
        roles.add_admin(OWNER, ALICE)
        assert roles.add_admin(OWNER, ALICE) is False

    def test_admin_cannot_add_admin(self, roles: RoleRegistry) -> None:
        roles.add_admin(OWNER, ALICE)
        with pytest.raises(AuthorizationError):
            roles.add_admin(ALICE, BOB)
        assert not roles.is_admin(BOB)

    def test_remove_admin(self, roles: RoleRegistry) -> None:
        roles.add_admin(OWNER, ALICE)
        assert roles.remove_admin(OWNER, ALICE) is True
        assert not roles.is_admin(ALICE)
        assert roles.remove_admin(OWNER, ALICE) is False

    def test_removing_super_admin_from_admins_keeps_super_role(
        self, roles: RoleRegistry,
    ) -> None:
        assert roles.remove_admin(OWNER, OWNER) is True
        assert not roles.is_admin(OWNER)
        assert roles.is_super_admin(OWNER)
        # Still able to manage the admin set
        assert roles.add_admin(OWNER, OWNER) is True

    def test_require_raises_with_code(self, roles: RoleRegistry) -> None:
        with pytest.raises(AuthorizationError) as exc:
            roles.require(Role.ADMIN, ALICE)
        assert exc.value.code == "unauthorized"
        assert exc.value.details == ALICE

    def test_members_sorted(self, roles: RoleRegistry) -> None:
        roles.add_admin(OWNER, BOB)
        roles.add_admin(OWNER, ALICE)
        assert roles.members(Role.ADMIN) == sorted([OWNER, ALICE, BOB])


class TestRestore:
    def test_restore_does_not_regrant_admin(self) -> None:
        roles = RoleRegistry.restore(super_admins=[OWNER], admins=[ALICE])
        assert roles.is_super_admin(OWNER)
        assert not roles.is_admin(OWNER)
        assert roles.is_admin(ALICE)
