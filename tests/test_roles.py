"""
tests/test_roles.py -- Unit tests for the role authorizer (auth/roles.py).

Coverage:
  - permits(): cumulative tiers, legacy role strings permit nothing
  - parse_role(): exact matching, InvalidRole on anything else
  - change_role(): admin only, validation before write, unknown target
"""

from __future__ import annotations

import pytest

from auth.models import Role, User
from auth.roles import Operation, change_role, is_valid_role, parse_role, permits, require
from auth.store import UserStore
from core.errors import Forbidden, InvalidRole, UnknownUser


class TestPermits:
    @pytest.mark.parametrize(
        "operation",
        [Operation.view_profile, Operation.list_users, Operation.view_credentials, Operation.add_credential],
    )
    def test_every_role_gets_basic_operations(self, operation: Operation) -> None:
        for role in Role:
            assert permits(role, operation), f"{role.value} should permit {operation.value}"

    def test_update_credential_needs_management(self) -> None:
        assert not permits("normal", Operation.update_credential)
        assert permits("management", Operation.update_credential)
        assert permits("admin", Operation.update_credential)

    @pytest.mark.parametrize(
        "operation",
        [Operation.change_role, Operation.assign_division, Operation.unassign_division],
    )
    def test_admin_only_operations(self, operation: Operation) -> None:
        assert permits(Role.admin, operation)
        assert not permits(Role.management, operation)
        assert not permits(Role.normal, operation)

    def test_unknown_role_string_permits_nothing(self) -> None:
        """A legacy role value in storage must not grant any operation."""
        for operation in Operation:
            assert not permits("superuser", operation)
            assert not permits("Admin", operation)

    def test_require_raises_forbidden(self) -> None:
        caller = User(username="n", role="normal", id=7)
        with pytest.raises(Forbidden):
            require(caller, Operation.change_role)
        require(caller, Operation.view_credentials)


class TestParseRole:
    def test_accepts_exact_values(self) -> None:
        assert parse_role("normal") is Role.normal
        assert parse_role("management") is Role.management
        assert parse_role("admin") is Role.admin

    @pytest.mark.parametrize("value", ["", "Admin", " admin", "root", None, 3])
    def test_rejects_everything_else(self, value) -> None:
        assert not is_valid_role(value)
        with pytest.raises(InvalidRole):
            parse_role(value)


class TestChangeRole:
    def test_admin_changes_role(self, user_store: UserStore, seeded) -> None:
        role = change_role(user_store, seeded.users["alice"], seeded.ids["bob"], "management")
        assert role is Role.management
        assert user_store.get_by_id(seeded.ids["bob"]).role == "management"

    def test_non_admin_is_forbidden(self, user_store: UserStore, seeded) -> None:
        with pytest.raises(Forbidden):
            change_role(user_store, seeded.users["dave"], seeded.ids["bob"], "admin")
        assert user_store.get_by_id(seeded.ids["bob"]).role == "normal"

    def test_invalid_role_leaves_stored_role_unchanged(self, user_store: UserStore, seeded) -> None:
        with pytest.raises(InvalidRole):
            change_role(user_store, seeded.users["alice"], seeded.ids["carol"], "owner")
        assert user_store.get_by_id(seeded.ids["carol"]).role == "normal"

    def test_forbidden_checked_before_role_validity(self, user_store: UserStore, seeded) -> None:
        """A non-admin sending a bogus role is told Forbidden, not InvalidRole."""
        with pytest.raises(Forbidden):
            change_role(user_store, seeded.users["carol"], seeded.ids["bob"], "owner")

    def test_unknown_target(self, user_store: UserStore, seeded) -> None:
        with pytest.raises(UnknownUser):
            change_role(user_store, seeded.users["alice"], 9999, "normal")
