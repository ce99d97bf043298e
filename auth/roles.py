"""
auth/roles.py -- Role authorizer.

Decides whether a role permits an operation, validates role values at the
boundary, and performs the admin-only role change.

Permission tiers are cumulative:
  normal      -- view own profile, list users, view and add credentials
  management  -- + update existing credentials
  admin       -- + change any user's role, assign/unassign division membership

A stored role string outside the Role enum (legacy data) permits nothing.

Layer rule: no imports from api/ or orgs/.
"""

from __future__ import annotations

import logging
from enum import Enum

from auth.models import Role, User
from auth.store import UserStore
from core.errors import Forbidden, InvalidRole, UnknownUser, store_guard

logger = logging.getLogger("credvault.auth.roles")


class Operation(str, Enum):
    view_profile = "view_profile"
    list_users = "list_users"
    view_credentials = "view_credentials"
    add_credential = "add_credential"
    update_credential = "update_credential"
    change_role = "change_role"
    assign_division = "assign_division"
    unassign_division = "unassign_division"


_NORMAL_OPS = frozenset(
    {
        Operation.view_profile,
        Operation.list_users,
        Operation.view_credentials,
        Operation.add_credential,
    }
)
_MANAGEMENT_OPS = _NORMAL_OPS | {Operation.update_credential}
_ADMIN_OPS = _MANAGEMENT_OPS | {
    Operation.change_role,
    Operation.assign_division,
    Operation.unassign_division,
}

_PERMISSIONS: dict[Role, frozenset[Operation]] = {
    Role.normal: _NORMAL_OPS,
    Role.management: _MANAGEMENT_OPS,
    Role.admin: _ADMIN_OPS,
}

_ROLE_VALUES = frozenset(r.value for r in Role)


def is_valid_role(value: object) -> bool:
    """Return True if value is exactly one of the three role strings."""
    return isinstance(value, str) and value in _ROLE_VALUES


def parse_role(value: object) -> Role:
    """Convert a raw value to a Role or raise InvalidRole.

    Matching is exact: "Admin" and " admin" are rejected, as in the stored data.
    """
    if not is_valid_role(value):
        raise InvalidRole(f"Cannot update user role. '{value}' is not a valid role.")
    return Role(value)


def permits(role: str | Role, operation: Operation) -> bool:
    """Return True if the role is allowed to perform the operation."""
    if isinstance(role, Role):
        return operation in _PERMISSIONS[role]
    if not is_valid_role(role):
        return False
    return operation in _PERMISSIONS[Role(role)]


def require(caller: User, operation: Operation) -> None:
    """Raise Forbidden unless the caller's current role permits the operation."""
    if not permits(caller.role, operation):
        logger.info("Denied %s for user_id=%s (role=%r)", operation.value, caller.id, caller.role)
        raise Forbidden(f"Role '{caller.role}' is not authorized to {operation.value.replace('_', ' ')}.")


def change_role(users: UserStore, caller: User, target_user_id: int, new_role: str) -> Role:
    """Set another user's role. Admin only.

    Order of checks: caller role, then new_role validity, then target
    existence. Every rejection happens before the write, so a failed call
    leaves the stored role untouched.
    """
    require(caller, Operation.change_role)
    role = parse_role(new_role)
    with store_guard("change role"):
        if not users.update_role(target_user_id, role.value):
            raise UnknownUser(f"User {target_user_id} not found.")
    logger.info("user_id=%s set role of user_id=%s to %s", caller.id, target_user_id, role.value)
    return role
