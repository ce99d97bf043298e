"""
orgs/membership.py -- Membership authorizer.

A user may act on a division only if their id is in that division's users
list. Admins additionally assign and unassign members, but only for divisions
they belong to themselves.

Check order for assign/unassign is fixed and observable by clients:
  1. caller role (admin)          -> Forbidden
  2. caller membership            -> Forbidden
  3. target user exists           -> UnknownUser
  4. target already in / not in   -> AlreadyAssigned / NotAssigned
  5. write

Every rejection happens before the write.
"""

from __future__ import annotations

import logging

from auth.models import User
from auth.roles import Operation, require
from auth.store import UserStore
from core.errors import AlreadyAssigned, Forbidden, NotAssigned, UnknownUser, store_guard
from orgs.store import OrgStore

logger = logging.getLogger("credvault.orgs.membership")


def is_member(orgs: OrgStore, user_id: int, org_unit: str, division: str) -> bool:
    """Return True if user_id is in the resolved division's users.

    A division that cannot be resolved has no members.
    """
    with store_guard("membership lookup"):
        found = orgs.find_division(org_unit, division)
    if found is None:
        return False
    _, div = found
    return div.has_member(user_id)


def require_member(orgs: OrgStore, caller: User, org_unit: str, division: str) -> None:
    """Raise Forbidden unless the caller belongs to the division."""
    if not is_member(orgs, caller.id, org_unit, division):
        logger.info("Denied: user_id=%s is not a member of %s/%s", caller.id, org_unit, division)
        raise Forbidden(f"You are not a member of the '{division}' division of '{org_unit}'.")


def _require_target(users: UserStore, target_user_id: int) -> User:
    with store_guard("target lookup"):
        target = users.get_by_id(target_user_id)
    if target is None:
        raise UnknownUser(f"User {target_user_id} not found.")
    return target


def assign(
    orgs: OrgStore,
    users: UserStore,
    caller: User,
    target_user_id: int,
    org_unit: str,
    division: str,
) -> None:
    """Add target_user_id to the division's users."""
    require(caller, Operation.assign_division)
    require_member(orgs, caller, org_unit, division)
    target = _require_target(users, target_user_id)

    if is_member(orgs, target.id, org_unit, division):
        raise AlreadyAssigned(f"User '{target.username}' is already assigned to '{division}'.")
    with store_guard("assign division"):
        changed = orgs.push_user(org_unit, division, target.id)
    if not changed:
        # Another request added the user after our check.
        raise AlreadyAssigned(f"User '{target.username}' is already assigned to '{division}'.")
    logger.info("user_id=%s assigned user_id=%s to %s/%s", caller.id, target.id, org_unit, division)


def unassign(
    orgs: OrgStore,
    users: UserStore,
    caller: User,
    target_user_id: int,
    org_unit: str,
    division: str,
) -> None:
    """Remove target_user_id from the division's users."""
    require(caller, Operation.unassign_division)
    require_member(orgs, caller, org_unit, division)
    target = _require_target(users, target_user_id)

    if not is_member(orgs, target.id, org_unit, division):
        raise NotAssigned(f"User '{target.username}' is not assigned to '{division}'.")
    with store_guard("unassign division"):
        changed = orgs.pull_user(org_unit, division, target.id)
    if not changed:
        raise NotAssigned(f"User '{target.username}' is not assigned to '{division}'.")
    logger.info("user_id=%s unassigned user_id=%s from %s/%s", caller.id, target.id, org_unit, division)
