"""
orgs/directory.py -- Read-only queries over users and the org graph.

list_memberships() is the single place that answers "which divisions does
this user belong to". It flattens every org unit into (org unit, division)
pairs, keeps the pairs whose users list contains the id, and regroups them
by org unit id in first-seen order. An org unit appears at most once, and
only if at least one of its divisions matched.

The listing reports every org unit by id, including units that share a name.
Writes and membership gates instead resolve a (unit name, division name)
pair to the first unit by id holding that division (OrgStore.find_division).
So a member of a later same-named unit sees its credentials here but is
refused on add or assign through that name.
"""

from __future__ import annotations

from auth.models import User
from auth.roles import Operation, require
from auth.store import UserStore
from core.errors import store_guard
from orgs.models import DivisionView, OrgMembership, OrgUnit, Profile
from orgs.store import OrgStore


def _memberships_from(units: list[OrgUnit], user_id: int, with_accounts: bool) -> list[OrgMembership]:
    grouped: dict[int, OrgMembership] = {}
    for unit in units:
        for division in unit.divisions:
            if not division.has_member(user_id):
                continue
            entry = grouped.get(unit.id)
            if entry is None:
                entry = grouped[unit.id] = OrgMembership(org_unit_id=unit.id, name=unit.name)
            if with_accounts:
                entry.divisions.append(DivisionView(name=division.name, accounts=list(division.accounts)))
            else:
                entry.divisions.append(division.name)
    return list(grouped.values())


def list_memberships(orgs: OrgStore, user_id: int, with_accounts: bool = False) -> list[OrgMembership]:
    """Return the org units and divisions user_id belongs to.

    Names-only by default; with_accounts=True attaches each division's
    credentials.
    """
    with store_guard("list memberships"):
        units = orgs.list_org_units()
    return _memberships_from(units, user_id, with_accounts)


def get_profile(orgs: OrgStore, caller: User) -> Profile:
    require(caller, Operation.view_profile)
    return Profile(
        id=caller.id,
        username=caller.username,
        role=caller.role,
        organisational_units=list_memberships(orgs, caller.id),
    )


def list_users(users: UserStore, orgs: OrgStore, caller: User) -> list[Profile]:
    """Return every user's profile, ordered by id."""
    require(caller, Operation.list_users)
    with store_guard("list users"):
        all_users = users.list_users()
        units = orgs.list_org_units()
    return [
        Profile(
            id=u.id,
            username=u.username,
            role=u.role,
            organisational_units=_memberships_from(units, u.id, with_accounts=False),
        )
        for u in all_users
    ]


def view_credentials(orgs: OrgStore, caller: User) -> list[OrgMembership]:
    """Return the caller's memberships with the credentials of each division."""
    require(caller, Operation.view_credentials)
    return list_memberships(orgs, caller.id, with_accounts=True)
