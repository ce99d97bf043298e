"""
orgs/models.py -- Domain dataclasses for the organisational graph.

These are pure data containers. Access rules live in orgs/membership.py and
orgs/registry.py; persistence lives in orgs/store.py.

Shape mirrors the stored document: an OrgUnit owns an ordered list of
Divisions, and each Division owns its member ids and its credentials. There
is no join table -- a division's `users` list is the only access-control edge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Credential:
    """A shared account credential.

    Frozen so equality is structural: `credential in division.accounts` is
    the exact-triple match used by credential updates.
    """

    name: str
    username: str
    password: str

    @property
    def key(self) -> tuple[str, str]:
        """The (name, username) pair that must be unique within a division."""
        return (self.name, self.username)

    def to_dict(self) -> dict:
        return {"name": self.name, "username": self.username, "password": self.password}


@dataclass
class Division:
    name: str
    users: list[int] = field(default_factory=list)  # set semantics, insertion order kept
    accounts: list[Credential] = field(default_factory=list)

    def has_member(self, user_id: int) -> bool:
        return user_id in self.users

    def find_account(self, name: str, username: str) -> Optional[Credential]:
        for account in self.accounts:
            if account.name == name and account.username == username:
                return account
        return None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "users": list(self.users),
            "accounts": [a.to_dict() for a in self.accounts],
        }


@dataclass
class OrgUnit:
    """A named top-level grouping of divisions.

    id is None before the record is written to the database. Names are
    expected to be unique but that is not enforced.
    """

    name: str
    divisions: list[Division] = field(default_factory=list)
    id: Optional[int] = None

    def find_division(self, name: str) -> Optional[Division]:
        for division in self.divisions:
            if division.name == name:
                return division
        return None


@dataclass
class DivisionView:
    """A division as shown to a member: its name and, optionally, its accounts."""

    name: str
    accounts: list[Credential] = field(default_factory=list)


@dataclass
class OrgMembership:
    """One org unit in a user's membership listing.

    divisions holds plain names for the names-only shape and DivisionView
    objects for the with-accounts shape.
    """

    org_unit_id: int
    name: str
    divisions: list = field(default_factory=list)


@dataclass
class Profile:
    """A user as shown in /auth/me and the roster: no password hash."""

    id: int
    username: str
    role: str
    organisational_units: list[OrgMembership] = field(default_factory=list)
