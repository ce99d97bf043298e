"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors orgs/models.py --
dataclasses own domain shape; stores and services do the work.

Layer rule: no imports from api/ or orgs/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of user roles, lowest privilege first."""

    normal = "normal"
    management = "management"
    admin = "admin"


@dataclass
class User:
    """A registered vault user.

    role is kept as the raw stored string rather than a Role member. Rows
    written by older tooling may hold a value outside the enum; the role
    authorizer treats such a user as having no permissions instead of failing
    to load the record.
    """

    username: str
    role: str = Role.normal.value
    id: int | None = None
    hashed_password: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Claims recovered from a verified access token: {user_id, username, role}.

    The role claim is informational. Authorization always re-reads the role
    from the user store because it may have changed since the token was issued.
    """

    user_id: int
    username: str
    role: str
