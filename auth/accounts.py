"""
auth/accounts.py -- Registration, login, and caller resolution.

register() and login() are the only unauthenticated operations. Both treat
usernames case-insensitively: "Alice" and "alice" are the same account.

login() scans every case-insensitive username match in id order and returns
the first whose hash verifies. When there is no candidate at all, one bcrypt
comparison still runs against a dummy hash so response time does not reveal
whether the username exists.

Layer rule: no imports from api/ or orgs/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import Identity, Role, User
from auth.roles import parse_role
from auth.store import UserStore
from auth.tokens import burn_verify, create_access_token, hash_password, verify_password
from core.config import get_settings
from core.errors import BadAssertion, Forbidden, InvalidCredentials, PasswordTooLong, UsernameTaken, store_guard

logger = logging.getLogger("credvault.auth.accounts")


def register(users: UserStore, username: str, password: str) -> User:
    """Create a new user with the default 'normal' role.

    Raises:
        Forbidden: self-registration is switched off in settings.
        UsernameTaken: any existing username matches case-insensitively.
    """
    if not get_settings().self_registration_enabled:
        raise Forbidden("Self-registration is disabled.")
    user = provision_user(users, username, password)
    logger.info("Registered user_id=%s", user.id)
    return user


def provision_user(users: UserStore, username: str, password: str, role: str = Role.normal.value) -> User:
    """Create a user with any valid role. Used by register() and the CLI.

    Raises:
        InvalidRole: role is not one of the three role strings.
        PasswordTooLong: password is over bcrypt's 72-byte input limit.
        UsernameTaken: any existing username matches case-insensitively.
    """
    role = parse_role(role).value
    try:
        hashed = hash_password(password)
    except ValueError as exc:
        raise PasswordTooLong() from exc
    with store_guard("create user"):
        existing = users.find_by_username(username)
        if existing:
            raise UsernameTaken(f"Cannot register new user. Username '{existing[0].username}' is already taken.")
        user = User(username=username, role=role, hashed_password=hashed)
        try:
            user.id = users.create_user(user)
        except IntegrityError as exc:
            # Exact-case duplicate inserted between the check and the write.
            raise UsernameTaken(f"Cannot register new user. Username '{username}' is already taken.") from exc
    return user


def authenticate(users: UserStore, username: str, password: str) -> User:
    """Return the first user whose username and password both match.

    Raises InvalidCredentials on any mismatch; the message is the same for an
    unknown username and a wrong password.
    """
    with store_guard("login"):
        candidates = users.find_by_username(username)
    if not candidates:
        burn_verify(password)
        raise InvalidCredentials()
    for candidate in candidates:
        if candidate.hashed_password and verify_password(password, candidate.hashed_password):
            return candidate
    raise InvalidCredentials()


def login(users: UserStore, username: str, password: str) -> tuple[User, str]:
    """Authenticate and issue an access token. Returns (user, token)."""
    user = authenticate(users, username, password)
    token = create_access_token(user.id, user.username, user.role)
    logger.info("Login succeeded for user_id=%s", user.id)
    return user, token


def resolve_caller(users: UserStore, identity: Identity) -> User:
    """Reload the user behind a verified token.

    The stored record is authoritative for role. A token whose user no longer
    exists is treated as a bad assertion.
    """
    with store_guard("resolve caller"):
        user = users.get_by_id(identity.user_id)
    if user is None:
        raise BadAssertion("Token refers to an unknown user.")
    return user
