"""
core/errors.py -- Failure taxonomy shared by every CredVault layer.

Every operation in auth/ and orgs/ either returns its payload or raises one of
the VaultError subclasses below. The api/ layer owns the mapping from `code`
to HTTP status; nothing here knows about transport.

Propagation policy:
  - Authorization failures (Forbidden, InvalidRole, BadAssertion) are raised
    before any write, so there is never a partial effect.
  - Uniqueness failures (AlreadyAssigned, DuplicateCredential, UsernameTaken)
    come from an explicit pre-check; the write is never attempted.
  - StoreUnavailable wraps any SQLAlchemy failure. It is the only error whose
    detail is logged server-side; clients get a generic message.

Layer rule: core/ is the kernel. No imports from api/, auth/, or orgs/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("credvault.store")


class VaultError(Exception):
    """Base class for every expected failure outcome."""

    code: str = "vault_error"
    default_message: str = "Operation failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadAssertion(VaultError):
    code = "bad_assertion"
    default_message = "Missing, invalid or expired token."


class InvalidCredentials(VaultError):
    code = "invalid_credentials"
    default_message = "Incorrect login details."


class UsernameTaken(VaultError):
    code = "username_taken"
    default_message = "Username is already taken."


class PasswordTooLong(VaultError):
    code = "password_too_long"
    default_message = "Password must be at most 72 bytes when UTF-8 encoded."


class InvalidRole(VaultError):
    code = "invalid_role"
    default_message = "Role must be one of: normal, management, admin."


class Forbidden(VaultError):
    code = "forbidden"
    default_message = "You are not authorized to perform this operation."


class AlreadyAssigned(VaultError):
    code = "already_assigned"
    default_message = "User is already assigned to this division."


class NotAssigned(VaultError):
    code = "not_assigned"
    default_message = "User does not belong to this division."


class DuplicateCredential(VaultError):
    code = "duplicate_credential"
    default_message = "This credential already exists in the division."


class EmptyField(VaultError):
    code = "empty_field"
    default_message = "Credential name, username and password must all be non-empty."


class NothingUpdated(VaultError):
    code = "nothing_updated"
    default_message = "No matching credential was changed. Nothing was updated."


class UnknownUser(VaultError):
    code = "unknown_user"
    default_message = "User not found."


class StoreUnavailable(VaultError):
    code = "store_unavailable"
    default_message = "The credential store is unavailable."


@contextmanager
def store_guard(operation: str) -> Iterator[None]:
    """Convert lower-layer database failures into StoreUnavailable.

    Usage:
        with store_guard("add credential"):
            store.push_account(...)

    The original exception is logged with its traceback and chained onto the
    StoreUnavailable so the API layer can still log it, but its text never
    reaches the client.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Store failure during %s", operation)
        raise StoreUnavailable(f"Store failure during {operation}.") from exc
