"""
orgs/registry.py -- Credential registry.

Adds and updates the shared credentials held by a division. There is no
remove operation.

Within one division the (name, username) pair is unique. Both operations
check that with a read before the write; the store's compare-and-set turns a
concurrent change between the two into StoreUnavailable rather than a
duplicate.

Passwords are never logged.
"""

from __future__ import annotations

import logging

from auth.models import User
from auth.roles import Operation, require
from core.errors import DuplicateCredential, EmptyField, NothingUpdated, store_guard
from orgs.membership import require_member
from orgs.models import Credential
from orgs.store import OrgStore

logger = logging.getLogger("credvault.orgs.registry")


def add_credential(orgs: OrgStore, caller: User, org_unit: str, division: str, credential: Credential) -> None:
    """Append a credential to the division.

    Raises:
        Forbidden: the caller's role does not permit adding, or the caller is
            not a member of the division.
        DuplicateCredential: the division already holds (name, username).
    """
    require(caller, Operation.add_credential)
    require_member(orgs, caller, org_unit, division)

    with store_guard("add credential"):
        found = orgs.find_division(org_unit, division)
        if found is not None and found[1].find_account(credential.name, credential.username) is not None:
            raise DuplicateCredential("Account already exists.")
        if not orgs.push_account(org_unit, division, credential):
            raise DuplicateCredential("Account already exists.")
    logger.info(
        "user_id=%s added credential %r (username=%r) to %s/%s",
        caller.id,
        credential.name,
        credential.username,
        org_unit,
        division,
    )


def update_credential(
    orgs: OrgStore,
    caller: User,
    org_unit: str,
    division: str,
    old: Credential,
    new: Credential,
) -> None:
    """Replace the credential equal to `old` with `new`.

    `old` must match a stored credential on all three fields, password
    included.

    Raises:
        EmptyField: any field of `new` is empty. Checked first.
        Forbidden: role below management, or not a member of the division.
        DuplicateCredential: the (name, username) pair is being changed to
            one that already exists in the division.
        NothingUpdated: no stored credential equals `old`, or `new` == `old`.
    """
    if not (new.name and new.username and new.password):
        raise EmptyField("Fields cannot be empty.")
    require(caller, Operation.update_credential)
    require_member(orgs, caller, org_unit, division)

    with store_guard("update credential"):
        if new.key != old.key:
            found = orgs.find_division(org_unit, division)
            if found is not None and found[1].find_account(new.name, new.username) is not None:
                raise DuplicateCredential("An account with that name and username already exists.")
        changed = orgs.replace_account(org_unit, division, old, new)
    if not changed:
        raise NothingUpdated("Nothing was updated.")
    logger.info("user_id=%s updated credential %r in %s/%s", caller.id, old.name, org_unit, division)
