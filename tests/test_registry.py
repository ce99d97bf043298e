"""
tests/test_registry.py -- Unit tests for the credential registry (orgs/registry.py).

Seeded Sales/East members: alice (admin), carol (normal), dave (management).
Sales/East starts with one account: mail / ops@x.com / pw1.
"""

from __future__ import annotations

import pytest

from core.errors import DuplicateCredential, EmptyField, Forbidden, NothingUpdated
from orgs import registry
from orgs.models import Credential
from orgs.store import OrgStore

MAIL = Credential("mail", "ops@x.com", "pw1")


def _east_accounts(org_store: OrgStore) -> list[Credential]:
    _, division = org_store.find_division("Sales", "East")
    return list(division.accounts)


def _assert_unique_pairs(accounts: list[Credential]) -> None:
    keys = [a.key for a in accounts]
    assert len(keys) == len(set(keys)), f"duplicate (name, username) pairs: {keys}"


class TestAddCredential:
    def test_normal_member_adds_then_duplicate_fails(self, org_store: OrgStore, seeded) -> None:
        carol = seeded.users["carol"]
        cred = Credential("mail", "c@x.com", "p")
        registry.add_credential(org_store, carol, "Sales", "East", cred)
        assert _east_accounts(org_store) == [MAIL, cred]

        with pytest.raises(DuplicateCredential):
            registry.add_credential(org_store, carol, "Sales", "East", cred)
        assert _east_accounts(org_store) == [MAIL, cred]

    def test_duplicate_ignores_password(self, org_store: OrgStore, seeded) -> None:
        with pytest.raises(DuplicateCredential):
            registry.add_credential(
                org_store, seeded.users["carol"], "Sales", "East", Credential("mail", "ops@x.com", "other")
            )

    def test_non_member_forbidden(self, org_store: OrgStore, seeded) -> None:
        with pytest.raises(Forbidden):
            registry.add_credential(org_store, seeded.users["bob"], "Sales", "East", Credential("a", "b", "c"))
        with pytest.raises(Forbidden):
            registry.add_credential(org_store, seeded.users["erin"], "Sales", "East", Credential("a", "b", "c"))
        assert _east_accounts(org_store) == [MAIL]


class TestUpdateCredential:
    def test_management_member_updates_password(self, org_store: OrgStore, seeded) -> None:
        new = Credential("mail", "ops@x.com", "rotated")
        registry.update_credential(org_store, seeded.users["dave"], "Sales", "East", MAIL, new)
        assert _east_accounts(org_store) == [new]

    def test_normal_member_forbidden(self, org_store: OrgStore, seeded) -> None:
        with pytest.raises(Forbidden):
            registry.update_credential(
                org_store, seeded.users["carol"], "Sales", "East", MAIL, Credential("mail", "ops@x.com", "x")
            )
        assert _east_accounts(org_store) == [MAIL]

    def test_admin_non_member_forbidden(self, org_store: OrgStore, seeded) -> None:
        with pytest.raises(Forbidden):
            registry.update_credential(
                org_store, seeded.users["erin"], "Sales", "East", MAIL, Credential("mail", "ops@x.com", "x")
            )

    @pytest.mark.parametrize(
        "new",
        [Credential("", "ops@x.com", "x"), Credential("mail", "", "x"), Credential("mail", "ops@x.com", "")],
    )
    def test_empty_field_leaves_store_unchanged(self, org_store: OrgStore, seeded, new: Credential) -> None:
        with pytest.raises(EmptyField):
            registry.update_credential(org_store, seeded.users["dave"], "Sales", "East", MAIL, new)
        assert _east_accounts(org_store) == [MAIL]

    def test_empty_field_checked_before_role(self, org_store: OrgStore, seeded) -> None:
        with pytest.raises(EmptyField):
            registry.update_credential(
                org_store, seeded.users["bob"], "Sales", "East", MAIL, Credential("", "", "")
            )

    def test_rename_onto_existing_pair_is_duplicate(self, org_store: OrgStore, seeded) -> None:
        crm = Credential("crm", "ops@x.com", "pw2")
        registry.add_credential(org_store, seeded.users["carol"], "Sales", "East", crm)
        with pytest.raises(DuplicateCredential):
            registry.update_credential(
                org_store, seeded.users["dave"], "Sales", "East", crm, Credential("mail", "ops@x.com", "pw2")
            )
        accounts = _east_accounts(org_store)
        assert accounts == [MAIL, crm]
        _assert_unique_pairs(accounts)

    def test_stale_old_password_is_nothing_updated(self, org_store: OrgStore, seeded) -> None:
        stale = Credential("mail", "ops@x.com", "not-the-password")
        with pytest.raises(NothingUpdated):
            registry.update_credential(
                org_store, seeded.users["dave"], "Sales", "East", stale, Credential("mail", "ops@x.com", "new")
            )
        assert _east_accounts(org_store) == [MAIL]

    def test_identical_replacement_is_nothing_updated(self, org_store: OrgStore, seeded) -> None:
        with pytest.raises(NothingUpdated):
            registry.update_credential(org_store, seeded.users["alice"], "Sales", "East", MAIL, MAIL)

    def test_rename_to_free_pair(self, org_store: OrgStore, seeded) -> None:
        new = Credential("webmail", "ops@x.com", "pw1")
        registry.update_credential(org_store, seeded.users["alice"], "Sales", "East", MAIL, new)
        assert _east_accounts(org_store) == [new]

    def test_add_update_sequence_keeps_pairs_unique(self, org_store: OrgStore, seeded) -> None:
        dave = seeded.users["dave"]
        creds = [Credential(f"svc{i}", "ops@x.com", f"p{i}") for i in range(4)]
        for cred in creds:
            registry.add_credential(org_store, dave, "Sales", "East", cred)
        for old, new in zip(creds, creds[1:]):
            with pytest.raises(DuplicateCredential):
                registry.update_credential(org_store, dave, "Sales", "East", old, Credential(new.name, new.username, "x"))
        registry.update_credential(org_store, dave, "Sales", "East", creds[0], Credential("svc9", "ops@x.com", "p"))
        _assert_unique_pairs(_east_accounts(org_store))
