"""
tests/conftest.py -- Shared test fixtures for CredVault.

This module provides:
  - user_store / org_store: fresh in-memory stores for unit tests
  - seeded: the standard cast of users and org units, written to those stores
  - vault_env: TestClient over the real app with shared-memory stores, one per module
  - api_client: (client, token, user_id) for the seeded admin

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the TestClient because it runs route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# Set DEBUG before any auth/core import so get_settings() can auto-generate
# SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from orgs.models import Credential
from orgs.store import OrgStore

# ---------------------------------------------------------------------------
# Seed data
#
#   alice  admin       Sales/East, Support/Tier1
#   bob    normal      no memberships
#   carol  normal      Sales/East
#   dave   management  Sales/East
#   erin   admin       no memberships
#
#   Sales/East holds one account: mail / ops@x.com / pw1
# ---------------------------------------------------------------------------

PASSWORD = "testpass123"

MAIL = Credential(name="mail", username="ops@x.com", password="pw1")

_CAST = [
    ("alice", "admin"),
    ("bob", "normal"),
    ("carol", "normal"),
    ("dave", "management"),
    ("erin", "admin"),
]


@dataclass
class Seeded:
    ids: dict[str, int] = field(default_factory=dict)
    users: dict[str, User] = field(default_factory=dict)
    sales_id: int = 0
    support_id: int = 0


# Hashing once keeps the fixtures fast; bcrypt is deliberately slow.
_HASHED = hash_password(PASSWORD)


def seed_stores(user_store: UserStore, org_store: OrgStore) -> Seeded:
    """Write the standard cast and org units into the given stores."""
    seeded = Seeded()
    for username, role in _CAST:
        user = User(username=username, role=role, hashed_password=_HASHED)
        user.id = user_store.create_user(user)
        seeded.ids[username] = user.id
        seeded.users[username] = user

    seeded.sales_id = org_store.create_org_unit("Sales", ["East", "West"])
    seeded.support_id = org_store.create_org_unit("Support", ["Tier1"])
    for name in ("alice", "carol", "dave"):
        org_store.push_user("Sales", "East", seeded.ids[name])
    org_store.push_user("Support", "Tier1", seeded.ids["alice"])
    org_store.push_account("Sales", "East", MAIL)
    return seeded


# ---------------------------------------------------------------------------
# Unit-test fixtures -- function scoped, plain in-memory databases
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def org_store() -> Generator[OrgStore, None, None]:
    store = OrgStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def seeded(user_store: UserStore, org_store: OrgStore) -> Seeded:
    return seed_stores(user_store, org_store)


# ---------------------------------------------------------------------------
# API fixtures -- module scoped, one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class VaultEnv:
    client: TestClient
    user_store: UserStore
    org_store: OrgStore
    seeded: Seeded
    tokens: dict[str, str]

    def headers(self, username: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens[username]}"}


def _patch_lifespan(user_store: UserStore, org_store: OrgStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.org_store = org_store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def vault_env(request) -> Generator[VaultEnv, None, None]:
    """Yield a VaultEnv whose stores are private to the requesting test module."""
    suffix = request.module.__name__.replace(".", "_")
    user_store = UserStore(f"sqlite:///file:test_users_{suffix}?mode=memory&cache=shared&uri=true")
    org_store = OrgStore(f"sqlite:///file:test_orgs_{suffix}?mode=memory&cache=shared&uri=true")
    seeded = seed_stores(user_store, org_store)
    tokens = {
        name: create_access_token(user_id=uid, username=name, role=seeded.users[name].role, expire_seconds=3600)
        for name, uid in seeded.ids.items()
    }

    app.router.lifespan_context = _patch_lifespan(user_store, org_store)
    limiter.reset()

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield VaultEnv(client=client, user_store=user_store, org_store=org_store, seeded=seeded, tokens=tokens)

    org_store.close()
    user_store.close()


@pytest.fixture(scope="module")
def api_client(vault_env: VaultEnv) -> tuple[TestClient, str, int]:
    """(client, token, user_id) for the seeded admin 'alice'."""
    return vault_env.client, vault_env.tokens["alice"], vault_env.seeded.ids["alice"]
