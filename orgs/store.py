"""
orgs/store.py -- SQLAlchemy-backed persistence for the organisational graph.

Uses SQLAlchemy Core (not ORM) so the dataclasses in orgs/models.py remain
the authoritative domain representation.

Document layout:
  One org_units row per OrgUnit. The whole divisions array -- each division's
  name, member ids and accounts -- is serialized into the `divisions` TEXT
  column as JSON, in the same shape as the original document collection:

      [{"name": "East", "users": [1, 4], "accounts": [{"name": ..., "username": ..., "password": ...}]}]

  Keeping divisions embedded makes every division write a single-row update.

Per-document atomic update:
  Every division mutation reads the row, applies the change in Python, and
  writes it back with UPDATE ... WHERE id = :id AND divisions = :previous.
  If another writer changed the document in between, the UPDATE matches
  nothing and StoreUnavailable is raised -- the caller's change is never
  merged over someone else's. There are no cross-document transactions and
  no retries.

Division resolution:
  (org_unit_name, division_name) resolves to the first org unit, by id, with
  that name that contains a division of that name. Names are not guaranteed
  unique, so this rule must be used everywhere (reads and writes alike).

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = OrgStore("sqlite:///:memory:")
    unit_id = store.create_org_unit("Sales", ["East", "West"])
    store.push_user("Sales", "East", user_id=1)
    found = store.find_division("Sales", "East")
    store.close()
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Connection, Engine

from core.config import get_settings, now_iso
from core.errors import StoreUnavailable
from orgs.models import Credential, Division, OrgUnit

logger = logging.getLogger("credvault.orgs.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_org_units = Table(
    "org_units",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, index=True),
    Column("divisions", Text, nullable=False, server_default="[]"),  # JSON array of division documents
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# JSON document mapping
# ---------------------------------------------------------------------------


def _dump_divisions(divisions: Iterable[Division]) -> str:
    return json.dumps([d.to_dict() for d in divisions], separators=(",", ":"))


def _load_divisions(raw: str) -> list[Division]:
    docs = json.loads(raw or "[]")
    return [
        Division(
            name=doc["name"],
            users=[int(u) for u in doc.get("users", [])],
            accounts=[Credential(a["name"], a["username"], a["password"]) for a in doc.get("accounts", [])],
        )
        for doc in docs
    ]


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrgStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a thread pool, so the same pooled
            # connection may be used from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Org units
    # ------------------------------------------------------------------

    def create_org_unit(self, name: str, division_names: Iterable[str] = ()) -> int:
        """Insert a new org unit with empty divisions and return its ID."""
        divisions = [Division(name=d) for d in dict.fromkeys(division_names)]
        with self.engine.connect() as conn:
            result = conn.execute(
                _org_units.insert().values(
                    name=name,
                    divisions=_dump_divisions(divisions),
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def add_division(self, org_unit_id: int, name: str) -> bool:
        """Append an empty division. Returns False if the unit is missing or already has that division."""
        with self.engine.connect() as conn:
            row = conn.execute(_org_units.select().where(_org_units.c.id == org_unit_id)).fetchone()
            if row is None:
                return False
            divisions = _load_divisions(row.divisions)
            if any(d.name == name for d in divisions):
                return False
            divisions.append(Division(name=name))
            self._compare_and_set(conn, row.id, row.divisions, divisions)
            conn.commit()
        return True

    def get_org_unit(self, org_unit_id: int) -> Optional[OrgUnit]:
        """Fetch a single org unit by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_org_units.select().where(_org_units.c.id == org_unit_id)).fetchone()
        return _row_to_org_unit(row) if row is not None else None

    def list_org_units(self) -> list[OrgUnit]:
        """Return every org unit in id order, divisions included."""
        with self.engine.connect() as conn:
            rows = conn.execute(_org_units.select().order_by(_org_units.c.id)).fetchall()
        return [_row_to_org_unit(r) for r in rows]

    # ------------------------------------------------------------------
    # Division lookup
    # ------------------------------------------------------------------

    def find_division(self, org_unit_name: str, division_name: str) -> Optional[tuple[OrgUnit, Division]]:
        """Resolve (org_unit_name, division_name) to its org unit and division, or None."""
        with self.engine.connect() as conn:
            found = self._resolve(conn, org_unit_name, division_name)
        if found is None:
            return None
        row, divisions, index = found
        unit = OrgUnit(id=row.id, name=row.name, divisions=divisions)
        return unit, divisions[index]

    # ------------------------------------------------------------------
    # Division mutations
    #
    # Each returns True when the document changed and False when the
    # division could not be resolved or the change was already in place.
    # ------------------------------------------------------------------

    def push_user(self, org_unit_name: str, division_name: str, user_id: int) -> bool:
        """Add user_id to the division's users unless already present."""

        def _push(division: Division) -> bool:
            if user_id in division.users:
                return False
            division.users.append(user_id)
            return True

        return self._update_division(org_unit_name, division_name, _push)

    def pull_user(self, org_unit_name: str, division_name: str, user_id: int) -> bool:
        """Remove every occurrence of user_id from the division's users."""

        def _pull(division: Division) -> bool:
            if user_id not in division.users:
                return False
            division.users = [u for u in division.users if u != user_id]
            return True

        return self._update_division(org_unit_name, division_name, _pull)

    def push_account(self, org_unit_name: str, division_name: str, credential: Credential) -> bool:
        """Append a credential unless one with the same (name, username) exists."""

        def _push(division: Division) -> bool:
            if division.find_account(credential.name, credential.username) is not None:
                return False
            division.accounts.append(credential)
            return True

        return self._update_division(org_unit_name, division_name, _push)

    def replace_account(self, org_unit_name: str, division_name: str, old: Credential, new: Credential) -> bool:
        """Replace every account equal to `old` on the full triple with `new`.

        Position in the accounts list is preserved. Returns False when nothing
        matches or when new == old (no value would change).
        """

        def _replace(division: Division) -> bool:
            if old == new or old not in division.accounts:
                return False
            division.accounts = [new if account == old else account for account in division.accounts]
            return True

        return self._update_division(org_unit_name, division_name, _replace)

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve(self, conn: Connection, org_unit_name: str, division_name: str):
        rows = conn.execute(
            _org_units.select().where(_org_units.c.name == org_unit_name).order_by(_org_units.c.id)
        ).fetchall()
        for row in rows:
            divisions = _load_divisions(row.divisions)
            for index, division in enumerate(divisions):
                if division.name == division_name:
                    return row, divisions, index
        return None

    def _update_division(
        self,
        org_unit_name: str,
        division_name: str,
        mutate: Callable[[Division], bool],
    ) -> bool:
        with self.engine.connect() as conn:
            found = self._resolve(conn, org_unit_name, division_name)
            if found is None:
                return False
            row, divisions, index = found
            if not mutate(divisions[index]):
                return False
            self._compare_and_set(conn, row.id, row.divisions, divisions)
            conn.commit()
        return True

    @staticmethod
    def _compare_and_set(conn: Connection, org_unit_id: int, previous: str, divisions: list[Division]) -> None:
        result = conn.execute(
            _org_units.update()
            .where((_org_units.c.id == org_unit_id) & (_org_units.c.divisions == previous))
            .values(divisions=_dump_divisions(divisions))
        )
        if result.rowcount == 0:
            conn.rollback()
            logger.warning("Concurrent modification of org_unit id=%s; write discarded", org_unit_id)
            raise StoreUnavailable("The division was modified concurrently. Please retry.")


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_org_unit(row) -> OrgUnit:
    return OrgUnit(id=row.id, name=row.name, divisions=_load_divisions(row.divisions))
