"""
orgs/seed.py -- Bulk loading of org units from a JSON seed file.

Seed format:
    [
      {
        "name": "Sales",
        "divisions": [
          {
            "name": "East",
            "users": ["alice", "bob"],
            "accounts": [{"name": "mail", "username": "ops@x.com", "password": "..."}]
          }
        ]
      }
    ]

Members are listed by username and resolved case-insensitively through the
user store at load time (first match by id). Unknown usernames are reported
in SeedResult.errors and skipped; the rest of the file still loads.

Loading is idempotent: an org unit whose name already exists is reused,
missing divisions are added, and users and accounts already present are left
alone.

Pipeline:
  seed file -> parse_org_seed() -> list[OrgSeed] -> load_org_seed() -> OrgStore
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from auth.store import UserStore
from orgs.models import Credential
from orgs.store import OrgStore

logger = logging.getLogger("credvault.orgs.seed")


@dataclass
class DivisionSeed:
    name: str
    usernames: list[str] = field(default_factory=list)
    accounts: list[Credential] = field(default_factory=list)


@dataclass
class OrgSeed:
    name: str
    divisions: list[DivisionSeed] = field(default_factory=list)


@dataclass
class SeedResult:
    org_units_created: int = 0
    divisions_created: int = 0
    members_added: int = 0
    accounts_added: int = 0
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_account(doc) -> Credential | None:
    if not isinstance(doc, dict):
        return None
    name = str(doc.get("name") or "").strip()
    username = str(doc.get("username") or "").strip()
    password = str(doc.get("password") or "")
    if not name or not username or not password:
        return None
    return Credential(name=name, username=username, password=password)


def parse_org_seed(content: str) -> list[OrgSeed]:
    """Parse seed JSON into OrgSeed records.

    Returns an empty list if the content is not valid JSON or not a list.
    Entries without a name, and accounts with an empty field, are skipped.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, ValueError):
        return []
    if not isinstance(data, list):
        return []

    seeds: list[OrgSeed] = []
    for unit_doc in data:
        if not isinstance(unit_doc, dict):
            continue
        unit_name = str(unit_doc.get("name") or "").strip()
        if not unit_name:
            continue
        seed = OrgSeed(name=unit_name)
        by_name: dict[str, DivisionSeed] = {}
        for div_doc in unit_doc.get("divisions") or []:
            if not isinstance(div_doc, dict):
                continue
            div_name = str(div_doc.get("name") or "").strip()
            if not div_name:
                continue
            usernames = [str(u).strip() for u in div_doc.get("users") or [] if str(u).strip()]
            accounts = [a for a in (_parse_account(d) for d in div_doc.get("accounts") or []) if a is not None]
            merged = by_name.get(div_name)
            if merged is None:
                merged = by_name[div_name] = DivisionSeed(name=div_name)
                seed.divisions.append(merged)
            # A repeated division name folds into its first entry.
            merged.usernames.extend(u for u in usernames if u not in merged.usernames)
            merged.accounts.extend(a for a in accounts if a not in merged.accounts)
        seeds.append(seed)
    return seeds


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_org_seed(orgs: OrgStore, users: UserStore, seeds: list[OrgSeed]) -> SeedResult:
    """Write parsed seed records to the org store."""
    result = SeedResult()
    existing = {}
    for unit in orgs.list_org_units():
        existing.setdefault(unit.name, unit)

    for seed in seeds:
        unit = existing.get(seed.name)
        if unit is None:
            unit_id = orgs.create_org_unit(seed.name, [d.name for d in seed.divisions])
            result.org_units_created += 1
            result.divisions_created += len(seed.divisions)
            existing[seed.name] = orgs.get_org_unit(unit_id)
        else:
            for div in seed.divisions:
                if unit.find_division(div.name) is None and orgs.add_division(unit.id, div.name):
                    result.divisions_created += 1

        for div in seed.divisions:
            for username in div.usernames:
                matches = users.find_by_username(username)
                if not matches:
                    result.errors.append(f"{seed.name}/{div.name}: unknown user '{username}'")
                    continue
                if orgs.push_user(seed.name, div.name, matches[0].id):
                    result.members_added += 1
            for account in div.accounts:
                if orgs.push_account(seed.name, div.name, account):
                    result.accounts_added += 1

    logger.info(
        "Seed loaded: %d org units, %d divisions, %d members, %d accounts, %d errors",
        result.org_units_created,
        result.divisions_created,
        result.members_added,
        result.accounts_added,
        len(result.errors),
    )
    return result
