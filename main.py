#!/usr/bin/env python3
"""
CredVault management CLI -- bootstrap users and org units without the API.

Usage:
  python main.py create-user alice s3cret --role admin
  python main.py load-orgs orgs.json
  python main.py memberships alice
  python main.py memberships alice --accounts --json

The database is taken from DATABASE_URL (see core/config.py) unless --db is given.
Exit status is 0 on success, 1 on a rejected operation, 2 on bad arguments.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from auth.accounts import provision_user
from auth.models import Role
from auth.store import UserStore
from core.errors import VaultError
from orgs.directory import list_memberships
from orgs.models import DivisionView
from orgs.seed import load_org_seed, parse_org_seed
from orgs.store import OrgStore


def _read_file(path: str) -> Optional[str]:
    """Read a seed file, or print why it can't be read and return None.

    Resolves symlinks and verifies the path is a regular file before reading.
    """
    file_path = Path(path).resolve()
    if not file_path.is_file():
        print(f"  [!] '{path}' is not a readable file.")
        return None
    try:
        return file_path.read_text()
    except OSError as e:
        print(f"  [!] Could not read file '{path}': {e}")
        return None


def cmd_create_user(args: argparse.Namespace) -> int:
    users = UserStore(args.db)
    try:
        user = provision_user(users, args.username, args.password, args.role)
    except VaultError as e:
        print(f"  [!] {e.message}")
        return 1
    finally:
        users.close()
    print(f"Created user '{user.username}' (id={user.id}, role={user.role}).")
    return 0


def cmd_load_orgs(args: argparse.Namespace) -> int:
    content = _read_file(args.file)
    if content is None:
        return 1
    seeds = parse_org_seed(content)
    if not seeds:
        print(f"  [!] No org units found in '{args.file}'.")
        return 1

    users = UserStore(args.db)
    orgs = OrgStore(args.db)
    try:
        result = load_org_seed(orgs, users, seeds)
    finally:
        orgs.close()
        users.close()

    print(
        f"Loaded {result.org_units_created} org unit(s), {result.divisions_created} division(s), "
        f"{result.members_added} member(s), {result.accounts_added} account(s)."
    )
    for error in result.errors:
        print(f"  [!] {error}")
    return 1 if result.errors else 0


def _membership_to_dict(membership) -> dict:
    divisions = []
    for division in membership.divisions:
        if isinstance(division, DivisionView):
            divisions.append({"name": division.name, "accounts": [a.to_dict() for a in division.accounts]})
        else:
            divisions.append(division)
    return {"org_unit_id": membership.org_unit_id, "name": membership.name, "divisions": divisions}


def cmd_memberships(args: argparse.Namespace) -> int:
    users = UserStore(args.db)
    orgs = OrgStore(args.db)
    try:
        matches = users.find_by_username(args.username)
        if not matches:
            print(f"  [!] No user named '{args.username}'.")
            return 1
        memberships = list_memberships(orgs, matches[0].id, with_accounts=args.accounts)
    finally:
        orgs.close()
        users.close()

    if args.json:
        print(json.dumps([_membership_to_dict(m) for m in memberships], indent=2))
        return 0
    if not memberships:
        print(f"'{matches[0].username}' does not belong to any division.")
        return 0
    for membership in memberships:
        print(f"{membership.name} (id={membership.org_unit_id})")
        for division in membership.divisions:
            if isinstance(division, DivisionView):
                print(f"  {division.name}")
                for account in division.accounts:
                    print(f"    {account.name}  {account.username}")
            else:
                print(f"  {division}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credvault",
        description="CredVault -- manage users and organisational units.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db",
        default=None,
        metavar="URL",
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create a user with any role")
    create.add_argument("username")
    create.add_argument("password")
    create.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.normal.value,
        help="Role for the new user (default: normal)",
    )
    create.set_defaults(func=cmd_create_user)

    load = sub.add_parser("load-orgs", help="Load org units and divisions from a JSON seed file")
    load.add_argument("file")
    load.set_defaults(func=cmd_load_orgs)

    members = sub.add_parser("memberships", help="Show which divisions a user belongs to")
    members.add_argument("username")
    members.add_argument("--accounts", action="store_true", help="Include each division's credentials")
    members.add_argument("--json", action="store_true", help="Output as JSON")
    members.set_defaults(func=cmd_memberships)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
