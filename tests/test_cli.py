"""
tests/test_cli.py -- Tests for the management CLI (main.py).

Each test points --db at its own SQLite file under tmp_path.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import main


def _db(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'vault.db'}"


class TestCreateUser:
    def test_creates_admin(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rc = main.main(["--db", _db(tmp_path), "create-user", "root", "pw", "--role", "admin"])
        assert rc == 0
        assert "role=admin" in capsys.readouterr().out

    def test_duplicate_username_fails(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main.main(["--db", _db(tmp_path), "create-user", "root", "pw"])
        rc = main.main(["--db", _db(tmp_path), "create-user", "ROOT", "pw"])
        assert rc == 1
        assert "already taken" in capsys.readouterr().out

    def test_rejects_unknown_role(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc:
            main.main(["--db", _db(tmp_path), "create-user", "root", "pw", "--role", "owner"])
        assert exc.value.code == 2


class TestLoadOrgsAndMemberships:
    def test_round_trip(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        db = _db(tmp_path)
        main.main(["--db", db, "create-user", "alice", "pw"])
        seed = tmp_path / "orgs.json"
        seed.write_text(
            json.dumps(
                [
                    {
                        "name": "Sales",
                        "divisions": [
                            {
                                "name": "East",
                                "users": ["alice"],
                                "accounts": [{"name": "mail", "username": "ops@x.com", "password": "pw1"}],
                            }
                        ],
                    }
                ]
            )
        )
        assert main.main(["--db", db, "load-orgs", str(seed)]) == 0
        capsys.readouterr()

        assert main.main(["--db", db, "memberships", "alice", "--accounts", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == [
            {
                "org_unit_id": 1,
                "name": "Sales",
                "divisions": [
                    {"name": "East", "accounts": [{"name": "mail", "username": "ops@x.com", "password": "pw1"}]}
                ],
            }
        ]

    def test_missing_seed_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rc = main.main(["--db", _db(tmp_path), "load-orgs", str(tmp_path / "missing.json")])
        assert rc == 1
        assert "not a readable file" in capsys.readouterr().out

    def test_unknown_user_memberships(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rc = main.main(["--db", _db(tmp_path), "memberships", "ghost"])
        assert rc == 1
