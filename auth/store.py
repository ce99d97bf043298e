"""
auth/store.py -- SQLAlchemy Core persistence layer for the user directory.

Pattern: Repository + Data Mapper (same as orgs/store.py).
UserStore is the repository; _row_to_user is the mapper. Service and route
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Case-insensitive usernames:
  The UNIQUE constraint on username is case-sensitive, so "Alice" and "alice"
  are distinct to the database. Case-insensitive uniqueness is enforced in
  auth/accounts.register() via find_by_username(), which queries through the
  functional index on lower(username). The UNIQUE constraint still catches
  the exact-case race between two concurrent registrations.

Layer rule: no imports from api/ or orgs/.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import User
from core.config import get_settings, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default="normal"),
    Column("created_at", String(32), nullable=False),
)

Index("ix_users_username_lower", func.lower(_users.c.username))


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        uid = store.create_user(User(username="alice", hashed_password=hash_password("secret")))
        user = store.get_by_id(uid)
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (result or 0) > 0

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the exact username already
        exists. Callers should catch it as a signal that a concurrent request
        created the record first.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    role=user.role,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_username(self, username: str) -> list[User]:
        """Return every user whose username matches case-insensitively, oldest first.

        Normally at most one row comes back. Order by id so "first match wins"
        is deterministic if legacy data ever holds case-variant duplicates.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(
                _users.select().where(func.lower(_users.c.username) == username.lower()).order_by(_users.c.id)
            ).fetchall()
        return [_row_to_user(r) for r in rows]

    def list_users(self) -> list[User]:
        """Return all users in registration order."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_role(self, user_id: int, role: str) -> bool:
        """Write a new role. Returns True if a row was updated, False if user_id was not found.

        The value is not validated here -- auth/roles.change_role() parses it
        before calling, so an invalid role never reaches the store.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(role=role))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        role=row.role,
        created_at=row.created_at,
    )
