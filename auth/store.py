"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  users.email carries a UNIQUE index. It is the real guard against two
  concurrent registrations for the same address -- the service's
  existence check runs before the insert but is not atomic with it.
  create_user() lets sqlalchemy.exc.IntegrityError propagate so the
  service can map it to a duplicate-account error.

Concurrency:
  One Engine per process. Its connection pool is safe to share across the
  worker threads the service offloads store calls to. SQLite connections are
  opened with check_same_thread=False for the same reason.

DB URL: DATABASE_URL (default authgate.db at the project root).

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import User

logger = logging.getLogger("authgate.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex, assigned on insert
    Column("email", String(255), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("display_name", String(255), nullable=False),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("last_login_at", String(32)),  # ISO 8601, NULL until first login
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ux_users_email", "email", unique=True),
)

# Columns callers may change through update_user(). id, email and created_at
# are immutable once written.
_MUTABLE_FIELDS = {"password_hash", "display_name", "is_active", "last_login_at"}


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records, keyed by id and by email.

    Usage:
        store = UserStore("sqlite:///authgate.db")
        created = store.create_user(User(email="a@x.com", password_hash=digest, display_name="A"))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return the stored record with id and timestamps set.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        now = _now_iso()
        user_id = uuid.uuid4().hex
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    email=user.email,
                    password_hash=user.password_hash,
                    display_name=user.display_name,
                    is_active=1 if user.is_active else 0,
                    last_login_at=user.last_login_at,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        logger.info("Created user %s", user_id)
        return User(
            id=user_id,
            email=user.email,
            password_hash=user.password_hash,
            display_name=user.display_name,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
            created_at=now,
            updated_at=now,
        )

    def update_user(self, user_id: str, **fields) -> bool:
        """Update mutable fields on an existing user and bump updated_at.

        Accepted fields: password_hash, display_name, is_active, last_login_at.
        is_active must be passed as bool; this method converts it for storage.
        Unknown fields raise ValueError rather than being silently ignored.

        Returns True if a row was updated, False if user_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)!r}")
        return self._write(user_id, fields, _now_iso())

    def update_last_login(self, user_id: str) -> str | None:
        """Stamp the current UTC time as both last_login_at and updated_at.

        Called on every successful login. Returns the stamp, or None if
        user_id no longer exists.
        """
        stamp = _now_iso()
        if not self._write(user_id, {"last_login_at": stamp}, stamp):
            return None
        return stamp

    def _write(self, user_id: str, fields: dict, updated_at: str) -> bool:
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        values = {**fields, "updated_at": updated_at}
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        display_name=row.display_name,
        is_active=bool(row.is_active),
        last_login_at=row.last_login_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
