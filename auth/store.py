"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user / _user_to_row are the mappers.
Workflow and route code never touch SQL directly.

Uniqueness:
  users.email carries a UNIQUE index covering deleted rows too. AuthService
  checks for an existing email before inserting, but two concurrent
  registrations can both pass that check; the index turns the race into a
  deterministic IntegrityError for the losing writer.

Atomicity:
  Every mutation runs inside engine.begin(), so each create/save is a single
  committed transaction or nothing at all.

Security:
  All queries use bound parameters. No f-strings in SQL except the
  whitelisted column DDL in _ensure_columns().

Schema migration notes:
  Columns added after the first release are listed in _ADDED_COLUMNS and
  applied via ALTER TABLE ADD COLUMN on startup, so existing DBs are upgraded
  without a manual migration step.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Float, Index, Integer, MetaData, String, Table, Text, create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Gender, SecurityLevel, TravelPreferences, User
from core.config import get_settings

logger = logging.getLogger("accounts.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(320), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("name", String(255), nullable=False),
    Column("gender", String(10)),  # "male" | "female" | "other"
    Column("country", String(100)),
    Column("age", Float),
    Column("preferred_language", Text),  # JSON array, order preserved
    Column("travel_preferences", Text),  # JSON object
    Column("security_level", String(10), nullable=False, server_default="medium"),
    Column("is_email_verified", Integer, nullable=False, server_default="0"),
    Column("is_deleted", Integer, nullable=False, server_default="0"),
    Column("deleted_at", String(32)),  # ISO 8601
    Column("last_login_date", String(32)),  # ISO 8601
    Column("account_creation_date", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("uq_users_email", "email", unique=True),
    Index("idx_users_is_deleted", "is_deleted"),
)

# Columns that older databases may lack. (name, DDL fragment)
_ADDED_COLUMNS: tuple[tuple[str, str], ...] = (
    ("security_level", "VARCHAR(10) NOT NULL DEFAULT 'medium'"),
    ("is_email_verified", "INTEGER NOT NULL DEFAULT 0"),
)

# Fields save() is allowed to write. id, email, password_hash and
# account_creation_date are fixed at creation.
_MUTABLE_FIELDS = (
    "name",
    "gender",
    "country",
    "age",
    "preferred_language",
    "travel_preferences",
    "security_level",
    "is_email_verified",
    "is_deleted",
    "deleted_at",
    "last_login_date",
)


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
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user = store.create(User(email="a@example.com", name="A", password_hash=hash_password("...")))
        same = store.find_by_email("a@example.com")
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
        self._ensure_columns()

    def _ensure_columns(self) -> None:
        """Add columns introduced after the initial schema if they are missing."""
        existing = {col["name"] for col in inspect(self.engine).get_columns("users")}
        missing = [(name, ddl) for name, ddl in _ADDED_COLUMNS if name not in existing]
        if not missing:
            return
        with self.engine.begin() as conn:
            for name, ddl in missing:
                conn.execute(text(f"ALTER TABLE users ADD COLUMN {name} {ddl}"))  # noqa: S608
                logger.info("Added column users.%s", name)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def find_by_email(self, email: str, include_deleted: bool = False) -> User | None:
        """Look up a user by exact email. Soft-deleted rows are skipped unless include_deleted."""
        query = _users.select().where(_users.c.email == email)
        if not include_deleted:
            query = query.where(_users.c.is_deleted == 0)
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key, whatever its deletion state."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, user: User) -> User:
        """Insert a new user and return it with id and audit timestamps filled in.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken.
        Callers should treat that as a conflict, not a server fault.
        """
        now = _now()
        created = dataclasses.replace(
            user,
            id=user.id or uuid.uuid4().hex,
            account_creation_date=now,
            updated_at=now,
        )
        values = _user_to_row(created)
        values["id"] = created.id
        values["email"] = created.email
        values["password_hash"] = created.password_hash
        values["account_creation_date"] = _to_iso(now)
        try:
            with self.engine.begin() as conn:
                conn.execute(_users.insert().values(**values))
        except IntegrityError:
            logger.warning("User insert rejected by unique constraint", extra={"userId": created.id})
            raise
        return created

    def save(self, user: User) -> User:
        """Persist the mutable fields of an existing user and refresh updated_at.

        Raises LookupError if no row with user.id exists.
        """
        now = _now()
        saved = dataclasses.replace(user, updated_at=now)
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user.id).values(**_user_to_row(saved)))
        if result.rowcount == 0:
            raise LookupError(f"user {user.id!r} does not exist")
        return saved

    def touch_last_login(self, user_id: str, at: datetime) -> bool:
        """Stamp last_login_date on an active user. Returns False if none matched.

        Writes only the login columns, so a deletion committed since the caller
        read the row is never overwritten.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id, _users.c.is_deleted == 0)
                .values(last_login_date=_to_iso(at), updated_at=_to_iso(_now()))
            )
        return result.rowcount > 0

    def mark_deleted(self, user_id: str, at: datetime) -> bool:
        """Soft-delete an active user. Returns False if it was missing or already deleted."""
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id, _users.c.is_deleted == 0)
                .values(is_deleted=1, deleted_at=_to_iso(at), updated_at=_to_iso(_now()))
            )
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _user_to_row(user: User) -> dict:
    """Column values for the mutable fields plus updated_at."""
    row = {name: getattr(user, name) for name in _MUTABLE_FIELDS}
    row["gender"] = user.gender.value if user.gender is not None else None
    row["security_level"] = user.security_level.value
    row["is_email_verified"] = 1 if user.is_email_verified else 0
    row["is_deleted"] = 1 if user.is_deleted else 0
    row["preferred_language"] = json.dumps(user.preferred_language) if user.preferred_language is not None else None
    row["travel_preferences"] = (
        json.dumps(user.travel_preferences.to_dict()) if user.travel_preferences is not None else None
    )
    row["deleted_at"] = _to_iso(user.deleted_at)
    row["last_login_date"] = _to_iso(user.last_login_date)
    row["updated_at"] = _to_iso(user.updated_at)
    return row


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        password_hash=row.password_hash,
        gender=Gender(row.gender) if row.gender else None,
        country=row.country,
        age=row.age,
        preferred_language=json.loads(row.preferred_language) if row.preferred_language else None,
        travel_preferences=(
            TravelPreferences.from_dict(json.loads(row.travel_preferences)) if row.travel_preferences else None
        ),
        security_level=SecurityLevel(row.security_level or SecurityLevel.medium.value),
        is_email_verified=bool(row.is_email_verified),
        is_deleted=bool(row.is_deleted),
        deleted_at=_from_iso(row.deleted_at),
        last_login_date=_from_iso(row.last_login_date),
        account_creation_date=_from_iso(row.account_creation_date),
        updated_at=_from_iso(row.updated_at),
    )
