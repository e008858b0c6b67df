"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user / _row_to_token are the mappers.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  users.email carries a UNIQUE constraint. create_user() relies on it rather
  than on a SELECT-then-INSERT check: two concurrent registrations with the
  same email both reach INSERT, and exactly one of them gets IntegrityError.

DB path: auth/catalog_auth.db unless AUTH_DB_URL is set.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import AccessToken, User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'catalog_auth.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_tokens = Table(
    "access_tokens",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("name", String(100), nullable=False),
    Column("token_hash", String(64), nullable=False, unique=True),  # HMAC-SHA256 hex
    Column("token_prefix", String(12), nullable=False),  # first 12 chars, display only
    Column("created_at", String(32), nullable=False),
    Column("last_used_at", String(32)),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
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
    """Repository for User and AccessToken entities.

    Usage:
        store = UserStore()
        uid = store.create_user(User(name="Ada", email="ada@example.com", hashed_password=hash_password("secret")))
        user = store.get_by_email("ada@example.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or _DEFAULT_DB_URL
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers (auth.accounts.register_user) translate that into a conflict
        on the email field.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    name=user.name,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def email_exists(self, email: str) -> bool:
        """Cheap existence probe backing the unique() validation rule."""
        with self.engine.connect() as conn:
            count = conn.execute(select(func.count()).select_from(_users).where(_users.c.email == email)).scalar()
        return (count or 0) > 0

    # ------------------------------------------------------------------
    # Access token queries
    # ------------------------------------------------------------------

    def create_token(self, token: AccessToken) -> int:
        """Insert a new access token record and return its ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tokens.insert().values(
                    user_id=token.user_id,
                    name=token.name,
                    token_hash=token.token_hash,
                    token_prefix=token.token_prefix,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_token_by_hash(self, token_hash: str) -> AccessToken | None:
        """Look up a live access token by its HMAC hash. O(1) via UNIQUE index."""
        with self.engine.connect() as conn:
            row = conn.execute(_tokens.select().where(_tokens.c.token_hash == token_hash)).fetchone()
        return _row_to_token(row) if row is not None else None

    def touch_token(self, token_id: int) -> None:
        """Stamp last_used_at after each successful bearer authentication."""
        with self.engine.connect() as conn:
            conn.execute(_tokens.update().where(_tokens.c.id == token_id).values(last_used_at=_now_iso()))
            conn.commit()

    def delete_token(self, token_id: int) -> bool:
        """Revoke a token by deleting its row.

        Returns True if a row was deleted, False if it was already gone.
        Revoking twice is not an error.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_tokens.delete().where(_tokens.c.id == token_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_token(row) -> AccessToken:
    return AccessToken(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        token_hash=row.token_hash,
        token_prefix=row.token_prefix,
        created_at=row.created_at,
        last_used_at=row.last_used_at,
    )
