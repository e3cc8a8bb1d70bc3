"""
auth/store.py -- Identity storage: users keyed by email.

Pattern: Repository + Data Mapper. UserStore is the capability every backing
implements; _row_to_user is the mapper for the SQL backing. The service never
touches SQL or dicts directly.

Two backings:
  InMemoryUserStore -- dict keyed by Email, for tests and dev. The lock is
      held only around the dict access; password verification runs after it
      is released, so one slow Argon2 check never blocks other users.
  SqlUserStore      -- SQLAlchemy Core table users(email, password_hash,
      requires_2fa). SQLite by default, any SQLAlchemy URL otherwise
      (postgresql+psycopg://... in production). SQLAlchemy calls block, so
      each runs in a worker thread via asyncio.to_thread.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only Argon2id hashes are written; raw passwords never reach this module
  except as the candidate passed to validate_user().

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Protocol

from argon2 import PasswordHasher
from sqlalchemy import Boolean, Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import (
    InvalidFormatError,
    MalformedHashError,
    StoreError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from auth.models import Email, User
from auth.passwords import HashedPassword, verify_password

logger = logging.getLogger("authservice.store")

_DEFAULT_DB_URL = "sqlite:///auth_service.db"


class UserStore(Protocol):
    async def add_user(self, user: User) -> None: ...

    async def get_user(self, email: Email) -> User: ...

    async def validate_user(self, email: Email, raw_password: str) -> None: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory backing
# ---------------------------------------------------------------------------


class InMemoryUserStore:
    def __init__(self, hasher: PasswordHasher | None = None) -> None:
        self._users: dict[Email, User] = {}
        self._lock = threading.Lock()
        self._hasher = hasher or PasswordHasher()

    async def add_user(self, user: User) -> None:
        """Insert user. Raises UserAlreadyExistsError if the email is taken."""
        with self._lock:
            if user.email in self._users:
                raise UserAlreadyExistsError(str(user.email))
            self._users[user.email] = user

    async def get_user(self, email: Email) -> User:
        with self._lock:
            user = self._users.get(email)
        if user is None:
            raise UserNotFoundError(str(email))
        return user

    async def validate_user(self, email: Email, raw_password: str) -> None:
        """Raise UserNotFoundError or PasswordMismatchError; return None on success."""
        user = await self.get_user(email)
        await verify_password(user.password_hash, raw_password, self._hasher)

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# SQL backing
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("email", String(255), primary_key=True),
    Column("password_hash", Text, nullable=False),
    Column("requires_2fa", Boolean, nullable=False, default=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


class SqlUserStore:
    """Relational UserStore.

    Usage:
        store = SqlUserStore("sqlite:///auth_service.db")
        await store.add_user(user)
        user = await store.get_user(email)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, hasher: PasswordHasher | None = None) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)
        self._hasher = hasher or PasswordHasher()

    async def add_user(self, user: User) -> None:
        """Insert user. Raises UserAlreadyExistsError on a duplicate email.

        Uniqueness is the primary key's job: two concurrent signups for the
        same email race in the database, and the loser gets IntegrityError.
        """
        try:
            await asyncio.to_thread(self._insert, user)
        except IntegrityError as exc:
            raise UserAlreadyExistsError(str(user.email)) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to add user")
            raise StoreError("Could not add user.") from exc

    async def get_user(self, email: Email) -> User:
        try:
            row = await asyncio.to_thread(self._select, email)
        except SQLAlchemyError as exc:
            logger.exception("Failed to read user")
            raise StoreError("Could not read user.") from exc
        if row is None:
            raise UserNotFoundError(str(email))
        return _row_to_user(row)

    async def validate_user(self, email: Email, raw_password: str) -> None:
        user = await self.get_user(email)
        await verify_password(user.password_hash, raw_password, self._hasher)

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _insert(self, user: User) -> None:
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    email=user.email.value,
                    password_hash=user.password_hash.value,
                    requires_2fa=user.requires_2fa,
                )
            )
            conn.commit()

    def _select(self, email: Email):
        with self.engine.connect() as conn:
            return conn.execute(_users.select().where(_users.c.email == email.value)).fetchone()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # A row that no longer parses was written by something other than this
    # service; treat it as a backend fault rather than "not found".
    try:
        return User(
            email=Email.parse(row.email),
            password_hash=HashedPassword.parse(row.password_hash),
            requires_2fa=bool(row.requires_2fa),
        )
    except (InvalidFormatError, MalformedHashError) as exc:
        raise StoreError("Stored user record is corrupt.") from exc
