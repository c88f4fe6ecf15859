"""SQLite storage for users, chirps and refresh tokens."""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
_REFRESH_LIFETIME = timedelta(days=60)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    hashed_password TEXT NOT NULL,
    is_chirpy_red BOOLEAN DEFAULT 0
);
CREATE TABLE IF NOT EXISTS chirps (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    body TEXT NOT NULL,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE
);
CREATE TABLE IF NOT EXISTS refresh_tokens (
    token TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    revoked_at TEXT,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE
);
"""

_USER_COLUMNS = "id, created_at, updated_at, email, hashed_password, is_chirpy_red"
_CHIRP_COLUMNS = "id, created_at, updated_at, body, user_id"
_TOKEN_COLUMNS = "token, created_at, updated_at, expires_at, revoked_at, user_id"

T = TypeVar("T")


class NoRowsError(LookupError):
    """Raised when a query that returns one row finds none."""


@dataclass(frozen=True)
class Chirp:
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    body: str
    user_id: uuid.UUID


@dataclass(frozen=True)
class RefreshToken:
    token: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    revoked_at: datetime | None
    user_id: uuid.UUID


@dataclass(frozen=True)
class User:
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    email: str
    hashed_password: str
    is_chirpy_red: bool | None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _fmt(moment: datetime) -> str:
    return moment.strftime(_TIME_FORMAT)


def _parse(text: str | None) -> datetime | None:
    return None if text is None else datetime.strptime(text, _TIME_FORMAT)


def _chirp(row: tuple) -> Chirp:
    return Chirp(
        id=uuid.UUID(row[0]),
        created_at=_parse(row[1]),
        updated_at=_parse(row[2]),
        body=row[3],
        user_id=uuid.UUID(row[4]),
    )


def _user(row: tuple) -> User:
    return User(
        id=uuid.UUID(row[0]),
        created_at=_parse(row[1]),
        updated_at=_parse(row[2]),
        email=row[3],
        hashed_password=row[4],
        is_chirpy_red=None if row[5] is None else bool(row[5]),
    )


def _token(row: tuple) -> RefreshToken:
    return RefreshToken(
        token=row[0],
        created_at=_parse(row[1]),
        updated_at=_parse(row[2]),
        expires_at=_parse(row[3]),
        revoked_at=_parse(row[4]),
        user_id=uuid.UUID(row[5]),
    )


class Queries:
    """Typed queries over one SQLite connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> Queries:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _one(self, sql: str, params: Iterable[Any], convert: Callable[[tuple], T]) -> T:
        row = self._conn.execute(sql, tuple(params)).fetchone()
        if row is None:
            raise NoRowsError("no rows in result set")
        return convert(row)

    def _many(self, sql: str, params: Iterable[Any], convert: Callable[[tuple], T]) -> list[T]:
        return [convert(row) for row in self._conn.execute(sql, tuple(params))]

    def _exec(self, sql: str, params: Iterable[Any] = ()) -> int:
        with self._conn:
            return self._conn.execute(sql, tuple(params)).rowcount

    # chirps

    def create_chirp(self, body: str, user_id: uuid.UUID) -> Chirp:
        chirp_id = uuid.uuid4()
        stamp = _fmt(_now())
        self._exec(
            f"INSERT INTO chirps ({_CHIRP_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
            (str(chirp_id), stamp, stamp, body, str(user_id)),
        )
        return self.retrieve_select_chirp(chirp_id)

    def delete_all_chirps(self) -> None:
        self._exec("DELETE FROM chirps")

    def delete_select_chirp(self, chirp_id: uuid.UUID) -> None:
        self._exec("DELETE FROM chirps WHERE id = ?", (str(chirp_id),))

    def retrieve_all_chirps(self) -> list[Chirp]:
        return self._many(
            f"SELECT {_CHIRP_COLUMNS} FROM chirps ORDER BY created_at, rowid", (), _chirp
        )

    def retrieve_chirps_by_author(self, user_id: uuid.UUID) -> list[Chirp]:
        return self._many(
            f"SELECT {_CHIRP_COLUMNS} FROM chirps WHERE user_id = ? ORDER BY created_at, rowid",
            (str(user_id),),
            _chirp,
        )

    def retrieve_select_chirp(self, chirp_id: uuid.UUID) -> Chirp:
        return self._one(
            f"SELECT {_CHIRP_COLUMNS} FROM chirps WHERE id = ?", (str(chirp_id),), _chirp
        )

    # refresh tokens

    def create_refresh_token(self, token: str, user_id: uuid.UUID) -> RefreshToken:
        now = _now()
        stamp = _fmt(now)
        self._exec(
            "INSERT INTO refresh_tokens (token, created_at, updated_at, expires_at, user_id)"
            " VALUES (?, ?, ?, ?, ?)",
            (token, stamp, stamp, _fmt(now + _REFRESH_LIFETIME), str(user_id)),
        )
        return self.retrieve_select_refresh_token(token)

    def delete_all_tokens(self) -> None:
        self._exec("DELETE FROM refresh_tokens")

    def retrieve_all_tokens(self) -> list[RefreshToken]:
        return self._many(
            f"SELECT {_TOKEN_COLUMNS} FROM refresh_tokens ORDER BY created_at, rowid",
            (),
            _token,
        )

    def retrieve_select_refresh_token(self, token: str) -> RefreshToken:
        return self._one(
            f"SELECT {_TOKEN_COLUMNS} FROM refresh_tokens WHERE token = ?", (token,), _token
        )

    def revoke_refresh_token(self, token: str) -> None:
        stamp = _fmt(_now())
        self._exec(
            "UPDATE refresh_tokens SET updated_at = ?, revoked_at = ? WHERE token = ?",
            (stamp, stamp, token),
        )

    # users

    def create_user(self, email: str, hashed_password: str) -> User:
        user_id = uuid.uuid4()
        stamp = _fmt(_now())
        self._exec(
            "INSERT INTO users (id, created_at, updated_at, email, hashed_password)"
            " VALUES (?, ?, ?, ?, ?)",
            (str(user_id), stamp, stamp, email, hashed_password),
        )
        return self.retrieve_based_on_id(user_id)

    def delete_all_users(self) -> None:
        self._exec("DELETE FROM users")

    def query_hashed_password(self, email: str) -> User:
        return self._one(f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (email,), _user)

    def retrieve_based_on_id(self, user_id: uuid.UUID) -> User:
        return self._one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (str(user_id),), _user
        )

    def update_user_password(
        self, user_id: uuid.UUID, hashed_password: str, email: str
    ) -> User:
        self._exec(
            "UPDATE users SET hashed_password = ?, email = ?, updated_at = ? WHERE id = ?",
            (hashed_password, email, _fmt(_now()), str(user_id)),
        )
        return self.retrieve_based_on_id(user_id)

    def upgrade_to_chirpy_red(self, user_id: uuid.UUID) -> User:
        self._exec(
            "UPDATE users SET is_chirpy_red = 1, updated_at = ? WHERE id = ?",
            (_fmt(_now()), str(user_id)),
        )
        return self.retrieve_based_on_id(user_id)


def open_database(path: str) -> Queries:
    """Open (creating if needed) the database at ``path`` and return its queries."""
    connection = sqlite3.connect(path, check_same_thread=False)
    connection.execute("PRAGMA foreign_keys = ON")
    connection.executescript(_SCHEMA)
    return Queries(connection)