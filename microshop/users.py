"""Users: the user model, its SQL storage, business logic and service layer."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from microshop.database import Database

_U32 = 0xFFFFFFFF

DEFAULT_NAME = "xxx"
DEFAULT_MONEY = 100

USER_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT,
    updated_at TEXT,
    deleted_at TEXT,
    name TEXT,
    money INTEGER
);
CREATE INDEX IF NOT EXISTS idx_users_deleted_at ON users (deleted_at);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _format_time(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


@dataclass
class User:
    """A registered user and the money on their account."""

    name: str = ""
    money: int = 0
    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> User:
        return cls(
            id=row["id"],
            name=row["name"],
            money=row["money"],
            created_at=_parse_time(row["created_at"]),
            updated_at=_parse_time(row["updated_at"]),
            deleted_at=_parse_time(row["deleted_at"]),
        )


class UserRepo:
    """User storage in the ``users`` table."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def register(self, user: User) -> User:
        """Insert ``user``, filling in its id and timestamps, and return it."""
        now = _now()
        if user.created_at is None:
            user.created_at = now
        if user.updated_at is None:
            user.updated_at = now
        connection = self.database.connection
        with connection:
            cursor = connection.execute(
                "INSERT INTO users (id, created_at, updated_at, deleted_at, name, money) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    user.id or None,
                    _format_time(user.created_at),
                    _format_time(user.updated_at),
                    _format_time(user.deleted_at),
                    user.name,
                    user.money,
                ),
            )
        user.id = cursor.lastrowid
        return user

    def find_by_id(self, user_id: int) -> User:
        """Return the user with ``user_id``; raise ``LookupError`` if there is none."""
        row = self.database.connection.execute(
            "SELECT * FROM users WHERE id = ? AND deleted_at IS NULL ORDER BY id LIMIT 1",
            (user_id,),
        ).fetchone()
        if row is None:
            raise LookupError("record not found")
        return User._from_row(row)

    def update(self, user: User) -> None:
        """Write the non-empty fields of ``user`` to its stored row."""
        if not user.id:
            raise ValueError("WHERE conditions required")
        user.updated_at = _now()
        columns = ["updated_at"]
        values: list[Any] = [_format_time(user.updated_at)]
        if user.name:
            columns.append("name")
            values.append(user.name)
        if user.money:
            columns.append("money")
            values.append(user.money)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        connection = self.database.connection
        with connection:
            connection.execute(
                f"UPDATE users SET {assignments} WHERE id = ? AND deleted_at IS NULL",
                (*values, user.id),
            )


class UserUseCase:
    """Business logic for users."""

    def __init__(self, repo: UserRepo) -> None:
        self.repo = repo

    def register(self, user: User) -> User:
        """Register ``user``, giving a default name and starting money where unset."""
        if not user.name:
            user.name = DEFAULT_NAME
        if user.money == 0:
            user.money = DEFAULT_MONEY
        return self.repo.register(user)


class UsersService:
    """Service layer answering user requests."""

    def __init__(self, usecase: UserUseCase) -> None:
        self.usecase = usecase

    def register(self, name: str) -> dict[str, Any]:
        """Register a user by name and return the stored user with a status code."""
        user = self.usecase.register(User(name=name))
        return {
            "code": 200,
            "user": {
                "id": user.id & _U32,
                "name": user.name,
                "money": user.money & _U32,
            },
        }