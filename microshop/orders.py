"""Orders: the order model, its SQL storage, business logic and service layer."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from microshop.database import Database

_U32 = 0xFFFFFFFF

ORDER_SCHEMA = """
CREATE TABLE IF NOT EXISTS orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT,
    updated_at TEXT,
    deleted_at TEXT,
    user_id INTEGER,
    repertory_id INTEGER,
    quantity INTEGER
);
CREATE INDEX IF NOT EXISTS idx_orders_deleted_at ON orders (deleted_at);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _format_time(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


@dataclass
class Order:
    """A placed order of some quantity of one good by one user."""

    user_id: int = 0
    repertory_id: int = 0
    quantity: int = 0
    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> Order:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            repertory_id=row["repertory_id"],
            quantity=row["quantity"],
            created_at=_parse_time(row["created_at"]),
            updated_at=_parse_time(row["updated_at"]),
            deleted_at=_parse_time(row["deleted_at"]),
        )


class OrderRepo:
    """Order storage in the ``orders`` table."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def create_order(self, order: Order) -> Order:
        """Insert ``order``, filling in its id and timestamps, and return it."""
        now = _now()
        if order.created_at is None:
            order.created_at = now
        if order.updated_at is None:
            order.updated_at = now
        connection = self.database.connection
        with connection:
            cursor = connection.execute(
                "INSERT INTO orders "
                "(id, created_at, updated_at, deleted_at, user_id, repertory_id, quantity) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    order.id or None,
                    _format_time(order.created_at),
                    _format_time(order.updated_at),
                    _format_time(order.deleted_at),
                    order.user_id,
                    order.repertory_id,
                    order.quantity,
                ),
            )
        order.id = cursor.lastrowid
        return order

    def get_order(self, order_id: int) -> Order:
        """Return the order with ``order_id``; raise ``LookupError`` if there is none."""
        row = self.database.connection.execute(
            "SELECT * FROM orders WHERE id = ? AND deleted_at IS NULL ORDER BY id LIMIT 1",
            (order_id,),
        ).fetchone()
        if row is None:
            raise LookupError("record not found")
        return Order._from_row(row)


class OrderUseCase:
    """Business logic for orders."""

    def __init__(self, repo: OrderRepo) -> None:
        self.repo = repo

    def create_order(self, order: Order) -> Order:
        return self.repo.create_order(order)

    def get_order(self, order_id: int) -> Order:
        return self.repo.get_order(order_id)


class OrderService:
    """Service layer answering order requests."""

    def __init__(self, usecase: OrderUseCase) -> None:
        self.usecase = usecase

    def create_order(self, user_id: int, good_id: int, good_quantity: int) -> dict[str, Any]:
        """Place an order and report success."""
        self.usecase.create_order(
            Order(user_id=user_id, repertory_id=good_id, quantity=good_quantity)
        )
        return {"success": True}

    def get_order(self, order_id: int) -> dict[str, Any]:
        """Look up an order and return it with a success flag."""
        order = self.usecase.get_order(order_id)
        return {
            "success": True,
            "order": {
                "id": order.id & _U32,
                "user_id": order.user_id & _U32,
                "good_id": order.repertory_id & _U32,
                "good_quantity": order.quantity & _U32,
            },
        }