"""Relational storage: connecting with retries and creating tables."""

from __future__ import annotations

import logging
import sqlite3
import time
from types import TracebackType

_log = logging.getLogger(__name__)


class Database:
    """An open SQL connection; rows come back as ``sqlite3.Row``."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def close(self) -> None:
        """Close the connection."""
        self.connection.close()
        _log.info("closing the data resources")

    def __enter__(self) -> Database:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def open_database(
    address: str,
    schema: str | None = None,
    attempts: int = 5,
    delay: float = 5.0,
) -> Database:
    """Connect to ``address``, retrying on failure, then create the tables in ``schema``."""
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    last_error: Exception | None = None
    connection: sqlite3.Connection | None = None
    for attempt in range(1, attempts + 1):
        try:
            connection = sqlite3.connect(address, check_same_thread=False)
            break
        except sqlite3.Error as exc:
            last_error = exc
            _log.warning("database connection failed, retrying... (%d/%d)", attempt, attempts)
            if attempt < attempts:
                time.sleep(delay)
    if connection is None:
        raise ConnectionError("database connection failed") from last_error

    connection.row_factory = sqlite3.Row
    connection.set_trace_callback(_log.debug)
    if schema:
        try:
            with connection:
                connection.executescript(schema)
        except sqlite3.Error as exc:
            connection.close()
            raise RuntimeError("failed to create database tables") from exc
    return Database(connection)