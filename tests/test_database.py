import logging
import sqlite3

import pytest

from microshop.database import Database, open_database

SCHEMA = "CREATE TABLE IF NOT EXISTS items (id INTEGER PRIMARY KEY, name TEXT NOT NULL);"


def test_open_in_memory_creates_schema():
    db = open_database(":memory:", SCHEMA, attempts=1, delay=0)
    db.connection.execute("INSERT INTO items (name) VALUES (?)", ("apple",))
    rows = db.connection.execute("SELECT id, name FROM items").fetchall()
    assert [(row["id"], row["name"]) for row in rows] == [(1, "apple")]
    db.close()


def test_data_survives_reopen(tmp_path):
    path = str(tmp_path / "shop.db")
    with open_database(path, SCHEMA, attempts=1, delay=0) as db:
        with db.connection:
            db.connection.execute("INSERT INTO items (name) VALUES (?)", ("pear",))
    with open_database(path, SCHEMA, attempts=1, delay=0) as db:
        names = [row["name"] for row in db.connection.execute("SELECT name FROM items")]
    assert names == ["pear"]


def test_close_makes_connection_unusable():
    db = open_database(":memory:", None, attempts=1, delay=0)
    db.close()
    with pytest.raises(sqlite3.ProgrammingError):
        db.connection.execute("SELECT 1")


def test_wraps_given_connection():
    connection = sqlite3.connect(":memory:")
    db = Database(connection)
    assert db.connection is connection
    assert db.connection.execute("SELECT 1").fetchone()[0] == 1
    db.close()


def test_unreachable_address_retries_then_fails(tmp_path, caplog):
    address = str(tmp_path / "missing" / "shop.db")
    with caplog.at_level(logging.WARNING, logger="microshop.database"):
        with pytest.raises(ConnectionError):
            open_database(address, SCHEMA, attempts=3, delay=0)
    retries = [m for m in caplog.messages if "retrying" in m]
    assert len(retries) == 3


def test_bad_schema_raises():
    with pytest.raises(RuntimeError, match="failed to create database tables"):
        open_database(":memory:", "CREATE TABLE (", attempts=1, delay=0)


def test_attempts_must_be_positive():
    with pytest.raises(ValueError):
        open_database(":memory:", None, attempts=0, delay=0)