from __future__ import annotations

import sqlite3
import types
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dyntable import ConnectionProfile, DatabaseConfig

here = Path(__file__).parent
root_path = here.parent

SCHEMA = """
CREATE TABLE Users (
    ID INTEGER PRIMARY KEY AUTOINCREMENT,
    Name TEXT NOT NULL,
    Age INTEGER
);
CREATE TABLE OrderLines (
    OrderID INTEGER NOT NULL,
    LineNo INTEGER NOT NULL,
    Sku TEXT,
    Quantity INTEGER,
    PRIMARY KEY (OrderID, LineNo)
);
"""


class FakeDriverError(Exception):
    """Error type exported by the fake DB-API module."""


@pytest.fixture
def fake_cursor() -> MagicMock:
    cursor = MagicMock(name="cursor")
    cursor.rowcount = 1
    cursor.lastrowid = 42
    cursor.description = None
    cursor.fetchone.return_value = None
    return cursor


@pytest.fixture
def fake_connection(fake_cursor: MagicMock) -> MagicMock:
    connection = MagicMock(name="connection")
    connection.cursor.return_value = fake_cursor
    return connection


@pytest.fixture
def fake_module(fake_connection: MagicMock) -> types.ModuleType:
    """A DB-API module double whose ``connect`` always returns ``fake_connection``."""
    module = types.ModuleType("fake_dbapi")
    module.paramstyle = "qmark"  # type: ignore[attr-defined]
    module.Error = FakeDriverError  # type: ignore[attr-defined]
    module.connect = MagicMock(name="connect", return_value=fake_connection)  # type: ignore[attr-defined]
    return module


@pytest.fixture
def driver_error(fake_module: types.ModuleType) -> "type[Exception]":
    return fake_module.Error  # type: ignore[attr-defined,no-any-return]


@pytest.fixture
def fake_profile(fake_module: types.ModuleType) -> ConnectionProfile:
    return ConnectionProfile("fake", fake_module)


@pytest.fixture
def sqlite_database(tmp_path: Path) -> Generator[Path, None, None]:
    """An on-disk SQLite database with the test schema, so every operation can open its own connection."""
    database = tmp_path / "dyntable.db"
    connection = sqlite3.connect(database)
    try:
        connection.executescript(SCHEMA)
        connection.commit()
    finally:
        connection.close()
    yield database


@pytest.fixture
def sqlite_config(sqlite_database: Path) -> DatabaseConfig:
    return DatabaseConfig(
        ConnectionProfile("sqlite", "sqlite3", {"database": str(sqlite_database)}, dialect="sqlite"),
        ConnectionProfile("verbatim", "sqlite3", {"database": str(sqlite_database)}),
    )
