"""Tests for the table binding that need no database."""

import types
from dataclasses import dataclass
from unittest.mock import MagicMock, call

import pytest

from dyntable import ConnectionProfile, DatabaseConfig, DynamicTable, PrimaryKey, SynthesizedCommand
from dyntable.exceptions import ImproperConfigurationError


class Users(DynamicTable):
    pass


class Orders(DynamicTable):
    removal_flag = "Deleted"


@dataclass
class UserForm:
    ID: int
    Name: str


@pytest.fixture
def config(fake_profile: ConnectionProfile) -> DatabaseConfig:
    return DatabaseConfig(fake_profile, ConnectionProfile("reporting", "sqlite3"))


def test_table_name_defaults_to_class_name(config: DatabaseConfig) -> None:
    users = Users(config)

    assert users.table_name == "Users"
    assert users.synthesizer.table_name == "[Users]"
    assert users.primary_key == PrimaryKey(["ID"])
    assert users.profile.name == "fake"


def test_explicit_binding(config: DatabaseConfig) -> None:
    table = DynamicTable(config, "sales.OrderLines", "OrderID|LineNo", "reporting", key_separator="|")

    assert table.synthesizer.table_name == "[sales].[OrderLines]"
    assert table.primary_key.columns == ("OrderID", "LineNo")
    assert table.profile.name == "reporting"
    assert "sales.OrderLines" in repr(table)


def test_empty_primary_key_falls_back_to_id(config: DatabaseConfig) -> None:
    assert Users(config, primary_key="").primary_key == PrimaryKey(["ID"])


def test_unknown_profile(config: DatabaseConfig) -> None:
    with pytest.raises(ImproperConfigurationError):
        Users(config, profile="missing")


def test_key_helpers(config: DatabaseConfig) -> None:
    users = Users(config)

    assert users.has_primary_key(UserForm(ID=3, Name="Ann"))
    assert not users.has_primary_key({"Name": "Ann"})
    assert users.get_primary_key({"ID": 3, "Name": "Ann"}) == (3,)
    assert users.get_primary_key({"Name": "Ann"}) == (None,)
    assert users.to_be_removed({"ID": 3, "Remove": "on"})
    assert not users.to_be_removed({"ID": 3, "Deleted": True})


def test_removal_flag_is_overridable(config: DatabaseConfig) -> None:
    orders = Orders(config)

    assert orders.to_be_removed({"ID": 3, "Deleted": True})
    (command,) = orders.build_commands({"ID": 3, "Deleted": True})
    assert command.sql == "DELETE FROM [Orders] WHERE [ID] = @0\r\n"


def test_create_commands(config: DatabaseConfig) -> None:
    users = Users(config)

    assert users.create_insert_command({"Name": "Ann"}).sql == "INSERT INTO [Users] (Name) VALUES (@0)"
    assert users.create_update_command({"Name": "Bo"}, 4).values == ["Bo", 4]
    assert users.create_delete_command(4, by_key=True).sql == "DELETE FROM [Users] WHERE [ID] = @0\r\n"


def test_build_commands_in_input_order(config: DatabaseConfig) -> None:
    commands = Users(config).build_commands({"Name": "new"}, UserForm(ID=1, Name="known"), {"ID": 2, "Remove": 1})
    assert [command.sql.split(" ", 1)[0] for command in commands] == ["INSERT", "UPDATE", "DELETE"]


def test_save_executes_one_batch(
    config: DatabaseConfig, fake_module: types.ModuleType, fake_connection: MagicMock, fake_cursor: MagicMock
) -> None:
    affected = Users(config).save({"Name": "new"}, {"ID": 1, "Name": "known"})

    assert affected == 2
    fake_module.connect.assert_called_once()  # type: ignore[attr-defined]
    fake_connection.commit.assert_called_once()
    assert fake_cursor.execute.call_args_list == [
        call("INSERT INTO [Users] (Name) VALUES (?)", ["new"]),
        call("UPDATE [Users] SET [Name] = ? WHERE [ID] = ?\r\n", ["known", 1]),
    ]


def test_execute_accepts_single_command(
    config: DatabaseConfig, fake_connection: MagicMock, fake_cursor: MagicMock
) -> None:
    assert Users(config).execute(SynthesizedCommand.from_sql("DELETE FROM Users WHERE Age > @0", 90)) == 1
    fake_cursor.execute.assert_called_once_with("DELETE FROM Users WHERE Age > ?", [90])
    fake_connection.commit.assert_called_once()


def test_paged_counts_before_streaming(config: DatabaseConfig, fake_cursor: MagicMock) -> None:
    fake_cursor.fetchone.return_value = (45,)

    result = Users(config).paged(page_size=20, current_page=3)

    assert result.total_records == 45
    assert result.total_pages == 3
    assert fake_cursor.execute.call_args_list == [call("SELECT COUNT(*) FROM [Users]", [])]
