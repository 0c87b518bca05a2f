"""Dynamic table binding.

``DynamicTable`` binds a table name and a primary key to a connection profile
and exposes record level CRUD, batch saves and streamed queries over it. The
table schema is never declared: column names come from the records passed in
and from the rows read back.

Example::

    config = DatabaseConfig(ConnectionProfile("main", "sqlite3", {"database": "app.db"}, dialect="sqlite"))


    class Users(DynamicTable):
        pass


    users = Users(config, primary_key="UserID")
    new_id = users.insert({"Name": "Ann"})
    users.save({"UserID": new_id, "Name": "Anne"}, {"Name": "Bob"})
    for user in users.all("A%", where="Name LIKE @0", order_by="Name"):
        print(user["Name"])
"""

from collections.abc import Iterable
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Union

from dyntable.core.coercion import coerce_record
from dyntable.core.command import SynthesizedCommand
from dyntable.core.keys import DEFAULT_KEY_SEPARATOR, PrimaryKey
from dyntable.core.planner import DEFAULT_REMOVAL_FLAG, is_marked_for_removal, plan_commands
from dyntable.core.result import PagedResult, total_pages_for
from dyntable.core.synthesizer import CommandSynthesizer
from dyntable.driver import RecordStream, SyncDriver
from dyntable.utils.logging import get_logger

if TYPE_CHECKING:
    from dyntable.config import ConnectionProfile, DatabaseConfig
    from dyntable.typing import CanonicalRecord, DBAPIConnection, KeyValues, RecordInput

__all__ = ("DEFAULT_PRIMARY_KEY", "DynamicTable")

logger = get_logger("table")

DEFAULT_PRIMARY_KEY = "ID"


class DynamicTable:
    """A schema-less binding to one database table.

    Args:
        config: Connection profiles to choose from.
        table_name: Table to bind, optionally schema qualified (``dbo.Users``).
            Defaults to the name of the subclass.
        primary_key: Key column names joined by ``key_separator``.
        profile: Name of the connection profile. Defaults to the first profile of ``config``.
        key_separator: Delimiter used in ``primary_key``.

    Raises:
        ImproperConfigurationError: The profile does not exist or the key names no column.
    """

    removal_flag: ClassVar[str] = DEFAULT_REMOVAL_FLAG
    """Column that marks a record for deletion in ``save``."""

    def __init__(
        self,
        config: "DatabaseConfig",
        table_name: str = "",
        primary_key: str = DEFAULT_PRIMARY_KEY,
        profile: str = "",
        key_separator: str = DEFAULT_KEY_SEPARATOR,
    ) -> None:
        self.profile: ConnectionProfile = config.get_profile(profile)
        self.table_name = table_name or type(self).__name__
        self.primary_key = PrimaryKey.parse(primary_key or DEFAULT_PRIMARY_KEY, key_separator)
        self.driver = SyncDriver(self.profile)
        self.synthesizer = CommandSynthesizer(self.table_name, self.primary_key)
        logger.debug("Bound table %s to profile %s with %r", self.table_name, self.profile.name, self.primary_key)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(table={self.table_name!r}, "
            f"primary_key={self.primary_key!r}, profile={self.profile.name!r})"
        )

    def provide_connection(self) -> "AbstractContextManager[DBAPIConnection]":
        """Open a connection on the table's profile, closed when the ``with`` block exits."""
        return self.driver.provide_connection()

    # -- Key helpers --
    def has_primary_key(self, record: "RecordInput") -> bool:
        return self.primary_key.has_primary_key(coerce_record(record))

    def get_primary_key(self, record: "RecordInput") -> "KeyValues":
        """Key values of ``record`` in key order; absent columns are returned as ``None``."""
        return self.primary_key.extract_key(coerce_record(record))

    def to_be_removed(self, record: "RecordInput") -> bool:
        return is_marked_for_removal(coerce_record(record), self.removal_flag)

    # -- Command synthesis --
    def create_insert_command(self, record: "RecordInput") -> SynthesizedCommand:
        return self.synthesizer.insert(record)

    def create_update_command(self, record: "RecordInput", *key: Any) -> SynthesizedCommand:
        return self.synthesizer.update(record, key)

    def create_delete_command(self, *args: Any, where: str = "", by_key: bool = False) -> SynthesizedCommand:
        return self.synthesizer.delete(*args, where=where, by_key=by_key)

    def build_commands(self, *records: "RecordInput") -> "list[SynthesizedCommand]":
        """Plan one INSERT, UPDATE or DELETE per record, in input order."""
        return plan_commands(self.synthesizer, records, self.removal_flag)

    # -- Writes --
    def execute(self, commands: "Union[SynthesizedCommand, Iterable[SynthesizedCommand]]") -> int:
        """Execute one command or a sequence of commands in a single transaction.

        Returns:
            The total number of affected rows.
        """
        if isinstance(commands, SynthesizedCommand):
            commands = [commands]
        return self.driver.execute(commands)

    def insert(self, record: "RecordInput") -> Any:
        """Insert ``record`` and return the identity of the new row.

        Raises:
            EmptyRecordError: The record has no columns.
        """
        return self.driver.execute_insert(self.create_insert_command(record))

    def update(self, record: "RecordInput", *key: Any) -> int:
        """Update the row identified by ``key`` with the columns of ``record``."""
        return self.execute(self.create_update_command(record, *key))

    def delete(self, *args: Any, where: str = "", by_key: bool = False) -> int:
        """Delete by primary key (``by_key=True``, ``args`` are the key values) or by ``where``.

        Raises:
            SQLBuilderError: Neither a key nor a predicate was given.
        """
        return self.execute(self.create_delete_command(*args, where=where, by_key=by_key))

    def save(self, *records: "RecordInput") -> int:
        """Insert, update or delete every record in one transaction.

        Records carrying their full primary key are updated, or deleted when
        their removal flag is set; all others are inserted. If any command
        fails no change is committed.

        Returns:
            The total number of affected rows.
        """
        return self.execute(self.build_commands(*records))

    # -- Reads --
    def query(self, sql: str, *args: Any, connection: "Optional[DBAPIConnection]" = None) -> RecordStream:
        """Stream the rows of caller supplied SQL using ``@N`` placeholders.

        The stream is lazy; the statement runs on first iteration.
        """
        command = SynthesizedCommand.from_sql(sql, *args, table=self.synthesizer.table_name)
        return self.driver.select(command, connection)

    def scalar(self, sql: str, *args: Any) -> Any:
        """First column of the first row of ``sql``, or None."""
        return self.driver.select_value(SynthesizedCommand.from_sql(sql, *args, table=self.synthesizer.table_name))

    def all(self, *args: Any, where: str = "", order_by: str = "", limit: int = 0, columns: str = "*") -> RecordStream:
        return self.driver.select(
            self.synthesizer.select_all(*args, where=where, order_by=order_by, limit=limit, columns=columns)
        )

    def paged(
        self,
        *args: Any,
        where: str = "",
        order_by: str = "",
        columns: str = "*",
        page_size: int = 20,
        current_page: int = 1,
    ) -> PagedResult:
        """Fetch one page of rows with the total record and page counts.

        The count runs immediately; the page itself is streamed lazily.

        Raises:
            ParameterError: ``page_size`` or ``current_page`` is less than one.
        """
        count_command, page_command = self.synthesizer.paged(
            *args, where=where, order_by=order_by, columns=columns, page_size=page_size, current_page=current_page
        )
        total_records = int(self.driver.select_value(count_command) or 0)
        return PagedResult(
            items=self.driver.select(page_command),
            total_records=total_records,
            total_pages=total_pages_for(total_records, page_size),
        )

    def single(self, *key: Any, columns: str = "*") -> "Optional[CanonicalRecord]":
        """Fetch the row identified by ``key``, or None."""
        return self.driver.select(self.synthesizer.single(*key, columns=columns)).first()
