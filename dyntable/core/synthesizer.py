"""Command synthesis.

Builds parameterized statements for a single table binding. Values are always
bound as parameters; WHERE, ORDER BY and column list fragments supplied by the
caller are inserted verbatim and are the caller's responsibility.
"""

from typing import TYPE_CHECKING, Any

from dyntable.core.coercion import coerce_record
from dyntable.core.command import SynthesizedCommand
from dyntable.core.parameters import flatten_arguments
from dyntable.exceptions import EmptyRecordError, ParameterError, SQLBuilderError
from dyntable.utils.logging import get_logger
from dyntable.utils.text import ensure_prefix, quote_identifier, quote_table_name, strip_prefix

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dyntable.core.keys import PrimaryKey
    from dyntable.typing import RecordInput

__all__ = ("CommandSynthesizer",)

logger = get_logger("core.synthesizer")

ROW_NUMBER_ALIAS = "[Row]"
ASSIGNMENT_SEPARATOR = ", \r\n"


class CommandSynthesizer:
    """Synthesizes INSERT, UPDATE, DELETE and SELECT commands for one table.

    Holds only the quoted table name and the primary key, both fixed at
    construction; every method builds a fresh command.
    """

    __slots__ = ("primary_key", "table_name")

    def __init__(self, table_name: str, primary_key: "PrimaryKey") -> None:
        self.table_name = quote_table_name(table_name)
        self.primary_key = primary_key

    def _new_command(self) -> SynthesizedCommand:
        return SynthesizedCommand(table=self.table_name)

    def insert(self, record: "RecordInput") -> SynthesizedCommand:
        """Build an INSERT covering every column of ``record`` in record order.

        Raises:
            EmptyRecordError: The record has no columns.
        """
        settings = coerce_record(record)
        if not settings:
            raise EmptyRecordError
        command = self._new_command()
        columns = list(settings)
        placeholders = [command.add_parameter(value) for value in settings.values()]
        command.sql = f"INSERT INTO {self.table_name} ({', '.join(columns)}) VALUES ({', '.join(placeholders)})"
        return command

    def update(self, record: "RecordInput", key: "Sequence[Any]") -> SynthesizedCommand:
        """Build an UPDATE of ``record`` for the row identified by ``key``.

        Key columns carrying a value are not assigned. The key values are bound
        after the SET values, in key order.

        Raises:
            EmptyRecordError: Nothing is left to assign once key columns are skipped.
        """
        settings = coerce_record(record)
        command = self._new_command()
        assignments = [
            f"{quote_identifier(column)} = {command.add_parameter(value)}"
            for column, value in settings.items()
            if value is None or not self.primary_key.matches(column)
        ]
        if not assignments:
            msg = "No parsable object was sent in - could not divine any name/value pairs"
            raise EmptyRecordError(msg)
        where = self.primary_key.where_clause(command, flatten_arguments(key))
        command.sql = f"UPDATE {self.table_name} SET {ASSIGNMENT_SEPARATOR.join(assignments)} WHERE {where}"
        return command

    def delete(self, *args: Any, where: str = "", by_key: bool = False) -> SynthesizedCommand:
        """Build a DELETE either by primary key or by a caller supplied predicate.

        Args:
            *args: Key values when ``by_key`` is set, otherwise the predicate arguments.
            where: Raw predicate, with or without the ``WHERE`` keyword.
            by_key: Match the primary key columns against ``args``.

        Raises:
            SQLBuilderError: Neither a key nor a predicate was given.

        Returns:
            The DELETE command.
        """
        command = self._new_command()
        if by_key:
            predicate = self.primary_key.where_clause(command, flatten_arguments(args))
            command.sql = f"DELETE FROM {self.table_name} WHERE {predicate}"
            return command
        clause = ensure_prefix(where, "WHERE")
        if not clause:
            msg = f"Refusing to delete from {self.table_name} without a key or a WHERE clause"
            raise SQLBuilderError(msg)
        command.add_parameters(args)
        command.sql = f"DELETE FROM {self.table_name} {clause}"
        return command

    def select_all(
        self, *args: Any, where: str = "", order_by: str = "", limit: int = 0, columns: str = "*"
    ) -> SynthesizedCommand:
        """Build ``SELECT [TOP n] columns FROM table [WHERE ...] [ORDER BY ...]``.

        A ``limit`` of zero or less selects every matching row.
        """
        command = self._new_command()
        command.add_parameters(args)
        head = f"SELECT TOP {int(limit)} {columns}" if limit > 0 else f"SELECT {columns}"
        parts = [head, f"FROM {self.table_name}", ensure_prefix(where, "WHERE"), ensure_prefix(order_by, "ORDER BY")]
        command.sql = " ".join(part for part in parts if part)
        return command

    def count(self, *args: Any, where: str = "") -> SynthesizedCommand:
        command = self._new_command()
        command.add_parameters(args)
        parts = [f"SELECT COUNT(*) FROM {self.table_name}", ensure_prefix(where, "WHERE")]
        command.sql = " ".join(part for part in parts if part)
        return command

    def paged(
        self,
        *args: Any,
        where: str = "",
        order_by: str = "",
        columns: str = "*",
        page_size: int = 20,
        current_page: int = 1,
    ) -> "tuple[SynthesizedCommand, SynthesizedCommand]":
        """Build the COUNT and windowed SELECT commands for one page.

        Rows are numbered by ``order_by``, or by the primary key when no order
        is given. Page ``p`` holds rows ``(p - 1) * page_size + 1`` through
        ``p * page_size``.

        Raises:
            ParameterError: ``page_size`` or ``current_page`` is less than one.

        Returns:
            ``(count_command, page_command)``
        """
        if page_size < 1 or current_page < 1:
            msg = f"Paging needs a positive page size and page number, got {page_size=}, {current_page=}"
            raise ParameterError(msg)
        ordering = strip_prefix(order_by, "ORDER BY") if order_by and order_by.strip() else ""
        ordering = ordering or self.primary_key.order_by_clause()
        clause = ensure_prefix(where, "WHERE")
        source = f"{self.table_name} {clause}" if clause else self.table_name
        page_start = (current_page - 1) * page_size

        command = self._new_command()
        command.add_parameters(args)
        command.sql = (
            f"SELECT {columns} FROM (SELECT ROW_NUMBER() OVER (ORDER BY {ordering}) AS {ROW_NUMBER_ALIAS}, "
            f"{columns} FROM {source}) AS Paged "
            f"WHERE {ROW_NUMBER_ALIAS} > {page_start} AND {ROW_NUMBER_ALIAS} <= {page_start + page_size}"
        )
        logger.debug("Paged select for %s: rows %d-%d", self.table_name, page_start + 1, page_start + page_size)
        return self.count(*args, where=where), command

    def single(self, *key: Any, columns: str = "*") -> SynthesizedCommand:
        """Build a SELECT of one row by primary key."""
        command = self._new_command()
        where = self.primary_key.where_clause(command, flatten_arguments(key))
        command.sql = f"SELECT {columns} FROM {self.table_name} WHERE {where}"
        return command

