"""Synchronous DB-API driver.

Executes synthesized commands against any PEP 249 module. Every public
operation acquires exactly one connection and releases it before returning,
or when the returned record stream is exhausted or closed.
"""

import contextlib
import logging
import re
from collections.abc import Generator, Iterable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from dyntable.core.parameters import UNBOUNDED_SIZE, ParameterStyle, convert_placeholders, parameter_marker
from dyntable.exceptions import DatabaseError, DynTableError, SQLParsingError, TransactionError
from dyntable.utils.logging import get_logger, log_with_context, resolve_correlation_id

if TYPE_CHECKING:
    from dyntable.config import ConnectionProfile
    from dyntable.core.command import SynthesizedCommand
    from dyntable.typing import CanonicalRecord, DBAPIConnection, DBAPICursor, ParameterPayload

__all__ = ("SOURCE_DIALECT", "CursorContext", "RecordStream", "SyncDriver")

logger = get_logger("driver")

SOURCE_DIALECT = "tsql"
"""Dialect of synthesized statements."""

_NAMED_PARAMETER = re.compile(r"p(\d+)")


def _mark_parameter(node: exp.Expression) -> exp.Expression:
    if isinstance(node, exp.Placeholder) and (match := _NAMED_PARAMETER.fullmatch(node.name)):
        return exp.var(parameter_marker(int(match.group(1))))
    return node


def _affected_tables(commands: "Iterable[SynthesizedCommand]") -> str:
    return ", ".join(dict.fromkeys(command.table for command in commands if command.table))


class CursorContext:
    """Context manager for DB-API cursor management."""

    def __init__(self, connection: "DBAPIConnection") -> None:
        self.connection = connection
        self.cursor: Optional[DBAPICursor] = None

    def __enter__(self) -> "DBAPICursor":
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class RecordStream(Iterator["CanonicalRecord"]):
    """Forward-only, single-pass stream of records.

    Wraps the generator reading the cursor. Closing the stream, leaving its
    ``with`` block or exhausting it releases the cursor and the connection.
    """

    __slots__ = ("_rows",)

    def __init__(self, rows: "Generator[CanonicalRecord, None, None]") -> None:
        self._rows = rows

    def __iter__(self) -> "RecordStream":
        return self

    def __next__(self) -> "CanonicalRecord":
        return next(self._rows)

    def __enter__(self) -> "RecordStream":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._rows.close()

    def first(self) -> "Optional[CanonicalRecord]":
        """Return the first record, or None, and release the stream."""
        with self:
            return next(self._rows, None)

    def to_list(self) -> "list[CanonicalRecord]":
        with self:
            return list(self._rows)


class SyncDriver:
    """Runs commands for one connection profile."""

    __slots__ = ("profile",)

    def __init__(self, profile: "ConnectionProfile") -> None:
        self.profile = profile

    @property
    def parameter_style(self) -> ParameterStyle:
        return self.profile.parameter_style

    @contextmanager
    def handle_database_exceptions(
        self, error_class: "type[DatabaseError]" = DatabaseError
    ) -> "Generator[None, None, None]":
        """Wrap errors raised by the DB-API module into ``error_class``."""
        try:
            yield
        except DynTableError:
            raise
        except self.profile.error_type as e:
            msg = f"{self.profile.name} database error: {e}"
            raise error_class(msg) from e

    @contextmanager
    def provide_connection(self) -> "Generator[DBAPIConnection, None, None]":
        """Open a connection and close it when the block exits."""
        with self.handle_database_exceptions():
            connection = self.profile.connect()
        try:
            yield connection
        finally:
            with contextlib.suppress(Exception):
                connection.close()

    def with_cursor(self, connection: "DBAPIConnection") -> CursorContext:
        return CursorContext(connection)

    @contextmanager
    def begin_transaction(
        self, connection: "DBAPIConnection", *, table: str = "", correlation_id: "str | None" = None
    ) -> "Generator[None, None, None]":
        """Commit the connection's implicit transaction if the block succeeds, roll it back otherwise.

        Both outcomes are logged at DEBUG with the profile and ``table`` as structured fields.

        Raises:
            TransactionError: The commit failed.
        """
        try:
            yield
        except BaseException as e:
            with contextlib.suppress(Exception):
                connection.rollback()
            log_with_context(
                logger,
                logging.DEBUG,
                "Transaction rolled back",
                profile=self.profile.name,
                table=table,
                error=type(e).__name__,
                correlation_id=correlation_id,
            )
            raise
        with self.handle_database_exceptions(TransactionError):
            connection.commit()
        log_with_context(
            logger,
            logging.DEBUG,
            "Transaction committed",
            profile=self.profile.name,
            table=table,
            correlation_id=correlation_id,
        )

    def prepare(self, command: "SynthesizedCommand") -> "tuple[str, ParameterPayload, ParameterPayload]":
        """Rewrite ``command`` for the driver.

        Profiles with a dialect other than the synthesized one get the
        statement transpiled first.

        Returns:
            The statement text, its parameter values and its size hints, both shaped for the driver's paramstyle.
        """
        positions: Any
        indexes = list(range(len(command.parameters)))
        dialect = self.profile.dialect
        if dialect and dialect != SOURCE_DIALECT:
            sql, positions = convert_placeholders(
                self._transpile(command.sql, indexes, dialect), indexes, self.parameter_style, from_markers=True
            )
        else:
            sql, positions = convert_placeholders(command.sql, indexes, self.parameter_style)

        values, sizes = command.values, command.sizes
        if isinstance(positions, dict):
            return (
                sql,
                {name: values[index] for name, index in positions.items()},
                {name: sizes[index] for name, index in positions.items()},
            )
        return sql, [values[index] for index in positions], [sizes[index] for index in positions]

    def _transpile(self, sql: str, indexes: "list[int]", dialect: str) -> str:
        """Transpile ``sql`` to ``dialect`` with every ``@N`` replaced by its parameter marker.

        Dialects render placeholders in their own syntax (``%s``, ``$1``, ``@p``),
        so parameters travel through the syntax tree as bare markers instead.
        """
        named_sql, _ = convert_placeholders(sql, indexes, ParameterStyle.NAMED)
        try:
            statements = [
                statement.transform(_mark_parameter).sql(dialect=dialect)
                for statement in sqlglot.parse(named_sql, read=SOURCE_DIALECT)
                if statement is not None
            ]
        except SqlglotError as e:
            msg = f"Could not transpile statement to {dialect}: {e}"
            raise SQLParsingError(msg) from e
        return ";\n".join(statements)

    def _execute_command(
        self, cursor: "DBAPICursor", command: "SynthesizedCommand", correlation_id: "str | None" = None
    ) -> None:
        sql, parameters, sizes = self.prepare(command)
        log_with_context(
            logger,
            logging.DEBUG,
            "Executing statement",
            sql=sql,
            parameter_count=len(parameters),
            profile=self.profile.name,
            table=command.table,
            correlation_id=correlation_id,
        )
        with self.handle_database_exceptions():
            if self.profile.use_input_sizes:
                self._set_input_sizes(cursor, sizes)
            cursor.execute(sql, parameters)

    @staticmethod
    def _set_input_sizes(cursor: Any, sizes: "ParameterPayload") -> None:
        if isinstance(sizes, dict):
            cursor.setinputsizes(**{name: None if size == UNBOUNDED_SIZE else size for name, size in sizes.items()})
        else:
            cursor.setinputsizes([None if size == UNBOUNDED_SIZE else size for size in sizes])

    def execute(self, commands: "Iterable[SynthesizedCommand]") -> int:
        """Run ``commands`` in order inside one transaction on one connection.

        The transaction is committed once, after the last command. Any failure
        rolls it back and propagates; nothing is committed. Every record logged
        for the batch shares one correlation ID.

        Returns:
            The total number of affected rows.
        """
        commands = list(commands)
        correlation_id = resolve_correlation_id()
        table = _affected_tables(commands)
        affected = 0
        with self.provide_connection() as connection:
            with self.begin_transaction(connection, table=table, correlation_id=correlation_id):
                with self.with_cursor(connection) as cursor:
                    for command in commands:
                        self._execute_command(cursor, command, correlation_id)
                        affected += max(cursor.rowcount or 0, 0)
        log_with_context(
            logger,
            logging.DEBUG,
            "Batch executed",
            profile=self.profile.name,
            table=table,
            command_count=len(commands),
            affected=affected,
            correlation_id=correlation_id,
        )
        return affected

    def execute_insert(self, command: "SynthesizedCommand") -> Any:
        """Run an INSERT transactionally and return the identity of the new row."""
        correlation_id = resolve_correlation_id()
        with self.provide_connection() as connection:
            with self.begin_transaction(connection, table=command.table, correlation_id=correlation_id):
                with self.with_cursor(connection) as cursor:
                    self._execute_command(cursor, command, correlation_id)
                    return self._fetch_identity(cursor)

    def _fetch_identity(self, cursor: "DBAPICursor") -> Any:
        if not self.profile.identity_query:
            return getattr(cursor, "lastrowid", None)
        with self.handle_database_exceptions():
            cursor.execute(self.profile.identity_query)
            row = cursor.fetchone()
        return row[0] if row else None

    def select(self, command: "SynthesizedCommand", connection: "DBAPIConnection | None" = None) -> RecordStream:
        """Stream the rows of a query as records.

        Nothing is executed until the stream is first iterated. A connection
        passed in is used as is and left open. The correlation ID is taken
        when the stream is created.
        """
        return RecordStream(self._iter_records(command, connection, resolve_correlation_id()))

    def _iter_records(
        self, command: "SynthesizedCommand", connection: "DBAPIConnection | None", correlation_id: str
    ) -> "Generator[CanonicalRecord, None, None]":
        with contextlib.ExitStack() as stack:
            if connection is None:
                connection = stack.enter_context(self.provide_connection())
            cursor = stack.enter_context(self.with_cursor(connection))
            self._execute_command(cursor, command, correlation_id)
            column_names = [column[0] for column in cursor.description or ()]
            while True:
                with self.handle_database_exceptions():
                    row = cursor.fetchone()
                if row is None:
                    break
                yield dict(zip(column_names, row))

    def select_value(self, command: "SynthesizedCommand") -> Any:
        """Return the first column of the first row, or None."""
        with self.provide_connection() as connection, self.with_cursor(connection) as cursor:
            self._execute_command(cursor, command, resolve_correlation_id())
            with self.handle_database_exceptions():
                row = cursor.fetchone()
        if row is None:
            return None
        return row[0]
