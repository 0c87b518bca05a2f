"""Primary key resolution for single and composite keys."""

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

from mypy_extensions import mypyc_attr

from dyntable.exceptions import ImproperConfigurationError, ParameterError
from dyntable.utils.text import quote_identifier, split_key_columns

if TYPE_CHECKING:
    from dyntable.core.command import SynthesizedCommand
    from dyntable.typing import CanonicalRecord, KeyValues

__all__ = ("DEFAULT_KEY_SEPARATOR", "PrimaryKey")

DEFAULT_KEY_SEPARATOR = ","


@mypyc_attr(allow_interpreted_subclasses=False)
class PrimaryKey:
    """An ordered primary key specification.

    Built once per table binding and never modified afterwards, so a single
    instance can be shared by concurrent callers.

    Attributes:
        columns: Key column names in declaration order.
    """

    __slots__ = ("columns",)

    def __init__(self, columns: "Sequence[str]") -> None:
        if not columns:
            msg = "A primary key specification needs at least one column"
            raise ImproperConfigurationError(msg)
        self.columns: tuple[str, ...] = tuple(columns)

    @classmethod
    def parse(cls, key_spec: str, separator: str = DEFAULT_KEY_SEPARATOR) -> "PrimaryKey":
        """Build a key from a delimiter separated string such as ``"OrderID, LineNo"``.

        Args:
            key_spec: Key columns joined by ``separator``.
            separator: Column delimiter.

        Raises:
            ImproperConfigurationError: No column name survives trimming.

        Returns:
            The primary key specification.
        """
        if not separator:
            msg = "The key column separator cannot be empty"
            raise ImproperConfigurationError(msg)
        return cls(split_key_columns(key_spec, separator))

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> "Iterator[str]":
        return iter(self.columns)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PrimaryKey) and self.columns == other.columns

    def __hash__(self) -> int:
        return hash(self.columns)

    def __repr__(self) -> str:
        return f"PrimaryKey({', '.join(self.columns)})"

    def has_primary_key(self, record: "CanonicalRecord") -> bool:
        """Return True when every key column is present in ``record`` with a non-null value."""
        return all(record.get(column) is not None for column in self.columns)

    def extract_key(self, record: "CanonicalRecord") -> "KeyValues":
        """Read the key values of ``record`` in key order.

        Missing columns are returned as ``None`` rather than rejected, so a
        partial composite key yields ``= NULL`` comparisons when used in a
        WHERE clause.
        """
        return tuple(record.get(column) for column in self.columns)

    def matches(self, column: str) -> bool:
        """Case-insensitive check whether ``column`` is one of the key columns."""
        folded = column.casefold()
        return any(folded == key.casefold() for key in self.columns)

    def where_clause(self, command: "SynthesizedCommand", values: "Sequence[Any]") -> str:
        """Bind ``values`` onto ``command`` and return the matching key predicate.

        The predicate has the form ``[A] = @n\\r\\n AND [B] = @n+1\\r\\n`` where the
        placeholder indexes continue from the parameters already bound.

        Raises:
            ParameterError: The number of values differs from the number of key columns.
        """
        if len(values) != len(self.columns):
            msg = f"Expected {len(self.columns)} key value(s) for {self!r}, got {len(values)}"
            raise ParameterError(msg)
        return " AND ".join(
            f"{quote_identifier(column)} = {command.add_parameter(value)}\r\n"
            for column, value in zip(self.columns, values)
        )

    def order_by_clause(self) -> str:
        return ", ".join(quote_identifier(column) for column in self.columns)

