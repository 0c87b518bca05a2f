from typing import Any

from mypy_extensions import mypyc_attr

from dyntable.core.parameters import BoundParameter, bind_parameter, flatten_arguments

__all__ = ("SynthesizedCommand",)


@mypyc_attr(allow_interpreted_subclasses=False)
class SynthesizedCommand:
    """A parameterized statement ready for execution.

    The command is the only placeholder counter used while a statement is being
    synthesized: ``add_parameter`` binds the next value and returns the ``@N``
    placeholder that refers to it, so placeholders and parameters cannot drift
    apart. Once ``sql`` is set the command is treated as immutable.

    Attributes:
        sql: Statement text using ``@N`` placeholders.
        parameters: Bound parameters, ``parameters[n]`` answers ``@n``.
        table: Quoted name of the table the command targets.
    """

    __slots__ = ("parameters", "sql", "table")

    def __init__(self, sql: str = "", table: str = "", parameters: "list[BoundParameter] | None" = None) -> None:
        self.sql = sql
        self.table = table
        self.parameters: list[BoundParameter] = parameters if parameters is not None else []

    @classmethod
    def from_sql(cls, sql: str, *args: Any, table: str = "") -> "SynthesizedCommand":
        """Wrap caller supplied SQL and positional arguments.

        List and tuple arguments are expanded one level.
        """
        command = cls(table=table)
        command.add_parameters(args)
        command.sql = sql
        return command

    def add_parameter(self, value: Any) -> str:
        """Bind ``value`` as the next positional parameter.

        Returns:
            The placeholder referring to the new parameter.
        """
        parameter = bind_parameter(len(self.parameters), value)
        self.parameters.append(parameter)
        return parameter.name

    def add_parameters(self, args: Any) -> "list[str]":
        return [self.add_parameter(value) for value in flatten_arguments(args)]

    @property
    def values(self) -> "list[Any]":
        """Parameter values in placeholder order."""
        return [parameter.value for parameter in self.parameters]

    @property
    def sizes(self) -> "list[int | None]":
        return [parameter.size for parameter in self.parameters]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SynthesizedCommand):
            return False
        return self.sql == other.sql and self.table == other.table and self.parameters == other.parameters

    def __hash__(self) -> int:
        return hash((self.sql, self.table))

    def __repr__(self) -> str:
        return f"SynthesizedCommand(sql={self.sql!r}, parameters={self.values!r}, table={self.table!r})"
