"""Parameter binding and placeholder conversion.

Components:
- BoundParameter: a positional parameter with its driver size hint
- bind_parameter: value normalization applied when a parameter is appended
- ParameterStyle: the PEP 249 ``paramstyle`` values
- convert_placeholders: rewrites canonical ``@N`` placeholders for a driver

Generated and caller supplied SQL always uses zero-based ``@N`` placeholders.
The Nth parameter appended to a command is referenced as ``@N``; drivers
receive the statement rewritten into their own ``paramstyle``.
"""

import re
import uuid
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any, Final

from mypy_extensions import mypyc_attr

from dyntable.core.coercion import first_value
from dyntable.exceptions import ImproperConfigurationError, MissingParameterError
from dyntable.typing import ParameterPayload

__all__ = (
    "TEXT_SIZE",
    "UNBOUNDED_SIZE",
    "BoundParameter",
    "ParameterStyle",
    "bind_parameter",
    "convert_placeholders",
    "flatten_arguments",
    "parameter_marker",
    "placeholder",
)

TEXT_SIZE: Final = 4000
"""Bounded width for text and identifier parameters."""

UNBOUNDED_SIZE: Final = -1
"""Size hint for text longer than ``TEXT_SIZE``."""

_PLACEHOLDER_REGEX: Final = re.compile(
    r"""
    (?P<squote>'(?:[^']|'')*') |
    (?P<dquote>"(?:[^"]|"")*") |
    (?P<bracket>\[[^\]]*\]) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*[\s\S]*?\*/) |
    (?P<system_var>@@\w+) |
    (?P<bquote>`[^`]*`) |
    (?P<at_index>@(?P<index>\d+)) |
    (?P<marker>__dyntable_p(?P<marker_index>\d+)__) |
    (?P<percent>%)
    """,
    re.VERBOSE,
)


class ParameterStyle(str, Enum):
    """PEP 249 parameter styles.

    - QMARK: ``?``
    - NUMERIC: ``:1``, ``:2``
    - NAMED: ``:p0``, ``:p1``
    - FORMAT: ``%s``
    - PYFORMAT: ``%(p0)s``
    """

    QMARK = "qmark"
    NUMERIC = "numeric"
    NAMED = "named"
    FORMAT = "format"
    PYFORMAT = "pyformat"

    @classmethod
    def from_paramstyle(cls, paramstyle: str) -> "ParameterStyle":
        try:
            return cls(paramstyle.lower())
        except ValueError as e:
            msg = f"Unsupported DB-API paramstyle {paramstyle!r}"
            raise ImproperConfigurationError(msg) from e


@mypyc_attr(allow_interpreted_subclasses=False)
class BoundParameter:
    """A positional parameter appended to a command.

    Attributes:
        index: Zero-based position, referenced in SQL as ``@index``
        value: The normalized value sent to the driver
        size: Size hint (``TEXT_SIZE``, ``UNBOUNDED_SIZE`` or ``None`` for driver inferred)
    """

    __slots__ = ("index", "size", "value")

    def __init__(self, index: int, value: Any, size: "int | None" = None) -> None:
        self.index = index
        self.value = value
        self.size = size

    @property
    def name(self) -> str:
        return placeholder(self.index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundParameter):
            return False
        return self.index == other.index and self.value == other.value and self.size == other.size

    def __hash__(self) -> int:
        return hash((self.index, self.size))

    def __repr__(self) -> str:
        return f"BoundParameter({self.name}, {self.value!r}, size={self.size!r})"


def placeholder(index: int) -> str:
    return f"@{index}"


def parameter_marker(index: int) -> str:
    """Bare token standing in for parameter ``index`` while a statement is transpiled."""
    return f"__dyntable_p{index}__"


def bind_parameter(index: int, value: Any) -> BoundParameter:
    """Normalize a value into the parameter appended at ``index``.

    - a single-value mapping is unwrapped to its first value first
    - ``None`` binds as SQL NULL
    - ``uuid.UUID`` binds as its canonical string at ``TEXT_SIZE``
    - ``str`` binds at ``TEXT_SIZE``, or ``UNBOUNDED_SIZE`` beyond ``TEXT_SIZE`` characters
    - anything else binds as is with a driver inferred type

    Args:
        index: Zero-based parameter position.
        value: Raw record or argument value.

    Returns:
        The bound parameter.
    """
    if isinstance(value, dict):
        value = first_value(value)
    if value is None:
        return BoundParameter(index, None)
    if isinstance(value, uuid.UUID):
        return BoundParameter(index, str(value), TEXT_SIZE)
    if isinstance(value, str):
        return BoundParameter(index, value, UNBOUNDED_SIZE if len(value) > TEXT_SIZE else TEXT_SIZE)
    return BoundParameter(index, value)


def flatten_arguments(args: Iterable[Any]) -> "list[Any]":
    """Expand list and tuple arguments one level into individual parameters."""
    flattened: list[Any] = []
    for item in args:
        if isinstance(item, (list, tuple)):
            flattened.extend(item)
        else:
            flattened.append(item)
    return flattened


def convert_placeholders(
    sql: str, parameters: "Sequence[Any]", style: ParameterStyle, *, from_markers: bool = False
) -> "tuple[str, ParameterPayload]":
    """Rewrite placeholders into a driver parameter style.

    Placeholders inside quoted strings, bracketed identifiers and comments are
    left alone. Occurrence ordered styles (``qmark`` and ``format``) repeat a
    parameter for every reference to it.

    Args:
        sql: Statement using ``@N`` placeholders, or parameter markers when ``from_markers`` is set.
        parameters: Values by index.
        style: Target parameter style.
        from_markers: Read ``parameter_marker`` tokens instead of ``@N`` placeholders.

    Raises:
        MissingParameterError: A placeholder refers to an index without a value.

    Returns:
        The rewritten statement and the driver parameter payload.
    """
    ordered: list[Any] = []
    escape_percent = style in {ParameterStyle.FORMAT, ParameterStyle.PYFORMAT}

    def _replace(match: "re.Match[str]") -> str:
        kind = match.lastgroup
        text = match.group(0)
        if kind == "at_index" and not from_markers:
            index = int(match.group("index"))
        elif kind == "marker" and from_markers:
            index = int(match.group("marker_index"))
        else:
            # format styles treat every % in the statement text as markup
            return text.replace("%", "%%") if escape_percent else text

        if index >= len(parameters):
            msg = f"Placeholder {placeholder(index)} has no matching parameter ({len(parameters)} supplied)"
            raise MissingParameterError(msg, sql)

        if style is ParameterStyle.QMARK:
            ordered.append(parameters[index])
            return "?"
        if style is ParameterStyle.FORMAT:
            ordered.append(parameters[index])
            return "%s"
        if style is ParameterStyle.NUMERIC:
            return f":{index + 1}"
        if style is ParameterStyle.NAMED:
            return f":p{index}"
        return f"%(p{index})s"

    converted = _PLACEHOLDER_REGEX.sub(_replace, sql)
    if style in {ParameterStyle.QMARK, ParameterStyle.FORMAT}:
        return converted, ordered
    if style is ParameterStyle.NUMERIC:
        return converted, list(parameters)
    return converted, {f"p{index}": value for index, value in enumerate(parameters)}
