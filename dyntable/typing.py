from collections.abc import Iterable
from typing import Any, ClassVar, Protocol, Union, runtime_checkable

from typing_extensions import TypeAlias

__all__ = (
    "CanonicalRecord",
    "DBAPIConnection",
    "DBAPICursor",
    "DBAPIModule",
    "DataclassProtocol",
    "KeyValues",
    "MultiMapProtocol",
    "ParameterPayload",
    "RecordInput",
)


CanonicalRecord: TypeAlias = "dict[str, Any]"
"""Ordered column name to value mapping used for every row and every record."""

KeyValues: TypeAlias = "tuple[Any, ...]"
"""Primary key values in key specification order."""

RecordInput: TypeAlias = Any
"""Anything record coercion understands: mappings, multimaps, dataclasses, structs, models or plain objects."""


@runtime_checkable
class DataclassProtocol(Protocol):
    """Protocol for instance checking dataclasses."""

    __dataclass_fields__: "ClassVar[dict[str, Any]]"


class MultiMapProtocol(Protocol):
    """A string multimap such as submitted form data or a parsed query string."""

    def keys(self) -> Iterable[str]: ...

    def __getitem__(self, key: str) -> Any: ...


class DBAPICursor(Protocol):
    """The subset of a PEP 249 cursor used by the driver."""

    description: Any
    rowcount: int

    def execute(self, operation: str, parameters: Any = ...) -> Any: ...

    def fetchone(self) -> Any: ...

    def close(self) -> Any: ...


class DBAPIConnection(Protocol):
    """The subset of a PEP 249 connection used by the driver."""

    def cursor(self) -> Any: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


class DBAPIModule(Protocol):
    """A PEP 249 driver module such as ``sqlite3``, ``psycopg`` or ``pyodbc``."""

    paramstyle: str
    Error: "type[Exception]"

    def connect(self, *args: Any, **kwargs: Any) -> Any: ...


ParameterPayload: TypeAlias = Union["list[Any]", "dict[str, Any]"]
