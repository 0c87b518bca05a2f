from typing import Any, Optional

__all__ = (
    "DatabaseError",
    "DynTableError",
    "EmptyRecordError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "MissingParameterError",
    "ParameterError",
    "SQLBuilderError",
    "SQLParsingError",
    "TransactionError",
)


class DynTableError(Exception):
    """Base exception class from which all dyntable exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``DynTableError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(DynTableError, ImportError):
    """Missing driver module.

    Raised when a connection profile names a DB-API module that cannot be imported.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required by a connection profile. "
            f"You can install it by running 'pip install {install_package or package}'",
        )


class ImproperConfigurationError(DynTableError):
    """Improper Configuration error.

    Raised when a table binding cannot be constructed from the supplied configuration,
    for example when the named connection profile does not exist.
    """


class SQLBuilderError(DynTableError):
    """Issues building or generating SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        super().__init__(message)


class EmptyRecordError(SQLBuilderError):
    """Raised when an INSERT or UPDATE is requested for a record without usable columns."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Can't parse this object to the database - there are no properties set"
        super().__init__(message)


class SQLParsingError(DynTableError):
    """Issues parsing SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues parsing SQL statement."
        super().__init__(message)


# -- SQL Parameter Errors --
class ParameterError(DynTableError):
    """Base class for parameter-related errors."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class MissingParameterError(ParameterError):
    """Raised when a placeholder refers to a parameter that was not supplied."""


# -- Driver Errors --
class DatabaseError(DynTableError):
    """Raised when the underlying DB-API driver fails to prepare or execute a statement."""


class TransactionError(DatabaseError):
    """Raised when a transaction cannot be committed."""

