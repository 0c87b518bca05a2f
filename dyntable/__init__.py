"""dyntable: schema-less table access over any DB-API driver."""

from dyntable import core, driver, exceptions, typing, utils
from dyntable.config import ConnectionProfile, DatabaseConfig
from dyntable.core import CommandSynthesizer, PagedResult, ParameterStyle, PrimaryKey, SynthesizedCommand, coerce_record
from dyntable.driver import RecordStream, SyncDriver
from dyntable.exceptions import (
    DatabaseError,
    DynTableError,
    EmptyRecordError,
    ImproperConfigurationError,
    MissingDependencyError,
    MissingParameterError,
    ParameterError,
    SQLBuilderError,
    SQLParsingError,
    TransactionError,
)
from dyntable.table import DynamicTable

__version__ = "0.1.0"

__all__ = (
    "CommandSynthesizer",
    "ConnectionProfile",
    "DatabaseConfig",
    "DatabaseError",
    "DynTableError",
    "DynamicTable",
    "EmptyRecordError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "MissingParameterError",
    "PagedResult",
    "ParameterError",
    "ParameterStyle",
    "PrimaryKey",
    "RecordStream",
    "SQLBuilderError",
    "SQLParsingError",
    "SyncDriver",
    "SynthesizedCommand",
    "TransactionError",
    "__version__",
    "coerce_record",
    "core",
    "driver",
    "exceptions",
    "typing",
    "utils",
)
