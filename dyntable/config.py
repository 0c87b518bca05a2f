"""Connection profiles.

A profile names a PEP 249 driver module and the keyword arguments passed to
its ``connect``. Profiles are collected in a ``DatabaseConfig`` that callers
build explicitly and hand to each table binding.
"""

import importlib
from collections.abc import Iterator
from types import ModuleType
from typing import TYPE_CHECKING, Any

from dyntable.core.parameters import ParameterStyle
from dyntable.exceptions import ImproperConfigurationError, MissingDependencyError
from dyntable.utils.logging import get_logger

if TYPE_CHECKING:
    from dyntable.typing import DBAPIConnection, DBAPIModule

__all__ = ("ConnectionProfile", "DatabaseConfig")

logger = get_logger("config")


class ConnectionProfile:
    """A named connection profile.

    Args:
        name: Profile name used by table bindings.
        driver: Dotted import path of a DB-API module (``"sqlite3"``, ``"psycopg"``) or the module itself.
        connection_config: Keyword arguments for the module's ``connect``.
        paramstyle: Overrides the module's ``paramstyle``.
        dialect: sqlglot dialect generated statements are transpiled to. ``None`` sends them verbatim.
        identity_query: Statement returning the identity of the last insert, e.g. ``SELECT @@IDENTITY``.
            ``None`` uses ``cursor.lastrowid``.
        use_input_sizes: Pass parameter size hints to ``cursor.setinputsizes``.
    """

    __slots__ = (
        "_module",
        "connection_config",
        "dialect",
        "driver",
        "identity_query",
        "name",
        "paramstyle",
        "use_input_sizes",
    )

    def __init__(
        self,
        name: str,
        driver: "str | ModuleType" = "sqlite3",
        connection_config: "dict[str, Any] | None" = None,
        *,
        paramstyle: "str | None" = None,
        dialect: "str | None" = None,
        identity_query: "str | None" = None,
        use_input_sizes: bool = False,
    ) -> None:
        if not name:
            msg = "A connection profile needs a name"
            raise ImproperConfigurationError(msg)
        self.name = name
        self.driver = driver
        self.connection_config: dict[str, Any] = dict(connection_config or {})
        self.paramstyle = paramstyle
        self.dialect = dialect
        self.identity_query = identity_query
        self.use_input_sizes = use_input_sizes
        self._module: DBAPIModule | None = driver if isinstance(driver, ModuleType) else None  # type: ignore[assignment]

    def __repr__(self) -> str:
        driver = self.driver if isinstance(self.driver, str) else self.driver.__name__
        return f"ConnectionProfile(name={self.name!r}, driver={driver!r}, dialect={self.dialect!r})"

    @property
    def module(self) -> "DBAPIModule":
        """The DB-API module, imported on first use.

        Raises:
            MissingDependencyError: The module cannot be imported.
        """
        if self._module is None:
            dotted_path = str(self.driver)
            try:
                self._module = importlib.import_module(dotted_path)  # type: ignore[assignment]
            except ImportError as e:
                raise MissingDependencyError(dotted_path.split(".")[0]) from e
            logger.debug("Resolved driver %s for profile %s", dotted_path, self.name)
        return self._module  # type: ignore[return-value]

    @property
    def parameter_style(self) -> ParameterStyle:
        return ParameterStyle.from_paramstyle(self.paramstyle or getattr(self.module, "paramstyle", "qmark"))

    @property
    def error_type(self) -> "type[Exception]":
        return getattr(self.module, "Error", Exception)

    def connect(self) -> "DBAPIConnection":
        """Open a new connection."""
        return self.module.connect(**self.connection_config)


class DatabaseConfig:
    """An ordered set of connection profiles.

    The first profile added is the default one.
    """

    __slots__ = ("_profiles",)

    def __init__(self, *profiles: ConnectionProfile) -> None:
        self._profiles: dict[str, ConnectionProfile] = {}
        for profile in profiles:
            self.add_profile(profile)

    def add_profile(self, profile: ConnectionProfile) -> ConnectionProfile:
        if profile.name in self._profiles:
            logger.debug("Replacing connection profile %s", profile.name)
        self._profiles[profile.name] = profile
        return profile

    def get_profile(self, name: str = "") -> ConnectionProfile:
        """Look up a profile by name; an empty name selects the default profile.

        Raises:
            ImproperConfigurationError: No profile with that name exists.
        """
        if not name:
            if not self._profiles:
                msg = "No connection profiles are configured"
                raise ImproperConfigurationError(msg)
            return next(iter(self._profiles.values()))
        try:
            return self._profiles[name]
        except KeyError:
            msg = f"Can't find a connection profile with the name {name!r}"
            raise ImproperConfigurationError(msg) from None

    def __contains__(self, name: object) -> bool:
        return name in self._profiles

    def __iter__(self) -> Iterator[ConnectionProfile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)
