"""Database connection utilities for the fintech data layer."""
from __future__ import annotations

import importlib
import logging
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Dict, Generator, Optional, Tuple, Type

from .config import DatabaseConfig, load_config_from_env

logger = logging.getLogger(__name__)

DEFAULT_ORACLE_PORT = 1521

_ORACLE_SID_URL = re.compile(
    r"^(?:jdbc:)?oracle:thin:@(?P<host>[^:/@]+)(?::(?P<port>\d+))?:(?P<sid>[\w$#.-]+)$",
    re.IGNORECASE,
)
_ORACLE_SERVICE_URL = re.compile(
    r"^(?:(?:jdbc:)?oracle:thin:@//|oracle://)(?P<host>[^:/@]+)(?::(?P<port>\d+))?/(?P<service>[\w$#.-]+)$",
    re.IGNORECASE,
)
_SQLITE_URL = re.compile(r"^sqlite://(?:(?P<memory>:memory:)|/(?P<path>.+))$", re.IGNORECASE)


class ConnectionFailure(RuntimeError):
    """Raised when a new database session cannot be established."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: "Endpoint | None" = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.cause = cause


@dataclass(frozen=True)
class Endpoint:
    """Parsed form of a configured database URL."""

    scheme: str
    host: Optional[str] = None
    port: Optional[int] = None
    sid: Optional[str] = None
    service_name: Optional[str] = None
    path: Optional[str] = None

    def describe(self) -> str:
        if self.scheme == "sqlite":
            return f"sqlite:{self.path}"
        target = self.sid if self.sid is not None else self.service_name
        separator = ":" if self.sid is not None else "/"
        return f"{self.host}:{self.port}{separator}{target}"


def parse_endpoint(url: str) -> Endpoint:
    """Parse a database URL into an :class:`Endpoint`.

    Accepts the JDBC thin forms ``jdbc:oracle:thin:@host:port:sid`` and
    ``jdbc:oracle:thin:@//host:port/service`` (the ``jdbc:`` prefix is
    optional), ``oracle://host:port/service`` and SQLite URLs:
    ``sqlite:///relative.db``, ``sqlite:////absolute/path.db`` and
    ``sqlite://:memory:``.
    """

    cleaned = url.strip()

    match = _ORACLE_SID_URL.match(cleaned)
    if match:
        return Endpoint(
            scheme="oracle",
            host=match.group("host"),
            port=int(match.group("port") or DEFAULT_ORACLE_PORT),
            sid=match.group("sid"),
        )

    match = _ORACLE_SERVICE_URL.match(cleaned)
    if match:
        return Endpoint(
            scheme="oracle",
            host=match.group("host"),
            port=int(match.group("port") or DEFAULT_ORACLE_PORT),
            service_name=match.group("service"),
        )

    match = _SQLITE_URL.match(cleaned)
    if match:
        return Endpoint(scheme="sqlite", path=match.group("memory") or match.group("path"))

    raise ValueError(f"Unsupported database URL: {url!r}")


class Driver(ABC):
    """Adapter between a DB-API 2.0 module and :class:`ConnectionProvider`."""

    module_name: str = ""
    ping_query: str = "SELECT 1"

    def load(self) -> ModuleType:
        return importlib.import_module(self.module_name)

    def errors(self, module: Any) -> Tuple[Type[BaseException], ...]:
        """Exception types that mean a session could not be used."""
        return (module.Error, OSError)

    @abstractmethod
    def connect(self, module: Any, endpoint: Endpoint, user: str, password: str) -> Any:
        """Open a new connection through ``module``."""


class OracleDriver(Driver):
    """Opens sessions through python-oracledb in thin mode."""

    module_name = "oracledb"
    ping_query = "SELECT 1 FROM dual"

    def connect(self, module: Any, endpoint: Endpoint, user: str, password: str) -> Any:
        if endpoint.sid is not None:
            dsn = module.makedsn(endpoint.host, endpoint.port, sid=endpoint.sid)
        else:
            dsn = module.makedsn(endpoint.host, endpoint.port, service_name=endpoint.service_name)
        return module.connect(user=user, password=password, dsn=dsn)


class SqliteDriver(Driver):
    """Opens local SQLite databases; the account and secret are not used."""

    module_name = "sqlite3"
    # Reads the schema page, so a file that is not a database fails here.
    ping_query = "SELECT count(*) FROM sqlite_master"

    def connect(self, module: Any, endpoint: Endpoint, user: str, password: str) -> Any:
        conn = module.connect(endpoint.path, check_same_thread=False)
        try:
            conn.row_factory = module.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except module.Error:
            conn.close()
            raise
        return conn


_DRIVERS: Dict[str, Type[Driver]] = {
    "oracle": OracleDriver,
    "sqlite": SqliteDriver,
}


def driver_for(endpoint: Endpoint) -> Driver:
    try:
        return _DRIVERS[endpoint.scheme]()
    except KeyError as exc:
        raise ValueError(f"No driver registered for scheme '{endpoint.scheme}'") from exc


class ConnectionProvider:
    """Factory that opens a new database session on every call."""

    def __init__(self, config: DatabaseConfig, *, driver: Optional[Driver] = None) -> None:
        self._config = config
        self._endpoint = parse_endpoint(config.url)
        self._driver = driver if driver is not None else driver_for(self._endpoint)

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def driver(self) -> Driver:
        return self._driver

    def _load_driver(self) -> Any:
        try:
            return self._driver.load()
        except ImportError as exc:
            raise ConnectionFailure(
                f"Database driver '{self._driver.module_name}' is not available",
                endpoint=self._endpoint,
                cause=exc,
            ) from exc

    def open_connection(self) -> Any:
        """Return a freshly opened connection owned by the caller.

        Raises :class:`ConnectionFailure` with the driver error attached when
        the session cannot be established.
        """

        target = self._endpoint.describe()
        module = self._load_driver()

        logger.debug("Opening %s connection to %s as %s", self._endpoint.scheme, target, self._config.user)
        try:
            return self._driver.connect(module, self._endpoint, self._config.user, self._config.password)
        except self._driver.errors(module) as exc:
            raise ConnectionFailure(
                f"Unable to connect to {target}: {exc}",
                endpoint=self._endpoint,
                cause=exc,
            ) from exc

    @contextmanager
    def connection(self) -> Generator[Any, None, None]:
        """Open a connection and close it when the block exits."""

        conn = self.open_connection()
        try:
            yield conn
        finally:
            conn.close()

    def ping(self) -> None:
        """Open a connection, run the driver's test query and close it.

        A failing test query is reported as :class:`ConnectionFailure` as well.
        """

        target = self._endpoint.describe()
        module = self._load_driver()
        with self.connection() as conn:
            try:
                cursor = conn.cursor()
                try:
                    cursor.execute(self._driver.ping_query)
                    cursor.fetchone()
                finally:
                    cursor.close()
            except self._driver.errors(module) as exc:
                raise ConnectionFailure(
                    f"Test query against {target} failed: {exc}",
                    endpoint=self._endpoint,
                    cause=exc,
                ) from exc


def open_connection(config: Optional[DatabaseConfig] = None) -> Any:
    """Open a connection using ``config`` or the environment configuration."""

    if config is None:
        config = load_config_from_env()
    return ConnectionProvider(config).open_connection()


__all__ = [
    "ConnectionFailure",
    "ConnectionProvider",
    "Driver",
    "Endpoint",
    "OracleDriver",
    "SqliteDriver",
    "driver_for",
    "open_connection",
    "parse_endpoint",
]
