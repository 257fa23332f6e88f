"""Thin clients over the SQL Server and MySQL drivers."""

import logging
import struct
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Optional, Protocol, Sequence

from mssql2mysql.db.dsn import mssql_odbc_connection_string, mysql_connect_kwargs, redact
from mssql2mysql.exceptions import DatabaseConnectionError

__all__ = ["SqlClient", "RowCursor", "MssqlClient", "MysqlClient"]

logger = logging.getLogger(__name__)


class SqlClient(Protocol):
    """What the introspector and migrator need from a database connection."""

    def fetchall(self, sql: str) -> list[dict[str, Any]]: ...

    def query(self, sql: str) -> "RowCursor": ...

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int: ...


class RowCursor:
    """Forward-only cursor yielding rows as tuples, one at a time."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        description = cursor.description or []
        self.columns: list[str] = [desc[0] for desc in description]

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        while True:
            row = self._cursor.fetchone()
            if row is None:
                return
            yield tuple(row)

    def close(self) -> None:
        self._cursor.close()

    def __enter__(self) -> "RowCursor":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


class _DbApiClient:
    """Shared DB-API plumbing. Subclasses open the driver connection."""

    label = "database"

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: Any = None

    def _open(self) -> Any:
        raise NotImplementedError

    @property
    def connection(self) -> Any:
        if self._connection is None:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._connection

    def connect(self) -> None:
        """Open the connection. Must be called before fetchall/query/execute."""
        if self._connection is not None:
            raise RuntimeError("Already connected. Call close() before reconnecting.")
        self._connection = self._open()
        logger.debug("Connected to %s %s", self.label, redact(self._connection_string))

    def fetchall(self, sql: str) -> list[dict[str, Any]]:
        """Execute SQL and return results as list of dicts."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            columns = [desc[0] for desc in cursor.description] if cursor.description else []
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def query(self, sql: str) -> RowCursor:
        """Execute SQL and return a streaming cursor over the result."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
        except Exception:
            cursor.close()
            raise
        return RowCursor(cursor)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Execute a statement and return the affected row count."""
        cursor = self.connection.cursor()
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, tuple(params))
            return cursor.rowcount
        finally:
            cursor.close()

    def close(self) -> None:
        if self._connection is not None:
            try:
                self._connection.close()
            finally:
                self._connection = None

    def __enter__(self) -> "_DbApiClient":
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


SQL_SS_DATETIMEOFFSET = -155


def _raw_guid(value: Optional[bytes]) -> Optional[bytes]:
    return value


def _datetimeoffset(value: Optional[bytes]) -> Optional[datetime]:
    """Decode the SQL_SS_TIMESTAMPOFFSET_STRUCT pyodbc hands over as bytes."""
    if value is None:
        return None
    year, month, day, hour, minute, second, fraction, tz_hour, tz_minute = (
        struct.unpack("<6hI2h", value)
    )
    return datetime(
        year,
        month,
        day,
        hour,
        minute,
        second,
        fraction // 1000,
        tzinfo=timezone(timedelta(hours=tz_hour, minutes=tz_minute)),
    )


class MssqlClient(_DbApiClient):
    """SQL Server client on pyodbc.

    uniqueidentifier columns are returned as their raw 16 bytes, in SQL
    Server's little-endian layout, instead of pyodbc's default text form.
    datetimeoffset columns, which pyodbc cannot read natively, are decoded
    into timezone-aware datetimes.
    """

    label = "SQL Server"

    def _open(self) -> Any:
        import pyodbc

        odbc_string = mssql_odbc_connection_string(self._connection_string)
        try:
            connection = pyodbc.connect(odbc_string, autocommit=True)
        except pyodbc.Error as e:
            raise DatabaseConnectionError(
                f"Cannot connect to SQL Server ({redact(self._connection_string)}): {e}"
            ) from e
        connection.add_output_converter(pyodbc.SQL_GUID, _raw_guid)
        connection.add_output_converter(SQL_SS_DATETIMEOFFSET, _datetimeoffset)
        return connection


class MysqlClient(_DbApiClient):
    """MySQL client on mysql-connector-python, committing every statement."""

    label = "MySQL"

    def _open(self) -> Any:
        import mysql.connector

        kwargs = mysql_connect_kwargs(self._connection_string)
        try:
            return mysql.connector.connect(autocommit=True, **kwargs)
        except mysql.connector.Error as e:
            raise DatabaseConnectionError(
                f"Cannot connect to MySQL ({redact(self._connection_string)}): {e}"
            ) from e
