"""Schema introspection from the INFORMATION_SCHEMA catalog."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from mssql2mysql.exceptions import IntrospectionError
from mssql2mysql.schema.models import BASE_TABLE, Column, Schema, Table
from mssql2mysql.types import Dialect

logger = logging.getLogger(__name__)


class SQLClient(Protocol):
    """Protocol for SQL client used by introspector."""

    def fetchall(self, sql: str) -> list: ...


@dataclass(frozen=True)
class CatalogQueries:
    """Dialect-specific catalog queries. columns takes a {table} placeholder."""

    tables: str
    columns: str


CATALOG_QUERIES: dict[Dialect, CatalogQueries] = {
    Dialect.MSSQL: CatalogQueries(
        tables=f"""
            SELECT TABLE_NAME AS table_name, TABLE_TYPE AS table_type
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_TYPE = '{BASE_TABLE}'
              AND TABLE_CATALOG = DB_NAME()
        """,
        columns="""
            SELECT COLUMN_NAME AS column_name, DATA_TYPE AS data_type
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_CATALOG = DB_NAME()
              AND TABLE_NAME = '{table}'
            ORDER BY ORDINAL_POSITION
        """,
    ),
    Dialect.MYSQL: CatalogQueries(
        tables=f"""
            SELECT TABLE_NAME AS table_name, TABLE_TYPE AS table_type
            FROM information_schema.tables
            WHERE TABLE_TYPE = '{BASE_TABLE}'
              AND TABLE_SCHEMA = DATABASE()
        """,
        columns="""
            SELECT COLUMN_NAME AS column_name, DATA_TYPE AS data_type
            FROM information_schema.columns
            WHERE TABLE_SCHEMA = DATABASE()
              AND TABLE_NAME = '{table}'
            ORDER BY ORDINAL_POSITION
        """,
    ),
}


def _escape_sql_string(value: str) -> str:
    """Escape single quotes for SQL string literals."""
    return value.replace("'", "''")


class SchemaIntrospector:
    """Introspect base tables and their ordered columns."""

    def __init__(self, client: SQLClient, dialect: Dialect) -> None:
        self._client = client
        self._dialect = dialect
        self._queries = CATALOG_QUERIES[dialect]

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def _row_get(self, row: Any, key: str, default: Any = None) -> Any:
        """Safely get a value from a row, tolerating upper-cased catalog keys."""
        if hasattr(row, "get"):
            value = row.get(key)
            if value is None:
                value = row.get(key.upper(), default)
            return value
        try:
            return row[key]
        except (KeyError, IndexError, TypeError):
            return default

    def introspect_schema(self) -> Schema:
        """Introspect all base tables, sorted case-insensitively by name.

        Raises:
            IntrospectionError: If any catalog query fails.
        """
        tables = []
        for name, kind in self._fetch_table_names():
            columns = self._fetch_columns(name)
            tables.append(Table(name=name, columns=columns, kind=kind))

        schema = Schema.from_tables(tables)
        logger.debug(
            "Introspected %d tables from %s", len(schema), self._dialect.value
        )
        return schema

    def introspect_table(self, table_name: str) -> Table | None:
        """Introspect a single base table. Returns None if not found."""
        for name, kind in self._fetch_table_names():
            if name.lower() == table_name.lower():
                return Table(name=name, columns=self._fetch_columns(name), kind=kind)
        return None

    def _fetchall(self, sql: str, what: str) -> list:
        try:
            return self._client.fetchall(sql)
        except Exception as e:
            raise IntrospectionError(
                f"Failed to fetch {what} from {self._dialect.value} catalog: {e}"
            ) from e

    def _fetch_table_names(self) -> list[tuple[str, str]]:
        """Fetch (name, kind) for all base tables."""
        rows = self._fetchall(self._queries.tables, "table list")
        result = []
        for row in rows:
            name = self._row_get(row, "table_name")
            if name is None:
                raise IntrospectionError(
                    f"Catalog row without table_name from {self._dialect.value}: {row!r}"
                )
            kind = self._row_get(row, "table_type", BASE_TABLE)
            result.append((name, kind))
        return result

    def _fetch_columns(self, table_name: str) -> list[Column]:
        """Fetch columns in ordinal position order."""
        sql = self._queries.columns.format(table=_escape_sql_string(table_name))
        rows = self._fetchall(sql, f"columns of '{table_name}'")
        return [
            Column(
                name=self._row_get(row, "column_name"),
                type=self._row_get(row, "data_type") or "",
            )
            for row in rows
        ]
