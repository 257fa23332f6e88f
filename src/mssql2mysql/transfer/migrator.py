"""Migration orchestration: check schemas, then copy every table row by row."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional, Sequence

from mssql2mysql.db.client import SqlClient
from mssql2mysql.exceptions import (
    RowTranscodeError,
    SourceReadError,
    StatementExecutionError,
)
from mssql2mysql.schema.checker import SchemaChecker
from mssql2mysql.schema.introspect import SchemaIntrospector
from mssql2mysql.schema.models import Schema, Table
from mssql2mysql.transfer.statement import InsertBuilder, quote_mssql_identifier
from mssql2mysql.transfer.transcoder import ValueTranscoder, plan_columns
from mssql2mysql.types import Dialect, TypedValue

__all__ = [
    "FOREIGN_KEY_CHECKS_OFF",
    "FOREIGN_KEY_CHECKS_ON",
    "MigrationReport",
    "Migrator",
    "TableCopyResult",
    "foreign_key_checks_disabled",
]

logger = logging.getLogger(__name__)

FOREIGN_KEY_CHECKS_OFF = "SET SESSION FOREIGN_KEY_CHECKS=0;"
FOREIGN_KEY_CHECKS_ON = "SET SESSION FOREIGN_KEY_CHECKS=1;"


@contextmanager
def foreign_key_checks_disabled(client: SqlClient) -> Iterator[None]:
    """Disable foreign key checks on the destination session for the block.

    Checks are re-enabled on every exit path. If re-enabling fails while an
    error is already propagating, the failure is logged and the original
    error wins.
    """
    client.execute(FOREIGN_KEY_CHECKS_OFF)
    try:
        yield
    except BaseException:
        try:
            client.execute(FOREIGN_KEY_CHECKS_ON)
        except Exception as exc:
            logger.error("Could not re-enable foreign key checks: %s", exc)
        raise
    client.execute(FOREIGN_KEY_CHECKS_ON)


def _source_rows(cursor: Iterable[tuple[Any, ...]], table: str) -> Iterator[tuple[Any, ...]]:
    """Iterate cursor rows, wrapping driver fetch failures with the table name."""
    rows = iter(cursor)
    row_number = 0
    while True:
        row_number += 1
        try:
            row = next(rows)
        except StopIteration:
            return
        except Exception as e:
            raise SourceReadError(
                f"Table '{table}' row {row_number}: cannot read from source: {e}",
                table=table,
                row_number=row_number,
            ) from e
        yield row


@dataclass(frozen=True)
class TableCopyResult:
    table: str
    index: int
    total: int
    rows: int
    null_fallbacks: int = 0


@dataclass
class MigrationReport:
    """Per-table results of a completed run."""

    tables: list[TableCopyResult] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(t.rows for t in self.tables)

    @property
    def total_null_fallbacks(self) -> int:
        return sum(t.null_fallbacks for t in self.tables)


class Migrator:
    """
    Copies all rows of every base table from SQL Server to MySQL.

    Tables are processed one at a time in canonical order and rows are
    streamed: each row is read, transcoded and inserted before the next is
    read. The first failure aborts the run; rows inserted up to that point
    stay in the destination.

    With literal_sql=True every INSERT is fully literal text. Otherwise
    values are bound as parameters and only GUID and binary values are
    inlined.
    """

    def __init__(
        self,
        source: SqlClient,
        destination: SqlClient,
        *,
        literal_sql: bool = False,
        strict: bool = False,
        checker: Optional[SchemaChecker] = None,
    ) -> None:
        self._source = source
        self._destination = destination
        self._literal_sql = literal_sql
        self._transcoder = ValueTranscoder(strict=strict)
        self._checker = checker or SchemaChecker()

    def introspect(self) -> tuple[Schema, Schema]:
        source = SchemaIntrospector(self._source, Dialect.MSSQL).introspect_schema()
        destination = SchemaIntrospector(
            self._destination, Dialect.MYSQL
        ).introspect_schema()
        return source, destination

    def check(self) -> tuple[Schema, Schema]:
        """Introspect both databases and validate that they correspond.

        Raises:
            IntrospectionError: A catalog query failed.
            SchemaMismatchError: The schemas do not correspond.
        """
        source, destination = self._checker.check(*self.introspect())
        for drift in self._checker.column_drift(source, destination):
            logger.warning("Column order differs: %s", drift.message)
        return source, destination

    def migrate(self) -> MigrationReport:
        """Run the whole migration and return per-table row counts."""
        report = MigrationReport()
        with foreign_key_checks_disabled(self._destination):
            source, destination = self.check()
            total = len(source.tables)
            for index, (source_table, destination_table) in enumerate(
                zip(source.tables, destination.tables), start=1
            ):
                report.tables.append(
                    self.copy_table(source_table, destination_table, index, total)
                )
        return report

    def copy_table(
        self,
        source_table: Table,
        destination_table: Table,
        index: int = 1,
        total: int = 1,
    ) -> TableCopyResult:
        """Stream every row of source_table into destination_table."""
        slots = plan_columns(source_table)
        builder = InsertBuilder(destination_table)
        fallbacks_before = self._transcoder.null_fallbacks
        name = source_table.name
        rows = 0

        sql = f"SELECT * FROM {quote_mssql_identifier(name)};"
        try:
            cursor = self._source.query(sql)
        except Exception as e:
            raise SourceReadError(
                f"Table '{name}': cannot query source: {e}", table=name
            ) from e

        with cursor:
            for row in _source_rows(cursor, name):
                row_number = rows + 1
                try:
                    typed_values = self._transcoder.classify_row(row, slots)
                except RowTranscodeError as e:
                    raise RowTranscodeError(
                        f"Table '{name}' row {row_number}: {e}",
                        table=name,
                        row_number=row_number,
                        column=e.column,
                    ) from e
                self._insert(builder, typed_values, row_number)
                rows += 1

        result = TableCopyResult(
            table=name,
            index=index,
            total=total,
            rows=rows,
            null_fallbacks=self._transcoder.null_fallbacks - fallbacks_before,
        )
        logger.info("Table %s migrated (%d/%d); Rows: %d;", name, index, total, rows)
        if result.null_fallbacks:
            logger.warning(
                "Table %s: %d unsupported values written as NULL",
                name,
                result.null_fallbacks,
            )
        return result

    def _insert(
        self, builder: InsertBuilder, typed_values: Sequence[TypedValue], row_number: int
    ) -> None:
        params: Optional[tuple[Any, ...]] = None
        if self._literal_sql:
            sql = builder.build_from_values(typed_values)
        else:
            bound = builder.build_bound(typed_values)
            sql = bound.sql
            params = bound.params or None

        try:
            self._destination.execute(sql, params)
        except Exception as exc:
            table = builder.table.name
            raise StatementExecutionError(
                f"Table '{table}' row {row_number}: destination rejected INSERT: {exc}",
                table=table,
                row_number=row_number,
                statement=sql,
            ) from exc
