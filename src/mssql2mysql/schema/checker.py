"""Schema compatibility check: gate a migration on matching catalogs."""

from dataclasses import dataclass

from mssql2mysql.exceptions import (
    ColumnCountMismatchError,
    TableCountMismatchError,
    TableNameMismatchError,
)
from mssql2mysql.schema.models import Schema


@dataclass(frozen=True)
class ColumnDrift:
    """A column position whose names differ between the two sides."""

    table: str
    position: int
    source_column: str
    destination_column: str

    @property
    def message(self) -> str:
        return (
            f"Table '{self.table}' column {self.position + 1}: "
            f"source '{self.source_column}' maps to destination "
            f"'{self.destination_column}'"
        )


class SchemaChecker:
    """Validate that two schemas correspond table-for-table.

    Tables are matched by position in their canonical (case-insensitive)
    order; columns are matched by ordinal position and only their counts are
    compared. Names and types of individual columns are not checked.
    """

    def check(self, source: Schema, destination: Schema) -> tuple[Schema, Schema]:
        """Check the schemas and return them unchanged.

        Checks run in order and stop at the first violation: table count,
        then table names, then column counts.

        Raises:
            TableCountMismatchError: Table counts differ.
            TableNameMismatchError: First positional name divergence.
            ColumnCountMismatchError: First table pair with differing column counts.
        """
        if len(source.tables) != len(destination.tables):
            raise TableCountMismatchError(len(source.tables), len(destination.tables))

        for index, (src, dst) in enumerate(zip(source.tables, destination.tables)):
            if src.name.lower() != dst.name.lower():
                raise TableNameMismatchError(index, src.name, dst.name)

        for src, dst in zip(source.tables, destination.tables):
            if len(src.columns) != len(dst.columns):
                raise ColumnCountMismatchError(
                    src.name, len(src.columns), len(dst.columns)
                )

        return source, destination

    def column_drift(self, source: Schema, destination: Schema) -> list[ColumnDrift]:
        """List column positions whose names differ across matched tables.

        Only meaningful after check() has passed.
        """
        drift: list[ColumnDrift] = []
        for src, dst in zip(source.tables, destination.tables):
            for position, (src_col, dst_col) in enumerate(
                zip(src.columns, dst.columns)
            ):
                if src_col.name.lower() != dst_col.name.lower():
                    drift.append(
                        ColumnDrift(
                            table=dst.name,
                            position=position,
                            source_column=src_col.name,
                            destination_column=dst_col.name,
                        )
                    )
        return drift
