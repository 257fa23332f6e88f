"""Row transcoding, INSERT building and the migration run."""

from mssql2mysql.transfer.migrator import (
    MigrationReport,
    Migrator,
    TableCopyResult,
    foreign_key_checks_disabled,
)
from mssql2mysql.transfer.statement import BoundStatement, InsertBuilder
from mssql2mysql.transfer.transcoder import ColumnSlot, ValueTranscoder, plan_columns

__all__ = [
    "BoundStatement",
    "ColumnSlot",
    "InsertBuilder",
    "MigrationReport",
    "Migrator",
    "TableCopyResult",
    "ValueTranscoder",
    "foreign_key_checks_disabled",
    "plan_columns",
]
