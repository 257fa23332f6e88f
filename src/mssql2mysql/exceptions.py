"""Exception classes for mssql2mysql."""

from typing import Optional

__all__ = [
    "Mssql2MysqlError",
    "ConfigError",
    "DatabaseConnectionError",
    "IntrospectionError",
    "SchemaMismatchError",
    "TableCountMismatchError",
    "TableNameMismatchError",
    "ColumnCountMismatchError",
    "SourceReadError",
    "RowTranscodeError",
    "StatementExecutionError",
]


class Mssql2MysqlError(Exception):
    """Base exception for mssql2mysql."""


class ConfigError(Mssql2MysqlError):
    """Error in configuration or connection strings."""


class DatabaseConnectionError(Mssql2MysqlError):
    """Cannot open a connection to the source or destination database."""


class IntrospectionError(Mssql2MysqlError):
    """Error querying the metadata catalog."""


class SchemaMismatchError(Mssql2MysqlError):
    """Source and destination schemas do not correspond."""


class TableCountMismatchError(SchemaMismatchError):
    """Databases hold a different number of base tables."""

    def __init__(self, source_count: int, destination_count: int):
        self.source_count = source_count
        self.destination_count = destination_count
        super().__init__(
            f"Databases' count of tables are different: "
            f"source has {source_count}, destination has {destination_count}"
        )


class TableNameMismatchError(SchemaMismatchError):
    """Sorted table names diverge at some position."""

    def __init__(self, index: int, source_name: str, destination_name: str):
        self.index = index
        self.source_name = source_name
        self.destination_name = destination_name
        super().__init__(
            f"Database's tables are different at position {index + 1}: "
            f"source '{source_name}', destination '{destination_name}'"
        )


class ColumnCountMismatchError(SchemaMismatchError):
    """A matched table pair has a different number of columns."""

    def __init__(self, table: str, source_count: int, destination_count: int):
        self.table = table
        self.source_count = source_count
        self.destination_count = destination_count
        super().__init__(
            f"Databases' count of columns are different for table '{table}': "
            f"source has {source_count}, destination has {destination_count}"
        )


class SourceReadError(Mssql2MysqlError):
    """Reading a table's rows from the source failed."""

    def __init__(self, message: str, table: str, row_number: Optional[int] = None):
        self.table = table
        self.row_number = row_number
        super().__init__(message)


class RowTranscodeError(Mssql2MysqlError):
    """A source value cannot be converted to a destination literal."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        row_number: Optional[int] = None,
        column: Optional[str] = None,
    ):
        self.table = table
        self.row_number = row_number
        self.column = column
        super().__init__(message)


class StatementExecutionError(Mssql2MysqlError):
    """The destination rejected an INSERT statement."""

    def __init__(self, message: str, table: str, row_number: int, statement: str):
        self.table = table
        self.row_number = row_number
        self.statement = statement
        super().__init__(message)
