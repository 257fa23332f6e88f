"""Core type definitions for mssql2mysql."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

TableName: TypeAlias = str
ColumnName: TypeAlias = str
DeclaredType: TypeAlias = str

__all__ = [
    "TableName",
    "ColumnName",
    "DeclaredType",
    "Dialect",
    "ValueKind",
    "BinaryKind",
    "TypedValue",
    "NULL_VALUE",
]


class Dialect(Enum):
    """SQL dialects on either side of a migration."""

    MSSQL = "mssql"
    MYSQL = "mysql"


class ValueKind(Enum):
    """Runtime kinds a source value is classified into before rendering."""

    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    TEMPORAL = "temporal"
    TEXT = "text"
    GUID = "guid"
    VARBINARY = "varbinary"
    DECIMAL = "decimal"
    UNSUPPORTED = "unsupported"


class BinaryKind(Enum):
    """How a byte sequence is interpreted, resolved from the declared column type."""

    GUID = "guid"
    VARBINARY = "varbinary"
    DECIMAL = "decimal"
    OTHER = "other"


@dataclass(frozen=True)
class TypedValue:
    """A source value tagged with its kind.

    payload holds the normalized Python value for the kind:
    int for INTEGER, float for FLOAT, datetime/date/time for TEMPORAL,
    str for TEXT and DECIMAL, bytes for GUID (source byte order) and
    VARBINARY, and the original object for UNSUPPORTED.
    """

    kind: ValueKind
    payload: Any = None


NULL_VALUE = TypedValue(ValueKind.NULL)
