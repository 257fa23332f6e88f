"""Schema introspection and compatibility checking."""

from mssql2mysql.schema.checker import ColumnDrift, SchemaChecker
from mssql2mysql.schema.introspect import SchemaIntrospector
from mssql2mysql.schema.models import Column, Schema, Table

__all__ = [
    "Column",
    "ColumnDrift",
    "Schema",
    "SchemaChecker",
    "SchemaIntrospector",
    "Table",
]
