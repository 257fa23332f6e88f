"""Database clients and connection strings."""

from mssql2mysql.db.client import MssqlClient, MysqlClient, RowCursor, SqlClient

__all__ = ["MssqlClient", "MysqlClient", "RowCursor", "SqlClient"]
