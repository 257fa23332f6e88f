"""mssql2mysql: copy SQL Server base tables into an equivalent MySQL database."""

__version__ = "0.1.0"
