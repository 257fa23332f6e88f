"""Connection string parsing for SQL Server and MySQL."""

import logging
import re
from typing import Any
from urllib.parse import parse_qsl, unquote, urlparse

from mssql2mysql.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"
DEFAULT_MSSQL_PORT = 1433
DEFAULT_MYSQL_PORT = 3306

MSSQL_URL_SCHEMES = {"sqlserver", "mssql"}
MYSQL_URL_SCHEMES = {"mysql"}

# user:password@tcp(host:port)/dbname?param=value; the password runs to the last @
_GO_MYSQL_DSN_RE = re.compile(
    r"^(?:(?P<user>[^:@]*)(?::(?P<password>.*))?@)?"
    r"(?:(?P<net>\w+)\((?P<address>[^)]*)\))?"
    r"/(?P<database>[^?]*)"
    r"(?:\?(?P<params>.*))?$"
)

_INT_PARAMS = {"connection_timeout"}
_BOOL_PARAMS = {"use_pure", "ssl_disabled", "ssl_verify_cert", "get_warnings"}
_STR_PARAMS = {
    "charset",
    "collation",
    "auth_plugin",
    "ssl_ca",
    "ssl_cert",
    "ssl_key",
    "time_zone",
    "sql_mode",
}


def _odbc_value(value: str) -> str:
    if any(ch in value for ch in ";{}="):
        return "{" + value.replace("}", "}}") + "}"
    return value


def mssql_odbc_connection_string(dsn: str) -> str:
    """Turn a sqlserver:// or mssql:// URL into an ODBC connection string.

    Anything that is not such a URL is treated as an ODBC connection string
    already and returned unchanged.

    Raises:
        ConfigError: If the URL has no host.
    """
    dsn = dsn.strip()
    parsed = urlparse(dsn)
    if parsed.scheme.lower() not in MSSQL_URL_SCHEMES:
        if not dsn:
            raise ConfigError("Empty SQL Server connection string")
        return dsn

    if not parsed.hostname:
        raise ConfigError(f"SQL Server URL has no host: {redact(dsn)}")

    params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    driver = params.pop("driver", DEFAULT_ODBC_DRIVER)
    database = params.pop("database", None)

    server = parsed.hostname
    path = unquote(parsed.path.lstrip("/"))
    if parsed.scheme.lower() == "sqlserver" and path:
        server = f"{server}\\{path}"
    elif path and database is None:
        database = path
    try:
        port = parsed.port or DEFAULT_MSSQL_PORT
    except ValueError as e:
        raise ConfigError(f"Invalid SQL Server port in {redact(dsn)}") from e
    server = f"{server},{port}"

    parts = [f"DRIVER={{{driver}}}", f"SERVER={server}"]
    if database:
        parts.append(f"DATABASE={_odbc_value(database)}")
    if parsed.username:
        parts.append(f"UID={_odbc_value(unquote(parsed.username))}")
    if parsed.password is not None:
        parts.append(f"PWD={_odbc_value(unquote(parsed.password))}")
    for key, value in params.items():
        parts.append(f"{key}={_odbc_value(value)}")
    return ";".join(parts)


def _convert_mysql_params(params: dict[str, str]) -> dict[str, Any]:
    converted: dict[str, Any] = {}
    for key, value in params.items():
        if key in _INT_PARAMS:
            try:
                converted[key] = int(value)
            except ValueError as e:
                raise ConfigError(f"MySQL parameter {key} must be an integer") from e
        elif key in _BOOL_PARAMS:
            converted[key] = value.lower() in ("1", "true", "yes")
        elif key in _STR_PARAMS:
            converted[key] = value
        else:
            logger.warning("Ignoring unsupported MySQL connection parameter %r", key)
    return converted


def _parse_host_port(address: str) -> tuple[str, int]:
    host, _, port = address.rpartition(":")
    if not host:
        return address or "localhost", DEFAULT_MYSQL_PORT
    try:
        return host, int(port)
    except ValueError as e:
        raise ConfigError(f"Invalid MySQL port: {port!r}") from e


def mysql_connect_kwargs(dsn: str) -> dict[str, Any]:
    """Parse a mysql:// URL or a Go-style DSN into mysql.connector.connect kwargs.

    Raises:
        ConfigError: If the string matches neither form or names no database.
    """
    dsn = dsn.strip()
    parsed = urlparse(dsn)
    if parsed.scheme.lower() in MYSQL_URL_SCHEMES:
        try:
            port = parsed.port or DEFAULT_MYSQL_PORT
        except ValueError as e:
            raise ConfigError(f"Invalid MySQL port in {redact(dsn)}") from e
        kwargs: dict[str, Any] = {
            "host": parsed.hostname or "localhost",
            "port": port,
            "database": unquote(parsed.path.lstrip("/")),
        }
        if parsed.username:
            kwargs["user"] = unquote(parsed.username)
        if parsed.password is not None:
            kwargs["password"] = unquote(parsed.password)
        params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    else:
        match = _GO_MYSQL_DSN_RE.match(dsn)
        if not match:
            raise ConfigError(f"Unrecognized MySQL connection string: {redact(dsn)}")
        kwargs = {"database": match.group("database")}
        net = match.group("net") or "tcp"
        address = match.group("address") or ""
        if net == "unix":
            kwargs["unix_socket"] = address
        else:
            kwargs["host"], kwargs["port"] = _parse_host_port(address)
        if match.group("user"):
            kwargs["user"] = match.group("user")
        if match.group("password") is not None:
            kwargs["password"] = match.group("password")
        params = dict(parse_qsl(match.group("params") or "", keep_blank_values=True))

    if not kwargs["database"]:
        raise ConfigError(f"MySQL connection string names no database: {redact(dsn)}")

    kwargs.update(_convert_mysql_params(params))
    return kwargs


def redact(dsn: str) -> str:
    """Mask the password in a URL, Go-style DSN, or ODBC connection string."""
    redacted = re.sub(r"(?i)\b(PWD|PASSWORD)=(\{[^}]*\}|[^;]*)", r"\1=***", dsn)
    if "://" not in redacted:
        match = _GO_MYSQL_DSN_RE.match(redacted)
        if match and match.group("password") is not None:
            start, end = match.span("password")
            return redacted[:start] + "***" + redacted[end:]
    return re.sub(r"^([^:/@]*://)?([^:/@]+):[^/]*@", r"\1\2:***@", redacted)
