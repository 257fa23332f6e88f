"""Shared test helpers for mssql2mysql tests."""

import re
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

from mssql2mysql.schema.models import Column, Schema, Table

_QUOTED_NAME_RE = re.compile(r"TABLE_NAME = '((?:[^']|'')*)'", re.IGNORECASE)
_SELECT_RE = re.compile(r"SELECT \* FROM \[((?:[^\]]|\]\])*)\];")
_INSERT_RE = re.compile(r"^INSERT INTO `((?:[^`]|``)*)` \((.*?)\) VALUES \((.*)\);$", re.S)


def make_table(name: str, columns: Sequence[tuple[str, str]] = ()) -> Table:
    """Helper to create a Table from (name, type) pairs."""
    return Table(name=name, columns=[Column(name=n, type=t) for n, t in columns])


def make_schema(*tables: Table) -> Schema:
    return Schema.from_tables(tables)


class FakeCursor:
    """DB-API cursor over a fixed list of rows.

    An Exception in rows is raised by fetchone when reached.
    """

    def __init__(self, columns: Sequence[str], rows: Sequence[tuple]):
        self.description = [(name, None) for name in columns]
        self._rows = list(rows)
        self.closed = False

    def execute(self, sql, params=None):
        self.executed = sql

    def fetchone(self):
        if not self._rows:
            return None
        row = self._rows.pop(0)
        if isinstance(row, Exception):
            raise row
        return row

    def close(self):
        self.closed = True


class FakeClient:
    """In-memory stand-in for MssqlClient / MysqlClient.

    Args:
        tables: Dict mapping table_name -> list of (column_name, data_type)
        rows: Dict mapping table_name -> list of row tuples (source side)
        fail_execute: Predicate on (sql, params); when true, execute raises
        fail_fetchall: Exception raised by every catalog query
        fail_query: Exception raised by every row query
    """

    def __init__(
        self,
        tables: Optional[dict[str, list[tuple[str, str]]]] = None,
        rows: Optional[dict[str, list[tuple]]] = None,
        fail_execute: Optional[Callable[[str, Any], bool]] = None,
        fail_fetchall: Optional[Exception] = None,
        fail_query: Optional[Exception] = None,
    ):
        self.tables = dict(tables or {})
        self.rows = {name: list(r) for name, r in (rows or {}).items()}
        self.executed: list[tuple[str, Any]] = []
        self.queries: list[str] = []
        self.cursors: list[FakeCursor] = []
        self._fail_execute = fail_execute
        self._fail_fetchall = fail_fetchall
        self._fail_query = fail_query

    def fetchall(self, sql: str) -> list[dict[str, Any]]:
        if self._fail_fetchall is not None:
            raise self._fail_fetchall
        sql_lower = sql.lower()
        if "information_schema.tables" in sql_lower:
            return [
                {"table_name": name, "table_type": "BASE TABLE"} for name in self.tables
            ]
        if "information_schema.columns" in sql_lower:
            match = _QUOTED_NAME_RE.search(sql)
            name = match.group(1).replace("''", "'") if match else None
            return [
                {"column_name": col, "data_type": col_type}
                for col, col_type in self.tables.get(name, [])
            ]
        return []

    def query(self, sql: str):
        from mssql2mysql.db.client import RowCursor

        self.queries.append(sql)
        if self._fail_query is not None:
            raise self._fail_query
        match = _SELECT_RE.search(sql)
        name = match.group(1).replace("]]", "]") if match else None
        columns = [col for col, _ in self.tables.get(name, [])]
        cursor = FakeCursor(columns, self.rows.get(name, []))
        self.cursors.append(cursor)
        return RowCursor(cursor)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        if self._fail_execute is not None and self._fail_execute(sql, params):
            raise RuntimeError(f"rejected: {sql}")
        self.executed.append((sql, params))
        return 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return None

    def inserts(self) -> list[tuple[str, Any]]:
        return [(sql, params) for sql, params in self.executed if sql.startswith("INSERT")]

    def inserted_rows(self, table: str) -> list[list[Any]]:
        """Decode the INSERTs sent for a table back into Python values."""
        result = []
        for sql, params in self.inserts():
            parsed = parse_insert(sql, params)
            if parsed[0] == table:
                result.append(parsed[2])
        return result


def _unescape(body: str) -> str:
    out = []
    escapes = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            out.append(escapes.get(body[i + 1], body[i + 1]))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _split_values(text: str) -> list[str]:
    """Split a VALUES list on commas outside quoted strings."""
    tokens = []
    current = []
    in_quote = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_quote:
            current.append(ch)
            if ch == "\\":
                current.append(text[i + 1])
                i += 2
                continue
            if ch == "'":
                in_quote = False
        elif ch == "'":
            in_quote = True
            current.append(ch)
        elif ch == ",":
            tokens.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    tokens.append("".join(current).strip())
    return tokens


def decode_literal(token: str) -> Any:
    """Read a MySQL literal the way the server would store it.

    Quoted strings are unescaped, 0x literals become bytes, numbers become
    Decimal (exact) or float (exponent form), NULL becomes None.
    """
    if token == "NULL":
        return None
    if token.startswith("'") and token.endswith("'"):
        return _unescape(token[1:-1])
    if token.startswith("0x"):
        digits = token[2:]
        if len(digits) % 2:
            digits = "0" + digits
        return bytes.fromhex(digits)
    if "e" in token.lower() or token in ("inf", "nan"):
        return float(token)
    return Decimal(token)


def parse_insert(sql: str, params: Optional[Sequence[Any]] = None) -> tuple[str, list[str], list[Any]]:
    """Parse an INSERT built by InsertBuilder into (table, columns, values).

    Placeholders are filled from params in order.
    """
    match = _INSERT_RE.match(sql)
    if not match:
        raise AssertionError(f"Not an INSERT statement: {sql}")
    table = match.group(1).replace("``", "`")
    columns = [c.strip()[1:-1].replace("``", "`") for c in match.group(2).split(", ")]
    pending = list(params or [])
    values = []
    for token in _split_values(match.group(3)):
        if token == "%s":
            values.append(pending.pop(0))
        else:
            values.append(decode_literal(token))
    if pending:
        raise AssertionError(f"Unused parameters: {pending}")
    return table, columns, values
