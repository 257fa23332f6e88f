"""Build INSERT statements for the destination."""

from dataclasses import dataclass
from typing import Any, Sequence

from mssql2mysql.schema.models import Table
from mssql2mysql.transfer.transcoder import bind_param, is_inline, render_literal
from mssql2mysql.types import TypedValue

PLACEHOLDER = "%s"


def quote_identifier(name: str) -> str:
    """Quote a MySQL identifier with backticks."""
    return "`" + name.replace("`", "``") + "`"


def quote_mssql_identifier(name: str) -> str:
    """Quote a SQL Server identifier with brackets."""
    return "[" + name.replace("]", "]]") + "]"


@dataclass(frozen=True)
class BoundStatement:
    """SQL text with %s placeholders and the parameters that fill them."""

    sql: str
    params: tuple[Any, ...]


class InsertBuilder:
    """Assemble single-row INSERT statements for one destination table."""

    def __init__(self, table: Table) -> None:
        self._table = table
        columns = ", ".join(quote_identifier(col.name) for col in table.columns)
        self._prefix = f"INSERT INTO {quote_identifier(table.name)} ({columns}) VALUES"

    @property
    def table(self) -> Table:
        return self._table

    def _check_width(self, count: int) -> None:
        if count != len(self._table.columns):
            raise ValueError(
                f"INSERT into '{self._table.name}' needs {len(self._table.columns)} "
                f"values, got {count}"
            )

    def build_literal(self, literals: Sequence[str]) -> str:
        """Build a fully literal INSERT from already rendered literals."""
        self._check_width(len(literals))
        return f"{self._prefix} ({', '.join(literals)});"

    def build_from_values(self, typed_values: Sequence[TypedValue]) -> str:
        return self.build_literal([render_literal(tv) for tv in typed_values])

    def build_bound(self, typed_values: Sequence[TypedValue]) -> BoundStatement:
        """Build an INSERT binding every value except GUID and binary literals."""
        self._check_width(len(typed_values))
        slots = []
        params = []
        for typed in typed_values:
            if is_inline(typed):
                slots.append(render_literal(typed))
            else:
                slots.append(PLACEHOLDER)
                params.append(bind_param(typed))
        return BoundStatement(
            sql=f"{self._prefix} ({', '.join(slots)});", params=tuple(params)
        )
