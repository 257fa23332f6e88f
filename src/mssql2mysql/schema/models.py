"""Schema representation classes."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

BASE_TABLE = "BASE TABLE"


@dataclass(frozen=True)
class Column:
    """Column definition as reported by the metadata catalog."""

    name: str
    type: str

    def __post_init__(self) -> None:
        """Strip whitespace and lowercase the declared type."""
        object.__setattr__(self, "type", self.type.strip().lower())


@dataclass(frozen=True)
class Table:
    """Base table with its columns in ordinal position order."""

    name: str
    columns: tuple[Column, ...] = ()
    kind: str = BASE_TABLE

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))

    @property
    def sort_key(self) -> str:
        return self.name.lower()

    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def get_column(self, name: str) -> Optional[Column]:
        """Get a column by name (case-insensitive)."""
        lowered = name.lower()
        for col in self.columns:
            if col.name.lower() == lowered:
                return col
        return None


@dataclass(frozen=True)
class Schema:
    """Base tables of one database, sorted case-insensitively by name.

    The canonical order lets two catalogs be compared position by position.
    """

    tables: tuple[Table, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tables", tuple(sorted(self.tables, key=lambda t: t.sort_key))
        )

    @classmethod
    def from_tables(cls, tables: Iterable[Table]) -> "Schema":
        return cls(tables=tuple(tables))

    def __len__(self) -> int:
        return len(self.tables)

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def get_table(self, name: str) -> Optional[Table]:
        """Get a table by name (case-insensitive)."""
        lowered = name.lower()
        for table in self.tables:
            if table.sort_key == lowered:
                return table
        return None

    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]
