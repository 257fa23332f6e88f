"""Convert SQL Server row values into MySQL literals.

Every value is first classified into a TypedValue using the column's
declared source type, then rendered either as literal SQL text or as a
parameter for the driver to bind. The rendering rules are the same for both
delivery modes; only quoting and escaping move to the driver when binding.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from mssql2mysql.exceptions import RowTranscodeError
from mssql2mysql.schema.models import Table
from mssql2mysql.types import NULL_VALUE, BinaryKind, TypedValue, ValueKind

__all__ = [
    "NULL_LITERAL",
    "ColumnSlot",
    "ValueTranscoder",
    "binary_kind_for",
    "bind_param",
    "classify",
    "escape_text",
    "format_temporal",
    "guid_text",
    "is_inline",
    "plan_columns",
    "render_literal",
]

logger = logging.getLogger(__name__)

NULL_LITERAL = "NULL"
EMPTY_BINARY_LITERAL = "0x0"
GUID_SIZE = 16

GUID_TYPES = frozenset({"uniqueidentifier"})
VARBINARY_TYPES = frozenset({"varbinary", "binary", "image", "timestamp", "rowversion"})
DECIMAL_TYPES = frozenset({"decimal", "numeric", "money", "smallmoney"})

INLINE_KINDS = frozenset({ValueKind.GUID, ValueKind.VARBINARY})


def binary_kind_for(declared_type: str) -> BinaryKind:
    """Resolve how byte sequences of a column with this declared type are read."""
    base = declared_type.strip().lower().split("(", 1)[0].strip()
    if base in GUID_TYPES:
        return BinaryKind.GUID
    if base in VARBINARY_TYPES:
        return BinaryKind.VARBINARY
    if base in DECIMAL_TYPES:
        return BinaryKind.DECIMAL
    return BinaryKind.OTHER


@dataclass(frozen=True)
class ColumnSlot:
    """A source column with its binary interpretation resolved once per table."""

    name: str
    declared_type: str
    binary_kind: BinaryKind


def plan_columns(table: Table) -> tuple[ColumnSlot, ...]:
    return tuple(
        ColumnSlot(
            name=col.name,
            declared_type=col.type,
            binary_kind=binary_kind_for(col.type),
        )
        for col in table.columns
    )


def _decimal_text(text: str) -> str | None:
    """Return the number as plain MySQL decimal digits, or None if not finite."""
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return format(number, "f")


def _classify_bytes(raw: bytes, binary_kind: BinaryKind) -> TypedValue:
    if binary_kind is BinaryKind.GUID:
        if len(raw) != GUID_SIZE:
            raise RowTranscodeError(
                f"uniqueidentifier value must be {GUID_SIZE} bytes, got {len(raw)}"
            )
        return TypedValue(ValueKind.GUID, raw)

    if binary_kind is BinaryKind.VARBINARY:
        return TypedValue(ValueKind.VARBINARY, raw)

    if binary_kind is BinaryKind.DECIMAL:
        try:
            text = raw.decode("ascii").strip()
        except UnicodeDecodeError as e:
            raise RowTranscodeError(f"decimal value is not ASCII digits: {raw!r}") from e
        digits = _decimal_text(text)
        if digits is None:
            raise RowTranscodeError(f"decimal value is not a finite number: {text!r}")
        return TypedValue(ValueKind.DECIMAL, digits)

    return TypedValue(ValueKind.UNSUPPORTED, raw)


def classify(value: Any, binary_kind: BinaryKind = BinaryKind.OTHER) -> TypedValue:
    """Tag a raw driver value with its kind.

    Byte sequences are interpreted according to binary_kind. Values with no
    destination representation (unknown objects, NaN, infinities, byte
    sequences of an unrecognized column type) are classified UNSUPPORTED.

    Raises:
        RowTranscodeError: A GUID or decimal byte payload is malformed.
    """
    if value is None:
        return NULL_VALUE

    if isinstance(value, bool):
        return TypedValue(ValueKind.INTEGER, int(value))

    if isinstance(value, int):
        return TypedValue(ValueKind.INTEGER, value)

    if isinstance(value, float):
        if not math.isfinite(value):
            return TypedValue(ValueKind.UNSUPPORTED, value)
        return TypedValue(ValueKind.FLOAT, value)

    if isinstance(value, Decimal):
        if not value.is_finite():
            return TypedValue(ValueKind.UNSUPPORTED, value)
        return TypedValue(ValueKind.DECIMAL, format(value, "f"))

    if isinstance(value, (datetime, date, time)):
        return TypedValue(ValueKind.TEMPORAL, value)

    if isinstance(value, str):
        return TypedValue(ValueKind.TEXT, value.rstrip(" "))

    if isinstance(value, uuid.UUID):
        return TypedValue(ValueKind.GUID, value.bytes_le)

    if isinstance(value, (bytes, bytearray, memoryview)):
        return _classify_bytes(bytes(value), binary_kind)

    return TypedValue(ValueKind.UNSUPPORTED, value)


def format_temporal(value: date | time) -> str:
    """Format as YYYY-MM-DD HH:MM:SS.ffffff (time of day only for time values)."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None).isoformat(sep=" ", timespec="microseconds")
    if isinstance(value, date):
        return datetime.combine(value, time()).isoformat(
            sep=" ", timespec="microseconds"
        )
    return value.replace(tzinfo=None).isoformat(timespec="microseconds")


def escape_text(text: str) -> str:
    # Backslashes first, or the backslash added before a quote gets doubled.
    return text.replace("\\", "\\\\").replace("'", "\\'")


def guid_text(raw: bytes) -> str:
    """Render SQL Server GUID bytes in canonical text form.

    SQL Server stores the first three groups little-endian; bytes_le
    reverses bytes 0-3, 4-5 and 6-7 and keeps 8-15 in order.
    """
    return str(uuid.UUID(bytes_le=raw))


def render_literal(typed: TypedValue) -> str:
    """Render a classified value as MySQL literal text."""
    kind = typed.kind
    if kind is ValueKind.INTEGER:
        return str(typed.payload)
    if kind is ValueKind.FLOAT:
        return repr(typed.payload)
    if kind is ValueKind.DECIMAL:
        return typed.payload
    if kind is ValueKind.TEMPORAL:
        return f"'{format_temporal(typed.payload)}'"
    if kind is ValueKind.TEXT:
        return f"'{escape_text(typed.payload)}'"
    if kind is ValueKind.GUID:
        return f"'{guid_text(typed.payload)}'"
    if kind is ValueKind.VARBINARY:
        if not typed.payload:
            return EMPTY_BINARY_LITERAL
        return "0x" + typed.payload.hex()
    return NULL_LITERAL


def is_inline(typed: TypedValue) -> bool:
    """True for kinds that stay literal text even when parameters are bound."""
    return typed.kind in INLINE_KINDS


def bind_param(typed: TypedValue) -> Any:
    """Return the driver parameter for a bindable classified value."""
    kind = typed.kind
    if kind is ValueKind.INTEGER:
        return typed.payload
    if kind is ValueKind.FLOAT:
        return typed.payload
    if kind is ValueKind.DECIMAL:
        return Decimal(typed.payload)
    if kind is ValueKind.TEMPORAL:
        return format_temporal(typed.payload)
    if kind is ValueKind.TEXT:
        return typed.payload
    if kind in INLINE_KINDS:
        raise ValueError(f"{kind.value} values are rendered inline, not bound")
    return None


class ValueTranscoder:
    """Classify source values column by column, tracking NULL fallbacks.

    An UNSUPPORTED value becomes NULL and is logged and counted, so it can be
    told apart from a NULL in the source. With strict=True it raises instead.
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict
        self.null_fallbacks = 0

    @property
    def strict(self) -> bool:
        return self._strict

    def classify(self, value: Any, slot: ColumnSlot) -> TypedValue:
        typed = classify(value, slot.binary_kind)
        if typed.kind is not ValueKind.UNSUPPORTED:
            return typed

        description = (
            f"{type(typed.payload).__name__} value {typed.payload!r:.80} "
            f"for column '{slot.name}' ({slot.declared_type})"
        )
        if self._strict:
            raise RowTranscodeError(f"Cannot transcode {description}", column=slot.name)

        self.null_fallbacks += 1
        logger.warning("Writing NULL for unsupported %s", description)
        return NULL_VALUE

    def classify_row(
        self, row: tuple[Any, ...] | list[Any], slots: tuple[ColumnSlot, ...]
    ) -> list[TypedValue]:
        if len(row) != len(slots):
            raise RowTranscodeError(
                f"Row has {len(row)} values but table has {len(slots)} columns"
            )
        typed_values = []
        for value, slot in zip(row, slots):
            try:
                typed_values.append(self.classify(value, slot))
            except RowTranscodeError as e:
                if e.column is None:
                    e.column = slot.name
                raise
        return typed_values

    def encode(self, value: Any, declared_type: str) -> str:
        """Convert one value into a MySQL literal or the NULL marker."""
        slot = ColumnSlot(
            name="value",
            declared_type=declared_type,
            binary_kind=binary_kind_for(declared_type),
        )
        return render_literal(self.classify(value, slot))
