"""Tagged cell values and explicit coercion helpers.

Workbook readers hand back loosely-typed cells (numbers, strings, dates,
``None``).  Every raw value is normalized once into a :class:`CellValue`
tagged as ``number``, ``text`` or ``empty``; downstream components only ever
use the coercion functions in this module to read them.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict


class CellKind(str, Enum):
    """Tag of a normalized cell value."""

    NUMBER = "number"
    TEXT = "text"
    EMPTY = "empty"


class CellValue(BaseModel):
    """A single normalized worksheet cell."""

    model_config = ConfigDict(frozen=True)

    kind: CellKind
    number: float | None = None
    text: str = ""


EMPTY_CELL = CellValue(kind=CellKind.EMPTY)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def to_cell(raw: object) -> CellValue:
    """Normalize a raw reader value into a :class:`CellValue`.

    ``None``, blank strings and NaN floats become the empty cell.  Dates
    render as ISO text (``YYYY-MM-DD``, with the time appended only when it
    is not midnight) so that date-typed metadata cells reach the date engine
    in canonical form.
    """
    if raw is None:
        return EMPTY_CELL
    if isinstance(raw, CellValue):
        return raw
    if isinstance(raw, bool):
        return CellValue(kind=CellKind.TEXT, text="TRUE" if raw else "FALSE")
    if isinstance(raw, (int, float)):
        value = float(raw)
        if math.isnan(value):
            return EMPTY_CELL
        return CellValue(kind=CellKind.NUMBER, number=value)
    if isinstance(raw, datetime):
        if raw.time() == time(0, 0):
            return CellValue(kind=CellKind.TEXT, text=raw.date().isoformat())
        return CellValue(kind=CellKind.TEXT, text=raw.isoformat(sep=" "))
    if isinstance(raw, (date, time)):
        return CellValue(kind=CellKind.TEXT, text=raw.isoformat())

    text = str(raw)
    if text.strip() == "":
        return EMPTY_CELL
    return CellValue(kind=CellKind.TEXT, text=text)


def to_row(raw_row: list[object] | tuple[object, ...]) -> list[CellValue]:
    """Normalize one row of raw reader values."""
    return [to_cell(v) for v in raw_row]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def is_empty(cell: CellValue) -> bool:
    return cell.kind is CellKind.EMPTY


def row_is_empty(row: list[CellValue]) -> bool:
    return all(is_empty(c) for c in row)


def cell_at(row: list[CellValue], index: int | None) -> CellValue:
    """Return ``row[index]``, or the empty cell when out of range or unresolved."""
    if index is None or index < 0 or index >= len(row):
        return EMPTY_CELL
    return row[index]


def format_number(value: float) -> str:
    """Render a number the way a spreadsheet user typed it.

    Integral values drop the trailing ``.0`` (``5.0`` -> ``"5"``).
    """
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def cell_text(cell: CellValue) -> str:
    """Return the cell's display text (empty string for empty cells)."""
    if cell.kind is CellKind.NUMBER:
        assert cell.number is not None
        return format_number(cell.number)
    return cell.text


def cell_number(cell: CellValue) -> float:
    """Best-effort numeric coercion.

    Text that does not parse as a finite number, and empty cells, coerce to
    ``NaN``.  Callers treat ``NaN`` as "not entered".
    """
    if cell.kind is CellKind.NUMBER:
        assert cell.number is not None
        return cell.number
    if cell.kind is CellKind.EMPTY:
        return math.nan
    try:
        value = float(cell.text.strip())
    except ValueError:
        return math.nan
    return value if math.isfinite(value) else math.nan


def cell_int(cell: CellValue) -> int | None:
    """Coerce to an integer, or ``None`` if the cell is not integral."""
    value = cell_number(cell)
    if math.isnan(value) or not value.is_integer():
        return None
    return int(value)


def contains_marker(cell: CellValue, marker: str) -> bool:
    """Case-insensitive substring test against the cell text."""
    return marker.lower() in cell_text(cell).lower()
