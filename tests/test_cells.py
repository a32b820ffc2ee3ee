"""Tests for tagged cell values and coercion helpers."""

from __future__ import annotations

import math
from datetime import date, datetime

import pytest

from ingestkit_trials.cells import (
    EMPTY_CELL,
    CellKind,
    cell_at,
    cell_int,
    cell_number,
    cell_text,
    contains_marker,
    format_number,
    is_empty,
    row_is_empty,
    to_cell,
    to_row,
)


class TestToCell:
    """Raw reader values are tagged number / text / empty."""

    def test_none_is_empty(self) -> None:
        assert to_cell(None) is EMPTY_CELL

    def test_blank_string_is_empty(self) -> None:
        assert to_cell("   ").kind is CellKind.EMPTY

    def test_nan_is_empty(self) -> None:
        assert to_cell(float("nan")).kind is CellKind.EMPTY

    def test_int_is_number(self) -> None:
        cell = to_cell(7)
        assert cell.kind is CellKind.NUMBER
        assert cell.number == 7.0

    def test_text_kept_verbatim(self) -> None:
        cell = to_cell(" Block! ")
        assert cell.kind is CellKind.TEXT
        assert cell.text == " Block! "

    def test_bool_is_text(self) -> None:
        assert to_cell(True).text == "TRUE"

    def test_midnight_datetime_renders_iso_date(self) -> None:
        assert to_cell(datetime(2024, 3, 5)).text == "2024-03-05"

    def test_datetime_with_time_keeps_time(self) -> None:
        assert to_cell(datetime(2024, 3, 5, 9, 30)).text == "2024-03-05 09:30:00"

    def test_date_renders_iso(self) -> None:
        assert to_cell(date(2024, 3, 5)).text == "2024-03-05"

    def test_to_row(self) -> None:
        row = to_row([1, None, "a"])
        assert [c.kind for c in row] == [CellKind.NUMBER, CellKind.EMPTY, CellKind.TEXT]


class TestCoercion:
    """Explicit coercion functions."""

    def test_format_number_integral(self) -> None:
        assert format_number(5.0) == "5"

    def test_format_number_fraction(self) -> None:
        assert format_number(6.5) == "6.5"

    def test_cell_text_of_number(self) -> None:
        assert cell_text(to_cell(3)) == "3"

    def test_cell_text_of_empty(self) -> None:
        assert cell_text(EMPTY_CELL) == ""

    def test_cell_number_from_text(self) -> None:
        assert cell_number(to_cell(" 7.25 ")) == 7.25

    def test_cell_number_non_numeric_is_nan(self) -> None:
        assert math.isnan(cell_number(to_cell("dead")))

    def test_cell_number_infinite_text_is_nan(self) -> None:
        assert math.isnan(cell_number(to_cell("inf")))

    def test_cell_number_empty_is_nan(self) -> None:
        assert math.isnan(cell_number(EMPTY_CELL))

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(3, 3), (3.0, 3), ("4", 4), ("4.0", 4), (2.5, None), ("B", None), (None, None)],
    )
    def test_cell_int(self, raw: object, expected: int | None) -> None:
        assert cell_int(to_cell(raw)) == expected

    def test_contains_marker_case_insensitive(self) -> None:
        assert contains_marker(to_cell("BLOCK!"), "block!")

    def test_contains_marker_number_cell(self) -> None:
        assert not contains_marker(to_cell(1), "block!")


class TestRowHelpers:
    def test_row_is_empty(self) -> None:
        assert row_is_empty(to_row([None, "", "  "]))

    def test_row_not_empty(self) -> None:
        assert not row_is_empty(to_row([None, 0]))

    def test_cell_at_out_of_range(self) -> None:
        assert is_empty(cell_at(to_row([1]), 5))

    def test_cell_at_unresolved_index(self) -> None:
        assert is_empty(cell_at(to_row([1]), None))
