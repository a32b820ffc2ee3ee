"""Shared test fixtures for ingestkit-trials tests.

Provides a default config, a pinned clock, helpers that build
:class:`Sheet` grids from plain Python rows, and a factory that writes
trial workbooks to ``.xlsx`` bytes with openpyxl.
"""

from __future__ import annotations

import io
from datetime import date

import openpyxl
import pytest

from ingestkit_trials.cells import to_row
from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.models import Sheet

FIXED_TODAY = date(2025, 6, 15)

HEADER = ["Block!", "Plot!", "Treatment", "Turf Quality"]


def make_sheet(name: str, rows: list[list[object]]) -> Sheet:
    """Build a Sheet of tagged cells from raw Python values."""
    return Sheet(name=name, rows=[to_row(r) for r in rows])


def trial_rows(
    blocks: int = 2,
    treatments: int = 3,
    header: list[object] | None = None,
    value_for=None,
    metadata: list[list[object]] | None = None,
) -> list[list[object]]:
    """Raw rows of a typical trial sheet.

    Metadata rows, a blank row, the header, then one row per plot with plots
    numbered ``block * 100 + treatment``.  ``value_for(block, treatment)``
    returns the list of assessment cells for that plot (default: one
    quality score).
    """
    if metadata is None:
        metadata = [
            ["Trial Name", "Greens Fertiliser 2024"],
            ["Area", "Green 4"],
            ["Assessor", "J. Smith"],
            ["Notes", "Overcast"],
        ]
    if value_for is None:
        def value_for(b: int, t: int) -> list[object]:
            return [5 + t]

    rows: list[list[object]] = [list(r) for r in metadata]
    rows.append([])
    rows.append(list(header or HEADER))
    for b in range(1, blocks + 1):
        for t in range(1, treatments + 1):
            rows.append([b, b * 100 + t, t, *value_for(b, t)])
    return rows


def build_xlsx(sheets: dict[str, list[list[object]]]) -> bytes:
    """Write *sheets* (name -> rows) to an in-memory .xlsx and return the bytes."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture()
def default_config() -> TrialImportConfig:
    """Return a TrialImportConfig with all defaults."""
    return TrialImportConfig()


@pytest.fixture()
def fixed_clock():
    """Clock pinned to FIXED_TODAY."""
    return lambda: FIXED_TODAY


@pytest.fixture()
def scenario_xlsx() -> bytes:
    """Workbook with a template sheet and two assessment-date sheets."""
    return build_xlsx(
        {
            "Sheet1": [["Template only"]],
            "01.03.24": trial_rows(),
            "02.03.24": trial_rows(value_for=lambda b, t: [6 + t]),
        }
    )
