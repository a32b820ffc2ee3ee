"""Metadata extractor for the rows above a sheet's header."""

from __future__ import annotations

from ingestkit_trials.cells import CellValue, cell_at, cell_text, is_empty
from ingestkit_trials.models import SheetMetadata

# Checked in order; the first label found in the first cell wins.
_VALUE_LABELS = ("date", "area", "assessor", "notes")


def extract_metadata(rows: list[list[CellValue]], header_row_index: int) -> SheetMetadata:
    """Read trial name, date, area, assessor and notes.

    Only rows strictly above *header_row_index* are inspected.  The trial
    name is the first non-empty cell after the label; the other fields take
    the cell right of the label.  A repeated label overwrites the earlier
    value.
    """
    fields: dict[str, str] = {}

    for row in rows[:header_row_index]:
        label = cell_text(cell_at(row, 0)).lower()
        if not label:
            continue

        if "trial name" in label or "trial code" in label:
            fields["trial_name"] = next(
                (cell_text(c) for c in row[1:] if not is_empty(c)), ""
            )
            continue

        for key in _VALUE_LABELS:
            if key in label:
                fields[key] = cell_text(cell_at(row, 1))
                break

    return SheetMetadata(**fields)
