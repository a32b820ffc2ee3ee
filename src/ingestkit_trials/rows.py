"""Row extractor: one :class:`PlotRecord` per valid data row.

Stray rows are expected in human-authored sheets.  They are skipped and
reported on the diagnostic stream, never raised.
"""

from __future__ import annotations

import logging
import math

from ingestkit_trials.cells import (
    CellValue,
    cell_at,
    cell_int,
    cell_number,
    cell_text,
    is_empty,
    row_is_empty,
)
from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import ErrorCode, IngestError
from ingestkit_trials.models import HeaderMap, PlotRecord

logger = logging.getLogger("ingestkit_trials")


def extract_plot_records(
    rows: list[list[CellValue]],
    header_row_index: int,
    header: HeaderMap,
    config: TrialImportConfig,
    sheet_name: str | None = None,
    diagnostics: list[IngestError] | None = None,
) -> list[PlotRecord]:
    """Walk the rows below the header and build plot records.

    A row is skipped when it is empty, when its first cell is the blank-plot
    marker, when block/plot/treatment is missing or not a positive integer,
    or when its (block, plot) pair was already seen in this sheet.
    Non-numeric assessment cells are kept as ``NaN``.
    """
    report = _Reporter(sheet_name, diagnostics)
    blank_marker = config.blank_plot_marker.upper()
    plots: list[PlotRecord] = []
    seen: set[tuple[int, int]] = set()

    for row_index in range(header_row_index + 1, len(rows)):
        row = rows[row_index]
        if not row or row_is_empty(row):
            continue

        if cell_text(row[0]).strip().upper() == blank_marker:
            report(ErrorCode.W_ROW_BLANK_MARKER, row_index, "Blank-plot marker row skipped.")
            continue

        key_cells = (
            cell_at(row, header.block_col),
            cell_at(row, header.plot_col),
            cell_at(row, header.treatment_col),
        )
        if any(is_empty(c) for c in key_cells):
            report(
                ErrorCode.W_ROW_MISSING_KEY,
                row_index,
                "Row skipped: block, plot or treatment is empty.",
            )
            continue

        block, plot, treatment = (cell_int(c) for c in key_cells)
        if block is None or plot is None or treatment is None or min(block, plot, treatment) < 1:
            report(
                ErrorCode.W_ROW_INVALID_KEY,
                row_index,
                "Row skipped: block, plot and treatment must be positive integers.",
            )
            continue

        if (block, plot) in seen:
            report(
                ErrorCode.W_DUPLICATE_PLOT,
                row_index,
                f"Duplicate plot {block}-{plot}; first occurrence kept.",
            )
            continue
        seen.add((block, plot))

        values: dict[str, float] = {}
        for col in header.assessment_cols:
            cell = cell_at(row, col.index)
            if is_empty(cell):
                continue
            value = cell_number(cell)
            if math.isnan(value):
                detail = f" ({cell_text(cell)!r})" if config.log_sample_data else ""
                report(
                    ErrorCode.W_VALUE_NOT_NUMERIC,
                    row_index,
                    f"Non-numeric value for '{col.name}' in plot {block}-{plot}"
                    f"{detail}; treated as not entered.",
                )
            values[col.name] = value

        plots.append(
            PlotRecord(block=block, plot=plot, treatment=treatment, values=values)
        )

    logger.debug("Sheet '%s': %d plot rows extracted", sheet_name, len(plots))
    return plots


class _Reporter:
    """Appends row-level diagnostics when a collector is supplied."""

    def __init__(self, sheet_name: str | None, sink: list[IngestError] | None) -> None:
        self._sheet_name = sheet_name
        self._sink = sink

    def __call__(self, code: ErrorCode, row_index: int, message: str) -> None:
        logger.debug("Sheet '%s' row %d: %s", self._sheet_name, row_index, message)
        if self._sink is None:
            return
        self._sink.append(
            IngestError(
                code=code,
                message=message,
                sheet_name=self._sheet_name,
                row_index=row_index,
                stage="rows",
                recoverable=True,
            )
        )
