"""Header locator and column mapper.

The header row is the schema anchor of a trial sheet: the first row (within
the scan window) that carries both the block marker and the plot marker.
Column roles are read from that row alone.
"""

from __future__ import annotations

import logging

from ingestkit_trials.cells import CellValue, cell_text, contains_marker, is_empty
from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import ErrorCode, HeaderNotFoundError, IngestError
from ingestkit_trials.models import AssessmentColumn, HeaderMap

logger = logging.getLogger("ingestkit_trials")


def locate_header_row(
    rows: list[list[CellValue]],
    sheet_name: str,
    config: TrialImportConfig,
) -> int:
    """Return the 0-based index of the header row.

    Only the first ``config.header_scan_rows`` rows are scanned.

    Raises:
        HeaderNotFoundError: If no scanned row carries both markers.
    """
    scan_limit = min(len(rows), config.header_scan_rows)
    for idx in range(scan_limit):
        row = rows[idx]
        has_block = any(contains_marker(c, config.block_marker) for c in row)
        has_plot = any(contains_marker(c, config.plot_marker) for c in row)
        if has_block and has_plot:
            logger.debug("Sheet '%s': header row at index %d", sheet_name, idx)
            return idx

    raise HeaderNotFoundError(sheet_name, scan_rows=config.header_scan_rows)


def map_columns(
    header_row: list[CellValue],
    config: TrialImportConfig,
    sheet_name: str | None = None,
    diagnostics: list[IngestError] | None = None,
) -> HeaderMap:
    """Classify header cells into marker columns and assessment columns.

    Cells are visited left to right.  An assessment column is a non-empty
    cell without ``!`` lying to the right of every marker column seen so
    far.  Names are trimmed but not deduplicated.
    """
    block_col: int | None = None
    plot_col: int | None = None
    treatment_col: int | None = None
    assessment_cols: list[AssessmentColumn] = []

    for idx, cell in enumerate(header_row):
        if contains_marker(cell, config.block_marker):
            block_col = idx
        elif contains_marker(cell, config.plot_marker):
            plot_col = idx
        elif contains_marker(cell, config.treatment_marker):
            treatment_col = idx
        elif not is_empty(cell):
            text = cell_text(cell)
            rightmost = max(
                -1 if c is None else c for c in (block_col, plot_col, treatment_col)
            )
            if "!" not in text and idx > rightmost:
                assessment_cols.append(AssessmentColumn(name=text.strip(), index=idx))

    if treatment_col is None and diagnostics is not None:
        diagnostics.append(
            IngestError(
                code=ErrorCode.W_TREATMENT_COLUMN_MISSING,
                message="Header row has no treatment column; no plot rows can be read.",
                sheet_name=sheet_name,
                stage="header",
                recoverable=True,
            )
        )

    return HeaderMap(
        block_col=block_col,
        plot_col=plot_col,
        treatment_col=treatment_col,
        assessment_cols=assessment_cols,
    )
