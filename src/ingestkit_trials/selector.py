"""Sheet selector: keep only the sheets that hold assessment data."""

from __future__ import annotations

import logging

from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import ErrorCode, IngestError, NoDataSheetsError

logger = logging.getLogger("ingestkit_trials")


def select_data_sheets(
    sheet_names: list[str],
    config: TrialImportConfig,
    diagnostics: list[IngestError] | None = None,
) -> list[str]:
    """Filter template, spare and empty sheets out of *sheet_names*.

    A sheet is excluded when its lowercased name contains any of
    ``config.excluded_sheet_patterns``.  Order is preserved.

    Raises:
        NoDataSheetsError: If no sheet survives the filter.
    """
    patterns = [p.lower() for p in config.excluded_sheet_patterns]
    selected: list[str] = []

    for name in sheet_names:
        lower = name.lower()
        matched = next((p for p in patterns if p in lower), None)
        if matched is None:
            selected.append(name)
            continue
        logger.debug("Excluding sheet '%s' (matched '%s')", name, matched)
        if diagnostics is not None:
            diagnostics.append(
                IngestError(
                    code=ErrorCode.W_SHEET_EXCLUDED,
                    message=f"Sheet '{name}' excluded (name contains '{matched}').",
                    sheet_name=name,
                    stage="select",
                    recoverable=True,
                )
            )

    if not selected:
        raise NoDataSheetsError(
            f"No data sheets found in the Excel file "
            f"({len(sheet_names)} sheet(s) all excluded)"
        )
    return selected
